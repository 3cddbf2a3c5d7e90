# This file is part of tbmix.
#
# SPDX-Identifier: Apache-2.0
# Copyright (C) 2024 Grimme Group
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
DIIS Mixing
===========

Direct inversion in the iterative subspace (Pulay mixing).
"""

from __future__ import annotations

import logging

import torch
from tad_mctc.math import einsum

from tbmix._src.constants import defaults
from tbmix._src.typing import MixOptions, Tensor

from .base import Mixer
from .history import History

__all__ = ["DIIS"]


logger = logging.getLogger(__name__)


default_opts = {
    "damp": defaults.DAMP_DIIS,
    "generations": defaults.GENERATIONS_DIIS,
    "from_start": defaults.DIIS_FROM_START,
    "max_cond": defaults.DIIS_MAX_COND,
}


class DIIS(Mixer):
    r"""
    DIIS (Pulay) mixing.

    The coefficients :math:`c_i` of the stored iterates are chosen such that
    the norm of the combined residual :math:`\sum_i c_i F_i` is minimal under
    the constraint :math:`\sum_i c_i = 1`. This yields the linear equation
    system

    .. math::

        \begin{pmatrix} B & -1 \\ -1^T & 0 \end{pmatrix}
        \begin{pmatrix} c \\ \lambda \end{pmatrix} =
        \begin{pmatrix} 0 \\ -1 \end{pmatrix}, \qquad
        B_{ij} = \langle F_i | F_j \rangle .

    The new iterate is :math:`\sum_i c_i (x_i + \alpha F_i)`.

    If the equation system is singular or ill-conditioned, the oldest entry is
    removed from the history and the system is solved again. With a single
    entry left, this reduces to simple mixing.

    References
    ----------
    .. [Pulay] Pulay, P. (1980). Convergence acceleration of iterative
       sequences. The case of SCF iteration. Chemical Physics Letters, 73(2),
       393–398.
    """

    mix_param: float
    """Damping factor applied to the residuals."""

    generations: int
    """Maximum number of stored iterate/residual pairs."""

    from_start: bool
    """
    Whether to extrapolate from the second step on (``True``) or to use simple
    mixing until the history is full (``False``).
    """

    max_cond: float
    """Largest accepted condition number of the equation system."""

    n_fallback: int
    """Number of evictions due to singular equation systems since the reset."""

    def __init__(
        self,
        options: MixOptions | None = None,
        device: torch.device | None = None,
        dtype: torch.dtype | None = None,
    ) -> None:
        opts = dict(default_opts)
        if options is not None:
            opts.update(options)
        super().__init__(opts, device=device, dtype=dtype)

        self.mix_param = self.options["damp"]
        self.generations = self.options["generations"]
        self.from_start = self.options["from_start"]
        self.max_cond = self.options["max_cond"]

        if self.generations < 1:
            raise ValueError(
                "DIIS mixing requires at least one generation, but "
                f"{self.generations} was given."
            )

        self.n_fallback = 0
        self.history: History | None = None

    def reset(self, nelem: int) -> None:
        """Reset mixer to its initial state."""
        super().reset(nelem)
        self.n_fallback = 0

        if self.history is not None and self.history.nelem == nelem:
            self.history.clear()
        else:
            self.history = History(self.generations, nelem, **self.dd)

    def mix(self, q_inp_res: Tensor, q_diff: Tensor) -> Tensor:
        """
        Performs the DIIS mixing operation.

        Parameters
        ----------
        q_inp_res : Tensor
            Current iterate on entry, newly mixed iterate on exit.
        q_diff : Tensor
            Residual of the current iterate.

        Returns
        -------
        Tensor
            The updated ``q_inp_res`` tensor.
        """
        x, f = self._prepare(q_inp_res, q_diff)
        assert self.history is not None

        self.iter_step += 1
        self.history.append(x, f)

        if not self.from_start and not self.history.is_full:
            return self._update(q_inp_res, x + self.mix_param * f)

        coeffs = self._coefficients()
        while coeffs is None:
            self.n_fallback += 1
            logger.debug(
                "DIIS step %d: singular equation system for %d generations, "
                "evicting the oldest entry.",
                self.iter_step,
                len(self.history),
            )
            self.history.evict_oldest()
            coeffs = self._coefficients()

        x_hist = self.history.iterates
        f_hist = self.history.residuals

        if logger.isEnabledFor(logging.DEBUG):
            res = torch.linalg.vector_norm(einsum("i,iv->v", coeffs, f_hist))
            logger.debug(
                "DIIS step %d: norm of extrapolated residual %.6e (%d generations).",
                self.iter_step,
                float(res),
                len(self.history),
            )

        x_mix = einsum("i,iv->v", coeffs, x_hist + self.mix_param * f_hist)
        return self._update(q_inp_res, x_mix)

    def _coefficients(self) -> Tensor | None:
        """
        Solve the DIIS equations for the current history.

        Returns
        -------
        Tensor | None
            Coefficients of the history entries (newest first) or ``None`` if
            the equation system is singular or ill-conditioned.
        """
        assert self.history is not None

        nhist = len(self.history)
        if nhist == 1:
            return torch.ones(1, **self.dd)

        f_hist = self.history.residuals
        b = einsum("iv,jv->ij", f_hist, f_hist)

        # scaling does not change the coefficients, only the multiplier
        scale = b.diagonal().max()
        if scale <= 0.0:
            return None
        b = b / scale

        a = torch.zeros((nhist + 1, nhist + 1), **self.dd)
        a[:nhist, :nhist] = b
        a[:nhist, nhist] = -1.0
        a[nhist, :nhist] = -1.0

        rhs = torch.zeros(nhist + 1, **self.dd)
        rhs[nhist] = -1.0

        # the working precision limits the accepted condition number as well
        max_cond = min(self.max_cond, 1.0 / torch.finfo(a.dtype).eps)
        if not torch.linalg.cond(a) < max_cond:
            return None

        sol, info = torch.linalg.solve_ex(a, rhs)
        if int(info) != 0 or not torch.isfinite(sol).all():
            return None

        return sol[:nhist]
