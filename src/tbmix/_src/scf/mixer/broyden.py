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
Broyden mixing
==============

Modified Broyden mixing (Broyden's second method with Johnson's weighting).
"""

from __future__ import annotations

import logging

import torch
from tad_mctc.math import einsum

from tbmix._src.constants import defaults
from tbmix._src.typing import MixOptions, Tensor
from tbmix._src.typing.exceptions import MixerShapeError, MixerStateError

from .base import Mixer

__all__ = ["Broyden"]


logger = logging.getLogger(__name__)


default_opts = {
    "damp": defaults.DAMP_BROYDEN,
    "generations": defaults.GENERATIONS_BROYDEN,
    "omega0": defaults.BROYDEN_OMEGA0,
    "min_weight": defaults.BROYDEN_MIN_WEIGHT,
    "max_weight": defaults.BROYDEN_MAX_WEIGHT,
    "weight_factor": defaults.BROYDEN_WEIGHT_FACTOR,
}


class Broyden(Mixer):
    r"""
    Modified Broyden mixing.

    The mixer maintains an explicit approximation :math:`J^{-1}` to the
    inverse Jacobian of the residual, starting from :math:`-\alpha I`. New
    iterates are proposed by a quasi-Newton step

    .. math::

        x_{m+1} = x_m - J^{-1}_m F_m .

    Each step adds a rank-one correction built from the normalized changes
    :math:`|\Delta F\rangle` and :math:`|\Delta x\rangle` of the last step. All
    corrections are weighted by the inverse norm of the residual of the step
    in which they were created, emphasizing well-converged steps, following
    Johnson [Johnson]_:

    .. math::

        J^{-1}_m = J^{-1}_0 + \sum_{n,k} w_n \beta_{nk} w_k
                   |u_n\rangle \langle \Delta F_k|, \qquad
        \beta = (\omega_0^2 I + W A W)^{-1}

    with :math:`A_{nk} = \langle \Delta F_n | \Delta F_k \rangle` and
    :math:`|u_n\rangle = |\Delta x_n\rangle - J^{-1}_0 |\Delta F_n\rangle`.

    Once ``generations`` corrections are stored, the current :math:`J^{-1}` is
    folded into :math:`J^{-1}_0` and the history of corrections restarts.

    References
    ----------
    .. [Johnson] Johnson, D. D. (1988). Modified Broyden's method for
       accelerating convergence in self-consistent calculations. Physical
       Review B, 38(18), 12807–12813.
    """

    mix_param: float
    """Damping factor, the initial inverse Jacobian is ``-mix_param * I``."""

    generations: int
    """Maximum number of stored corrections before folding."""

    omega0: float
    """Weight of the initial inverse Jacobian (regularization)."""

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
        self.omega0 = self.options["omega0"]
        self.min_weight = self.options["min_weight"]
        self.max_weight = self.options["max_weight"]
        self.weight_factor = self.options["weight_factor"]

        if self.generations < 1:
            raise ValueError(
                "Broyden mixing requires at least one generation, but "
                f"{self.generations} was given."
            )
        if self.min_weight > self.max_weight:
            raise ValueError(
                f"Minimal weight ({self.min_weight}) of the Broyden mixer "
                f"exceeds the maximal weight ({self.max_weight})."
            )

        self._inv_jac0: Tensor | None = None
        self._inv_jac: Tensor | None = None

        # previous iterate and residual
        self._x_last: Tensor | None = None
        self._f_last: Tensor | None = None

        # corrections: normalized |dF>, |u>, weights and overlaps <dF|dF>
        self._df: Tensor | None = None
        self._uu: Tensor | None = None
        self._ww: Tensor | None = None
        self._aa: Tensor | None = None
        self._nhist = 0

    def reset(self, nelem: int) -> None:
        """Reset mixer to its initial state with J^-1 = -damp * I."""
        super().reset(nelem)

        eye = torch.eye(nelem, **self.dd)
        self._inv_jac0 = -self.mix_param * eye
        self._inv_jac = self._inv_jac0.clone()

        self._x_last = self._f_last = None

        self._df = torch.zeros((self.generations, nelem), **self.dd)
        self._uu = torch.zeros((self.generations, nelem), **self.dd)
        self._ww = torch.zeros(self.generations, **self.dd)
        self._aa = torch.zeros((self.generations, self.generations), **self.dd)
        self._nhist = 0

    @property
    def nhist(self) -> int:
        """Number of stored corrections."""
        return self._nhist

    def mix(self, q_inp_res: Tensor, q_diff: Tensor) -> Tensor:
        """
        Performs the modified Broyden mixing operation.

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
        self.iter_step += 1

        # first step: nothing to learn from, J^-1 = -damp * I
        if self._x_last is None or self._f_last is None:
            self._x_last, self._f_last = x, f
            return self._update(q_inp_res, x - self._apply(f))

        if self._nhist == self.generations:
            self._fold()

        self._add_correction(x, f)
        self._inv_jac = self._assemble()

        self._x_last, self._f_last = x, f
        return self._update(q_inp_res, x - self._apply(f))

    def has_inverse_jacobian(self) -> bool:
        return True

    def get_inverse_jacobian(self, out: Tensor | None = None) -> Tensor:
        """
        Return a copy of the current approximate inverse Jacobian.

        Parameters
        ----------
        out : Tensor | None, optional
            Tensor of shape ``(nelem, nelem)`` to copy the inverse Jacobian
            into. If not given, a new tensor is returned.

        Returns
        -------
        Tensor
            Approximate inverse Jacobian (shape: ``(nelem, nelem)``).
        """
        if self._inv_jac is None or self.nelem is None:
            raise MixerStateError(
                "The Broyden mixer has to be reset before the inverse "
                "Jacobian is available."
            )

        if out is None:
            return self._inv_jac.clone()

        if out.shape != self._inv_jac.shape:
            raise MixerShapeError(
                f"Output tensor of shape {tuple(out.shape)} cannot hold the "
                f"inverse Jacobian of shape {tuple(self._inv_jac.shape)}."
            )

        out.copy_(self._inv_jac)
        return out

    def _apply(self, f: Tensor) -> Tensor:
        assert self._inv_jac is not None
        return self._inv_jac @ f

    def _weight(self, f: Tensor) -> float:
        """Weight of a correction from the norm of the residual of the step."""
        fnorm = float(torch.linalg.vector_norm(f))

        if fnorm > self.weight_factor / self.max_weight:
            weight = self.weight_factor / fnorm
        else:
            weight = self.max_weight

        return max(weight, self.min_weight)

    def _add_correction(self, x: Tensor, f: Tensor) -> None:
        assert self._x_last is not None and self._f_last is not None
        assert self._df is not None and self._uu is not None
        assert self._ww is not None and self._aa is not None
        assert self._inv_jac0 is not None

        # |dF(m-1)> and |dx(m-1)>, normalized by |F(m) - F(m-1)| (eq. 13a)
        df = f - self._f_last
        norm = torch.linalg.vector_norm(df).clamp(min=torch.finfo(df.dtype).eps)
        df = df / norm
        dx = (x - self._x_last) / norm

        # |u(m-1)> (eq. 13b)
        uu = dx - self._inv_jac0 @ df

        n = self._nhist
        overlap = self._df[:n] @ df
        self._aa[:n, n] = overlap
        self._aa[n, :n] = overlap
        self._aa[n, n] = 1.0

        self._df[n] = df
        self._uu[n] = uu
        self._ww[n] = self._weight(f)
        self._nhist += 1

    def _assemble(self) -> Tensor:
        assert self._inv_jac0 is not None and self._aa is not None
        assert self._df is not None and self._uu is not None
        assert self._ww is not None

        n = self._nhist
        ww = self._ww[:n]

        # beta = (w0^2 I + W A W)^-1 (eq. 13c)
        beta = einsum("i,ij,j->ij", ww, self._aa[:n, :n], ww)
        beta = beta + self.omega0**2 * torch.eye(n, **self.dd)
        beta = torch.linalg.inv(beta)

        gamma = einsum("i,ij,j->ij", ww, beta, ww)
        return self._inv_jac0 + einsum(
            "iv,ij,jw->vw", self._uu[:n], gamma, self._df[:n]
        )

    def _fold(self) -> None:
        """Fold all stored corrections into the initial inverse Jacobian."""
        assert self._inv_jac is not None
        logger.debug(
            "Broyden step %d: folding %d corrections into the inverse Jacobian.",
            self.iter_step,
            self._nhist,
        )

        self._inv_jac0 = self._inv_jac.clone()
        self._nhist = 0
