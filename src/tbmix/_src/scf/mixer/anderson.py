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
Anderson Mixing
===============

This module contains the Anderson mixing algorithm.
"""

from __future__ import annotations

import logging

import torch
from tad_mctc.math import einsum

from tbmix._src.constants import defaults
from tbmix._src.typing import MixOptions, Tensor

from .base import Mixer
from .history import History

__all__ = ["Anderson"]


logger = logging.getLogger(__name__)


default_opts = {
    "damp": defaults.DAMP_ANDERSON,
    "damp_init": defaults.DAMP_ANDERSON_INIT,
    "generations": defaults.GENERATIONS_ANDERSON,
    "diagonal_offset": defaults.DIAGONAL_OFFSET,
    "conv_damp": None,
}


class Anderson(Mixer):
    """
    Accelerated Anderson mixing algorithm.

    Anderson mixing is a method for accelerating convergence. Instead of mixing
    the input and output vectors directly together (simple mixing), it uses the
    "optimal linear combination of the input and output vectors within the
    spaces spanned by the vectors of the M previous iterations". This way, "the
    memory of the whole iteration process is built in which helps finding the
    final solution quite fast".

    Note
    ----
    Simple mixing with ``damp_init`` is used for the first step after a reset,
    as no previous iterations are available yet. If the equation system for
    the mixing coefficients is singular (e.g. for identical residuals), the
    step falls back to simple mixing with ``damp``. The same holds for all
    steps if only a single generation is kept.

    The Anderson mixing functions primarily follow the equations set out
    by Eyert [Eyert]_. For more information on Anderson mixing see
    "Anderson Acceleration, Mixing and Extrapolation" [Anderson]_.

    Warning
    -------
    Setting ``generations`` too high can lead to a linearly dependent set
    of equations. However, this effect can be mitigated through the use of
    the ``diagonal_offset`` parameter.

    References
    ----------
    .. [Eyert] Eyert, V. (1996). A Comparative Study on Methods for
       Convergence Acceleration of Iterative Vector Sequences. Journal of
       Computational Physics, 124(2), 271–285.
    .. [Anderson] Anderson, D. M. (2018). Comments on “Anderson Acceleration,
       Mixing and Extrapolation.” Numerical Algorithms, 80(1), 135–234.
    """

    mix_param: float
    """
    Mixing parameter, ∈(0, 1], controls the extent of mixing. Larger values
    result in more aggressive mixing. Defaults to 0.5 according to [Eyert]_.
    """

    init_mix_param: float
    """Mixing parameter to use during the initial simple mixing step (0.01)."""

    diagonal_offset: float | None
    """
    Offset added to the equation system's diagonal's to prevent a linear
    dependence during the mixing process. If set to ``None`` then rescaling will
    be disabled. [DEFAULT=0.01]
    """

    generations: int
    """
    Maximum number of iterate/residual pairs (including the current one) used
    during mixing. Defaults to 5 as suggested by [Eyert]_.
    """

    conv_mix_param: list[tuple[float, float]]
    """
    Pairs of ``(tolerance, damp)``. If the largest absolute residual element
    drops below a tolerance, the corresponding damping factor replaces
    ``mix_param``. Tighter tolerances take precedence.
    """

    n_fallback: int
    """Number of steps since the last reset that fell back to simple mixing."""

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
        self.init_mix_param = self.options["damp_init"]
        self.diagonal_offset = self.options["diagonal_offset"]

        if self.generations < 1:
            raise ValueError(
                "Anderson mixing requires at least one generation, but "
                f"{self.generations} was given."
            )

        conv = self.options["conv_damp"]
        self.conv_mix_param = sorted(
            ((float(tol), float(damp)) for tol, damp in (conv or [])),
            reverse=True,
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
        Performs the Anderson mixing operation.

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

        # Insufficient history for Anderson; use simple mixing
        if self.iter_step == 1:
            return self._update(q_inp_res, x + self.init_mix_param * f)

        mix_param = self._mix_param(f)
        if len(self.history) == 1:
            return self._update(q_inp_res, x + mix_param * f)

        x_mix = self._extrapolate(mix_param)

        if x_mix is None:
            self.n_fallback += 1
            logger.debug(
                "Anderson step %d: singular equation system for %d "
                "generations, falling back to simple mixing.",
                self.iter_step,
                len(self.history),
            )
            x_mix = x + mix_param * f

        return self._update(q_inp_res, x_mix)

    def _mix_param(self, f: Tensor) -> float:
        if len(self.conv_mix_param) == 0:
            return self.mix_param

        mix_param = self.mix_param
        rr = float(f.abs().max())
        for tol, damp in self.conv_mix_param:
            if rr < tol:
                mix_param = damp
        return mix_param

    def _extrapolate(self, mix_param: float) -> Tensor | None:
        assert self.history is not None

        # Following Eyert's notation, "f" refers to the residuals, and index 0
        # denotes the current step "l".
        x_hist = self.history.iterates
        f_hist = self.history.residuals

        # Setup and solve the linear equation system, as described in
        # equation 4.3 (Eyert), to get the coefficients "thetas":
        #   a(i,j) =  <F(l) - F(l-i)|F(l) - F(l-j)>
        #   b(i)   =  <F(l) - F(l-i)|F(l)>
        df = f_hist[0] - f_hist[1:]
        a = einsum("iv,jv->ij", df, df)
        b = einsum("iv,v->i", df, f_hist[0])

        # Identical residuals do not span any direction
        eps = torch.finfo(a.dtype).eps
        if a.diagonal().max() <= eps * torch.dot(f_hist[0], f_hist[0]):
            return None

        # Rescale diagonals to prevent linear dependence on the residual
        # vectors by adding 1 + offset^2 to the diagonals of "a", see
        # equation 8.2 (Eyert)
        if self.diagonal_offset is not None:
            eye = torch.eye(a.shape[-1], device=a.device, dtype=a.dtype)
            one = torch.tensor(1.0, device=a.device, dtype=a.dtype)
            a = a * torch.where(eye != 0, eye + self.diagonal_offset**2, one)

        if torch.linalg.cond(a) * eps > 1.0:
            return None

        thetas, info = torch.linalg.solve_ex(a, b)
        if int(info) != 0 or not torch.isfinite(thetas).all():
            return None

        # Construct eq. 4.1 & 4.2 (Eyert). These are the "averaged" histories
        # of x and F respectively:
        #   x_bar = |x(l)> + sum(j=1 -> m) ϑ_j(l) * (|x(l-j)> - |x(l)>)
        #   f_bar = |F(l)> + sum(j=1 -> m) ϑ_j(l) * (|F(l-j)> - |F(l)>)
        x_bar = x_hist[0] + einsum("h,hv->v", thetas, x_hist[1:] - x_hist[0])
        f_bar = f_hist[0] - einsum("h,hv->v", thetas, df)

        # Calculate the new mixed dQ following equation 4.4 (Eyert):
        #   |x(l+1)> = |x_bar(l)> + beta(l)|f_bar(l)>
        return x_bar + mix_param * f_bar
