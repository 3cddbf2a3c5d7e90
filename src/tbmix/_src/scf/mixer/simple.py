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
Simple Mixing
=============
"""

from __future__ import annotations

import torch

from tbmix._src.constants import defaults
from tbmix._src.typing import MixOptions, Tensor

from .base import Mixer

__all__ = ["Simple"]


default_opts = {"damp": defaults.DAMP}


class Simple(Mixer):
    r"""
    Simple linear mixer mixing algorithm.

    Mixes the current iterate with a fraction of its residual:

    .. math::

        x_{n+1} = x_n + f (x^\mathrm{out}_n - x_n)

    Where :math:`x_n`/:math:`x^\mathrm{out}_n` are the input/output systems
    of the iteration respectively & :math:`f` is the damping factor. Given a
    small enough damping factor, the `Simple` mixer is guaranteed to converge,
    however, it also tends to be significantly slower than other, more
    advanced, methods.

    Examples
    --------
    The attractive fixed point of the function:

    >>> import torch
    >>>
    >>> def func(x: torch.Tensor) -> torch.Tensor:
    >>>     return torch.tensor(
    >>>         [0.5 * torch.sqrt(x[0] + x[1]), 1.5 * x[0] + 0.5 * x[1]]
    >>>     )

    can be identified using the ``Simple`` mixer as follows:

    >>> from tbmix.mixers import Simple
    >>>
    >>> x = torch.tensor([2., 2.])  # Initial guess
    >>> mixer = Simple()
    >>> mixer.reset(2)
    >>> for i in range(200):
    >>>     mixer.mix(x, func(x) - x)
    >>> print(x)
    >>> # tensor([1., 3.])
    """

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

    def mix(self, q_inp_res: Tensor, q_diff: Tensor) -> Tensor:
        x, f = self._prepare(q_inp_res, q_diff)
        self.iter_step += 1

        return self._update(q_inp_res, x + self.options["damp"] * f)
