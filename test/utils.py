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
Collection of utility functions for testing.
"""

from __future__ import annotations

import torch

from tbmix._src.typing import DD, Tensor


def linear_residual(x: Tensor) -> Tensor:
    """
    Fixed-point function with the fixed point ``[1.0, -0.5]``.

    The residual is ``-2 (x - x*)``, i.e., plain iterations overshoot and
    oscillate without convergence.
    """
    ref = torch.tensor([1.0, -0.5], device=x.device, dtype=x.dtype)
    return x - 2.0 * (x - ref)


def cubic(x: Tensor) -> Tensor:
    """
    Non-linear fixed-point function with the fixed point at zero.

    Directly iterating this function diverges, the mixers must bring it to
    convergence.
    """
    d = torch.tensor([3.0, 2.0, 1.5, 1.0, 0.5], device=x.device, dtype=x.dtype)
    return x + (-d * x - 0.01 * x**3)


def reference(dd: DD) -> Tensor:
    """Fixed point of :func:`linear_residual`."""
    return torch.tensor([1.0, -0.5], **dd)
