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
Finite difference Hessian of a harmonic model potential.
"""
import torch

from tbmix.derivs import NumDerivs

dd = {"device": torch.device("cpu"), "dtype": torch.double}

# equilibrium geometry and force constants of two springs along z
ref = torch.tensor([[0.0, 0.0, 0.0], [0.0, 0.0, 1.4], [0.0, 0.0, 2.8]], **dd)
k = 0.5


def gradient(positions: torch.Tensor) -> torch.Tensor:
    pos = positions.clone().requires_grad_(True)
    dist = torch.linalg.vector_norm(pos[1:] - pos[:-1], dim=-1)
    energy = 0.5 * k * ((dist - 1.4) ** 2).sum()
    (grad,) = torch.autograd.grad(energy, pos)
    return grad


derivs = NumDerivs(ref, delta=1e-4)

x, finished = derivs.positions, False
while not finished:
    x, finished = derivs.next(gradient(x))

torch.set_printoptions(precision=3, linewidth=200)
print(derivs.hessian)
