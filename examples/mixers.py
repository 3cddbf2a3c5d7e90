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
Compare the number of iterations of all mixers for a small non-linear
fixed-point problem.
"""
import logging

import torch

import tbmix
from tbmix._src.io import get_logging_config
from tbmix.mixers import solve

logging.basicConfig(**get_logging_config(level="warning"))

dd = {"device": torch.device("cpu"), "dtype": torch.double}

d = torch.tensor([3.0, 2.0, 1.5, 1.0, 0.5], **dd)


def func(x: torch.Tensor) -> torch.Tensor:
    return x + (-d * x - 0.01 * x**3)


tbmix.OutputHandler.verbosity = 6

for mixer in ("linear", "anderson", "broyden", "diis"):
    handle = tbmix.new_mixer(mixer, **dd)
    print(f"\n{handle.label}")

    result = solve(func, torch.ones(5, **dd), handle, maxiter=200)
    print(f"converged: {result.converged} ({result.iterations} iterations)")

    if handle.has_inverse_jacobian():
        print(handle.get_inverse_jacobian().diagonal())

tbmix.OutputHandler.dump_warnings()
