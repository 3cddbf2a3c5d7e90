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
Typing: Compatibility
=====================

Since typing still significantly changes across different Python versions,
all the special cases are handled here.
"""
from __future__ import annotations

import sys

from tad_mctc.typing.compat import Callable, Generator, override
from tad_mctc.typing.pytorch import Tensor

__all__ = [
    "Callable",
    "FixedPointFunction",
    "Generator",
    "MixOptions",
    "Tensor",
    "override",
]


FixedPointFunction = Callable[[Tensor], Tensor]
"""Map whose fixed point is sought, i.e., ``x -> f(x)``."""

if sys.version_info >= (3, 10):
    # "from __future__ import annotations" only affects type annotations
    # not type aliases, hence "|" is not allowed before Python 3.10
    MixOptions = dict[str, int | float | bool | list | None]
elif sys.version_info >= (3, 9):
    from typing import Union

    MixOptions = dict[str, Union[int, float, bool, list, None]]
else:
    raise RuntimeError(
        f"'tbmix' requires at least Python 3.9 (Python {sys.version_info.major}."
        f"{sys.version_info.minor}.{sys.version_info.micro} found)."
    )
