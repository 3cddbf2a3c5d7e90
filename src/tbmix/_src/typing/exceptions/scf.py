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
Exceptions: SCF
===============

Exceptions for the self-consistent iterations.
"""

__all__ = ["SCFConvergenceError", "SCFConvergenceWarning"]


class SCFConvergenceError(RuntimeError):
    def __init__(self, msg: str) -> None:
        self.message = msg
        super().__init__(self.message)


class SCFConvergenceWarning(RuntimeWarning):
    """
    Warning for failed SCF convergence.
    """
