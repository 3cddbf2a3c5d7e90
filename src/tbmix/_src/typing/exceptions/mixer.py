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
Exceptions: Mixer
=================

Errors raised when the mixer contract is violated. Numerical degeneracies
inside the mixers are handled locally and never raise.
"""

__all__ = [
    "MixerBindingError",
    "MixerShapeError",
    "MixerStateError",
    "UnsupportedMixerOperationError",
]


class MixerStateError(RuntimeError):
    """
    Error for calling a mixer operation in the wrong state, e.g., mixing
    before the mixer was reset or using an unbound handle.
    """


class MixerBindingError(RuntimeError):
    def __init__(self, bound: str, new: str) -> None:
        self.message = (
            f"Mixer handle is already bound to a '{bound}' mixer and cannot "
            f"take a '{new}' mixer. Release the handle first."
        )
        super().__init__(self.message)


class MixerShapeError(ValueError):
    """
    Error for vectors whose size does not match the size the mixer was reset
    for.
    """


class UnsupportedMixerOperationError(RuntimeError):
    def __init__(self, label: str, operation: str) -> None:
        self.message = f"{label} mixer does not provide {operation}"
        super().__init__(self.message)
