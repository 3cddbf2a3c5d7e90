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
Mixer
=====

This module contains the SCF mixers for convergence acceleration.
"""

from .anderson import Anderson
from .base import Mixer
from .broyden import Broyden
from .diis import DIIS
from .factory import new_mixer
from .handle import MixerHandle
from .history import History
from .simple import Simple

__all__ = [
    "Anderson",
    "Broyden",
    "DIIS",
    "History",
    "Mixer",
    "MixerHandle",
    "Simple",
    "new_mixer",
]
