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
Mixers
======

Mixing algorithms for the convergence acceleration of self-consistent
iterations and the handle that dispatches to them.
"""

from tbmix._src.scf.driver import FixedPointResult as FixedPointResult
from tbmix._src.scf.driver import solve as solve
from tbmix._src.scf.mixer.anderson import Anderson as Anderson
from tbmix._src.scf.mixer.base import Mixer as Mixer
from tbmix._src.scf.mixer.broyden import Broyden as Broyden
from tbmix._src.scf.mixer.diis import DIIS as DIIS
from tbmix._src.scf.mixer.factory import new_mixer as new_mixer
from tbmix._src.scf.mixer.handle import MixerHandle as MixerHandle
from tbmix._src.scf.mixer.history import History as History
from tbmix._src.scf.mixer.simple import Simple as Simple
