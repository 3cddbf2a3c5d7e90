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
tbmix
=====

Mixers for the convergence acceleration of self-consistent field iterations
in tight-binding calculations.
"""

from tbmix.__version__ import __version__

from tbmix._src.io import OutputHandler as OutputHandler
from tbmix._src.scf.mixer.factory import new_mixer as new_mixer
from tbmix._src.scf.mixer.handle import MixerHandle as MixerHandle

from tbmix import config as config
from tbmix import derivs as derivs
from tbmix import exceptions as exceptions
from tbmix import labels as labels
from tbmix import mixers as mixers


__all__ = [
    "config",
    "derivs",
    "exceptions",
    "labels",
    "mixers",
    "MixerHandle",
    "OutputHandler",
    "new_mixer",
    "__version__",
]
