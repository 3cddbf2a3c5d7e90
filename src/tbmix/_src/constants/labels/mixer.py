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
Labels: Mixer
=============

Labels for mixer-related options.
"""

MIXER_LINEAR = 0
"""Integer code for linear/simple mixing."""

MIXER_LINEAR_STRS = ("linear", "l", "simple", "s")
"""String codes for linear/simple mixing."""

MIXER_ANDERSON = 1
"""Integer code for Anderson mixing."""

MIXER_ANDERSON_STRS = ("anderson", "a")
"""String codes for Anderson mixing."""

MIXER_BROYDEN = 2
"""Integer code for (modified) Broyden mixing."""

MIXER_BROYDEN_STRS = ("broyden", "b", "modified_broyden")
"""String codes for (modified) Broyden mixing."""

MIXER_DIIS = 3
"""Integer code for DIIS/Pulay mixing."""

MIXER_DIIS_STRS = ("diis", "d", "pulay")
"""String codes for DIIS/Pulay mixing."""

MIXER_MAP = ["Linear", "Anderson", "Broyden", "DIIS"]
"""String map (for printing) of mixing methods."""
