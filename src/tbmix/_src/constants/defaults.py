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
Default Settings
================

This module contains the defaults for all `tbmix` mixers and drivers.
"""

from __future__ import annotations

# General

STRICT = False
"""
Strict mode. Always throws errors if ``True``, instead of making sensible
adaptations.
"""

VERBOSITY = 5
"""Verbosity of printout."""

LOG_LEVEL = "info"
"""Default logging level."""

LOG_LEVEL_CHOICES = ["critical", "error", "warn", "warning", "info", "debug"]
"""List of possible choices for `LOG_LEVEL`."""

# Mixer settings

MIXER = "broyden"
"""SCF mixing scheme for convergence acceleration."""

DAMP = 0.3
"""Damping factor for simple mixing."""

DAMP_ANDERSON = 0.5
"""Damping factor for Anderson mixing (Eyert)."""

DAMP_ANDERSON_INIT = 0.01
"""Damping factor for the first (simple) Anderson mixing step."""

DAMP_BROYDEN = 0.2
"""Damping factor (initial inverse Jacobian scale) for Broyden mixing."""

DAMP_DIIS = 0.2
"""Damping factor applied to the residuals in DIIS mixing."""

GENERATIONS_ANDERSON = 5
"""Maximum number of stored iterate/residual pairs in Anderson mixing."""

GENERATIONS_BROYDEN = 40
"""
Maximum number of stored Broyden updates before they are folded into the
inverse Jacobian.
"""

GENERATIONS_DIIS = 6
"""Maximum number of stored iterate/residual pairs in DIIS mixing."""

DIAGONAL_OFFSET = 0.01
"""Offset for the diagonal of the Anderson equation system (Eyert, eq. 8.2)."""

BROYDEN_OMEGA0 = 0.01
"""Weight of the zeroth step in the modified Broyden method (Johnson)."""

BROYDEN_MIN_WEIGHT = 1.0
"""Minimal weight of a Broyden update."""

BROYDEN_MAX_WEIGHT = 1.0e5
"""Maximal weight of a Broyden update."""

BROYDEN_WEIGHT_FACTOR = 1.0e-2
"""Numerator of the weight of a Broyden update (weight = factor / |F|)."""

DIIS_FROM_START = True
"""Whether DIIS extrapolation starts before the history is full."""

DIIS_MAX_COND = 1.0e12
"""Largest condition number of the DIIS equation system before eviction."""

# Fixed-point driver

MAXITER = 100
"""Maximum number of SCF iterations."""

X_ATOL = 1.0e-8
"""Absolute tolerance for the norm of the residual in the SCF driver."""

SCF_FORCE_CONVERGENCE = False
"""Whether to raise an error instead of continuing with un-converged results."""

# Numerical derivatives

NUMDERIVS_STEP = 1.0e-4
"""Step size for central finite differences of gradients."""
