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
SCF: Driver
===========

Self-consistent iterations of a fixed-point function with a mixer. The driver
owns the convergence criterion and the iteration limit; the mixer never
terminates the iterations itself.
"""

from __future__ import annotations

import logging

import torch

from tbmix._src.constants import defaults
from tbmix._src.io import OutputHandler
from tbmix._src.typing import FixedPointFunction, NamedTuple, Tensor
from tbmix._src.typing.exceptions import SCFConvergenceError, SCFConvergenceWarning

from .mixer import MixerHandle

__all__ = ["FixedPointResult", "solve"]


logger = logging.getLogger(__name__)


class FixedPointResult(NamedTuple):
    """Result of the self-consistent iterations."""

    x: Tensor
    """Last (mixed) iterate."""

    converged: bool
    """Whether the residual norm dropped below the tolerance."""

    iterations: int
    """Number of evaluations of the fixed-point function."""

    residuals: list[float]
    """Norm of the residual in each iteration."""


def solve(
    func: FixedPointFunction,
    guess: Tensor,
    mixer: MixerHandle,
    maxiter: int = defaults.MAXITER,
    x_atol: float = defaults.X_ATOL,
    force_convergence: bool = defaults.SCF_FORCE_CONVERGENCE,
) -> FixedPointResult:
    """
    Iterate ``x -> func(x)`` to self-consistency.

    The mixer is reset once for the size of the guess. In every iteration,
    the residual ``func(x) - x`` is computed and the iterate is updated by
    the mixer until the norm of the residual is below ``x_atol``.

    Parameters
    ----------
    func : FixedPointFunction
        Function whose fixed point is sought.
    guess : Tensor
        Initial guess. The tensor is not modified.
    mixer : MixerHandle
        Handle of the mixer used for convergence acceleration.
    maxiter : int, optional
        Maximum number of iterations.
    x_atol : float, optional
        Absolute tolerance for the norm of the residual.
    force_convergence : bool, optional
        Raise an error if the iterations do not converge. Otherwise, a warning
        is issued and the last iterate is returned.

    Returns
    -------
    FixedPointResult
        Last iterate, convergence flag, number of iterations and residual
        norms.

    Raises
    ------
    SCFConvergenceError
        Iterations did not converge and ``force_convergence`` is set.
    """
    x = guess.detach().clone()
    mixer.reset(x.numel())

    OutputHandler.write_stdout(f"\n{'iter':<5} {'|Delta x|':<16}", v=6)
    OutputHandler.write_stdout(24 * "-", v=6)

    residuals: list[float] = []
    for i in range(1, maxiter + 1):
        diff = func(x) - x
        rnorm = float(torch.linalg.vector_norm(diff))
        residuals.append(rnorm)

        OutputHandler.write_row(f"{i:4}", [f"{rnorm: .6E}"], v=6)

        if rnorm < x_atol:
            logger.debug("Converged after %d iterations (|dx| = %.3e).", i, rnorm)
            return FixedPointResult(x, True, i, residuals)

        mixer.mix(x, diff)

    msg = (
        f"SCF does not converge after {maxiter} cycles using "
        f"{mixer.label} mixing with a damping factor of "
        f"{mixer.mixer.options['damp']}."
    )
    if force_convergence is True:
        raise SCFConvergenceError(msg)

    # only issue warning, return anyway
    OutputHandler.warn(msg, SCFConvergenceWarning)
    return FixedPointResult(x, False, maxiter, residuals)
