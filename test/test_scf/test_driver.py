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
Test the self-consistent iterations and their warnings and errors.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
import torch

from tbmix import OutputHandler, new_mixer
from tbmix._src.typing import DD
from tbmix.exceptions import SCFConvergenceError, SCFConvergenceWarning
from tbmix.mixers import FixedPointResult, solve

from ..conftest import DEVICE
from ..utils import cubic, linear_residual, reference


@pytest.mark.parametrize("dtype", [torch.float, torch.double])
def test_result(dtype: torch.dtype) -> None:
    dd: DD = {"device": DEVICE, "dtype": dtype}
    tol = 1e-5 if dtype == torch.float else 1e-8

    handle = new_mixer("diis", **dd)
    result = solve(linear_residual, torch.zeros(2, **dd), handle, x_atol=tol)

    assert isinstance(result, FixedPointResult)
    assert result.converged is True
    assert len(result.residuals) == result.iterations
    assert result.residuals[-1] < tol
    assert result.x.dtype == dtype
    assert pytest.approx(reference(dd).cpu().tolist(), abs=tol) == (
        result.x.cpu().tolist()
    )


def test_converged_guess() -> None:
    dd: DD = {"device": DEVICE, "dtype": torch.double}

    handle = new_mixer("broyden", **dd)
    result = solve(linear_residual, reference(dd), handle)

    # no mixing required
    assert result.converged is True
    assert result.iterations == 1
    assert result.residuals == [0.0]
    assert handle.mixer.iter_step == 0


def test_guess_untouched() -> None:
    guess = torch.ones(5, dtype=torch.double)
    solve(cubic, guess, new_mixer("anderson", dtype=torch.double))

    assert torch.equal(guess, torch.ones(5, dtype=torch.double))


@pytest.mark.parametrize("dtype", [torch.float, torch.double])
def test_unconverged_warning(dtype: torch.dtype) -> None:
    dd: DD = {"device": DEVICE, "dtype": dtype}

    maxiter = 3
    handle = new_mixer("linear", damp=0.01, **dd)
    result = solve(cubic, torch.ones(5, **dd), handle, maxiter=maxiter)

    assert result.converged is False
    assert result.iterations == maxiter
    assert len(result.residuals) == maxiter

    assert len(OutputHandler.warnings) == 1

    msg, warning_type = OutputHandler.warnings[0]
    assert warning_type is SCFConvergenceWarning
    assert f"after {maxiter} cycles" in msg
    assert "Simple" in msg and "0.01" in msg


def test_unconverged_error() -> None:
    handle = new_mixer("linear", damp=0.01, dtype=torch.double)

    with pytest.raises(SCFConvergenceError, match="after 3 cycles"):
        solve(
            cubic,
            torch.ones(5, dtype=torch.double),
            handle,
            maxiter=3,
            force_convergence=True,
        )

    assert len(OutputHandler.warnings) == 0


def test_fail_unbound_handle() -> None:
    handle = new_mixer()
    handle.release()

    with pytest.raises(RuntimeError):
        solve(cubic, torch.ones(5), handle)


def test_verbose_output() -> None:
    handle = new_mixer("diis", dtype=torch.double)

    with patch.object(OutputHandler.console_logger, "info") as mocker:
        with OutputHandler.with_verbosity(6):
            result = solve(linear_residual, torch.zeros(2, dtype=torch.double), handle)

    # header (2 lines) and one row per iteration
    assert mocker.call_count == 2 + result.iterations


def test_quiet_output() -> None:
    with patch.object(OutputHandler.console_logger, "info") as mocker:
        with OutputHandler.with_verbosity(0):
            solve(
                linear_residual,
                torch.zeros(2, dtype=torch.double),
                new_mixer("diis", dtype=torch.double),
            )

    mocker.assert_not_called()
