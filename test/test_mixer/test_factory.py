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
Test creation of mixers from a configuration.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
import torch

from tbmix import OutputHandler, new_mixer
from tbmix._src.constants import defaults, labels
from tbmix.config import ConfigMixer
from tbmix.exceptions import ParameterWarning
from tbmix.mixers import DIIS, Anderson, Broyden, Simple

from ..conftest import DEVICE


def test_default() -> None:
    handle = new_mixer()
    assert isinstance(handle.mixer, Broyden)
    assert handle.mixer.options["damp"] == defaults.DAMP_BROYDEN
    assert handle.mixer.nelem is None


@pytest.mark.parametrize(
    "mixer, cls",
    [
        ("linear", Simple),
        ("simple", Simple),
        ("Anderson", Anderson),
        ("broyden", Broyden),
        ("diis", DIIS),
        ("pulay", DIIS),
        (labels.MIXER_LINEAR, Simple),
        (labels.MIXER_ANDERSON, Anderson),
        (labels.MIXER_BROYDEN, Broyden),
        (labels.MIXER_DIIS, DIIS),
    ],
)
def test_label(mixer: str | int, cls: type) -> None:
    handle = new_mixer(mixer)
    assert isinstance(handle.mixer, cls)


def test_options() -> None:
    handle = new_mixer("anderson", damp=0.1, generations=3, damp_init=0.05)

    opts = handle.mixer.options
    assert opts["damp"] == 0.1
    assert opts["generations"] == 3
    assert opts["damp_init"] == 0.05
    assert opts["diagonal_offset"] == defaults.DIAGONAL_OFFSET


def test_config_object() -> None:
    cfg = ConfigMixer(mixer="diis", generations=4)
    handle = new_mixer(cfg)

    assert isinstance(handle.mixer, DIIS)
    assert handle.mixer.generations == 4


def test_generations_ignored_for_linear() -> None:
    handle = new_mixer("linear", generations=4)
    assert "generations" not in handle.mixer.options
    assert len(OutputHandler.warnings) == 0


@pytest.mark.parametrize("dtype", [torch.float, torch.double])
def test_dd(dtype: torch.dtype) -> None:
    handle = new_mixer("broyden", device=DEVICE, dtype=dtype)
    handle.reset(3)

    assert handle.mixer.dd["dtype"] == dtype
    assert handle.get_inverse_jacobian().dtype == dtype


def test_unknown_option_warning() -> None:
    handle = new_mixer("linear", omega0=0.1)

    assert "omega0" not in handle.mixer.options
    assert len(OutputHandler.warnings) == 1

    msg, warning_type = OutputHandler.warnings[0]
    assert warning_type is ParameterWarning
    assert "omega0" in msg and "Linear" in msg


def test_fail_unknown_option_strict() -> None:
    with pytest.raises(ValueError):
        new_mixer("linear", strict=True, omega0=0.1)


def test_fail_config_and_kwargs() -> None:
    with pytest.raises(TypeError):
        new_mixer(ConfigMixer(), damp=0.1)


def test_fail_label() -> None:
    with pytest.raises(ValueError):
        new_mixer("newton")


def test_settings_output() -> None:
    with patch.object(OutputHandler.console_logger, "info") as mocker:
        with OutputHandler.with_verbosity(6):
            new_mixer("diis", damp=0.4)

    mocker.assert_called_once()
    out = mocker.call_args[0][0]
    assert "Mixer Settings" in out and "DIIS" in out


def test_settings_quiet() -> None:
    with patch.object(OutputHandler.console_logger, "info") as mocker:
        with OutputHandler.with_verbosity(5):
            new_mixer("diis")

    mocker.assert_not_called()
