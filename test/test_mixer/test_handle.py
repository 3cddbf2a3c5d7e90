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
Test the mixer handle.
"""

from __future__ import annotations

import pytest
import torch

from tbmix.exceptions import (
    MixerBindingError,
    MixerStateError,
    UnsupportedMixerOperationError,
)
from tbmix.mixers import DIIS, Anderson, Broyden, MixerHandle, Simple


def test_unbound() -> None:
    handle = MixerHandle()
    assert handle.is_bound is False

    with pytest.raises(MixerStateError):
        handle.reset(2)

    with pytest.raises(MixerStateError):
        handle.mix(torch.zeros(2), torch.ones(2))

    with pytest.raises(MixerStateError):
        _ = handle.label

    with pytest.raises(MixerStateError):
        handle.release()


def test_bind() -> None:
    handle = MixerHandle()
    mixer = Simple()
    handle.init(mixer)

    assert handle.is_bound is True
    assert handle.mixer is mixer
    assert handle.label == "Simple"


def test_fail_bind_twice() -> None:
    handle = MixerHandle(Simple())

    with pytest.raises(MixerBindingError):
        handle.init(DIIS())

    # original binding is kept
    assert isinstance(handle.mixer, Simple)


def test_fail_bind_type() -> None:
    with pytest.raises(TypeError):
        MixerHandle("broyden")  # type: ignore


def test_release() -> None:
    mixer = Anderson()
    handle = MixerHandle(mixer)

    assert handle.release() is mixer
    assert handle.is_bound is False

    # handle can be bound again
    handle.init(Broyden())
    assert handle.label == "Broyden"


def test_forward_mix() -> None:
    handle = MixerHandle(Broyden({"damp": 0.2}))
    handle.reset(2)

    q = torch.tensor([0.0, 0.0])
    out = handle.mix(q, torch.tensor([1.0, -0.5]))

    assert out is q
    assert pytest.approx([0.2, -0.1]) == q.tolist()


@pytest.mark.parametrize("cls", [Simple, Anderson, DIIS])
def test_inverse_jacobian_unsupported(cls) -> None:
    handle = MixerHandle(cls())
    handle.reset(3)

    assert handle.has_inverse_jacobian() is False

    with pytest.raises(UnsupportedMixerOperationError) as exc:
        handle.get_inverse_jacobian()

    assert f"{cls.__name__} mixer does not provide inverse Jacobian" in str(
        exc.value
    )


def test_inverse_jacobian() -> None:
    handle = MixerHandle(Broyden({"damp": 0.5}))
    handle.reset(3)

    assert handle.has_inverse_jacobian() is True

    out = torch.empty((3, 3))
    handle.get_inverse_jacobian(out)
    assert torch.allclose(out, -0.5 * torch.eye(3))
