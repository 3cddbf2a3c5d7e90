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
Mixer: Handle
=============

The handle owns exactly one concrete mixer (simple, Anderson, Broyden or
DIIS) and forwards the uniform mixer contract to it. The SCF driver only
interacts with the handle.

Example
-------
>>> import torch
>>> from tbmix.mixers import Broyden, MixerHandle
>>>
>>> handle = MixerHandle(Broyden({"damp": 0.2}))
>>> handle.reset(2)
>>> q = torch.tensor([0.0, 0.0])
>>> handle.mix(q, torch.tensor([1.0, -0.5]))
>>> print(q)
>>> # tensor([ 0.2000, -0.1000])
"""

from __future__ import annotations

from tbmix._src.typing import Tensor
from tbmix._src.typing.exceptions import MixerBindingError, MixerStateError

from .anderson import Anderson
from .base import Mixer
from .broyden import Broyden
from .diis import DIIS
from .simple import Simple

__all__ = ["MixerHandle"]


MIXER_TYPES = (Simple, Anderson, Broyden, DIIS)
"""Concrete mixers a handle can be bound to."""


class MixerHandle:
    """
    Single handle for one of the concrete mixing algorithms.

    The handle takes over the mixer on binding: the mixer instance should not
    be used through any other reference afterwards.
    """

    __slots__ = ["_mixer"]

    def __init__(self, mixer: Mixer | None = None) -> None:
        self._mixer: Mixer | None = None
        if mixer is not None:
            self.init(mixer)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self._mixer})"

    def __repr__(self) -> str:
        return str(self)

    @property
    def is_bound(self) -> bool:
        """Whether a mixer is bound to the handle."""
        return self._mixer is not None

    @property
    def mixer(self) -> Mixer:
        """The bound mixer."""
        if self._mixer is None:
            raise MixerStateError("No mixer bound to the handle.")
        return self._mixer

    @property
    def label(self) -> str:
        """Label of the bound mixer."""
        return self.mixer.label

    def init(self, mixer: Mixer) -> None:
        """
        Bind the handle to a concrete mixer.

        Parameters
        ----------
        mixer : Mixer
            One of the concrete mixers (simple, Anderson, Broyden or DIIS).

        Raises
        ------
        MixerBindingError
            The handle is already bound to a mixer.
        TypeError
            The given object is not one of the supported mixers.
        """
        if self._mixer is not None:
            raise MixerBindingError(self._mixer.label, type(mixer).__name__)

        if not isinstance(mixer, MIXER_TYPES):
            raise TypeError(
                f"Cannot bind object of type '{type(mixer).__name__}' to a mixer "
                f"handle. Use one of "
                f"'{', '.join(m.__name__ for m in MIXER_TYPES)}'."
            )

        self._mixer = mixer

    def release(self) -> Mixer:
        """
        Unbind the mixer from the handle.

        Returns
        -------
        Mixer
            The previously bound mixer.
        """
        mixer = self.mixer
        self._mixer = None
        return mixer

    def reset(self, nelem: int) -> None:
        """
        Reset the bound mixer for vectors with ``nelem`` elements.

        All history is discarded, while the options of the mixer are kept.
        """
        self.mixer.reset(nelem)

    def mix(self, q_inp_res: Tensor, q_diff: Tensor) -> Tensor:
        """
        Mix the current iterate with its residual.

        Parameters
        ----------
        q_inp_res : Tensor
            Current iterate on entry, newly mixed iterate on exit. The tensor
            is modified in place.
        q_diff : Tensor
            Residual (output - input) of the current iterate.

        Returns
        -------
        Tensor
            The updated ``q_inp_res`` tensor (same object).
        """
        return self.mixer.mix(q_inp_res, q_diff)

    def has_inverse_jacobian(self) -> bool:
        """Whether the bound mixer provides an inverse Jacobian."""
        return self.mixer.has_inverse_jacobian()

    def get_inverse_jacobian(self, out: Tensor | None = None) -> Tensor:
        """
        Return the approximate inverse Jacobian of the bound mixer.

        Parameters
        ----------
        out : Tensor | None, optional
            Tensor of shape ``(nelem, nelem)`` to copy the result into.

        Returns
        -------
        Tensor
            Copy of the inverse Jacobian.

        Raises
        ------
        UnsupportedMixerOperationError
            The bound mixer does not maintain an inverse Jacobian.
        """
        return self.mixer.get_inverse_jacobian(out)
