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
ABC: SCF Mixer
==============

This module contains the abstract base class for all mixers, i.e., the
contract every mixing algorithm fulfills:

- :meth:`~Mixer.reset` prepares the mixer for vectors of a given size and
  discards all history,
- :meth:`~Mixer.mix` takes the current iterate and its residual and
  overwrites the iterate with the newly mixed one,
- :meth:`~Mixer.has_inverse_jacobian` and
  :meth:`~Mixer.get_inverse_jacobian` expose an approximate inverse Jacobian
  for the algorithms that maintain one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import torch

from tbmix._src.constants import defaults
from tbmix._src.typing import (
    DD,
    MixOptions,
    NoReturn,
    Tensor,
    get_default_device,
    get_default_dtype,
)
from tbmix._src.typing.exceptions import (
    MixerShapeError,
    MixerStateError,
    UnsupportedMixerOperationError,
)

__all__ = ["Mixer"]

default_opts = {"damp": defaults.DAMP}


class Mixer(ABC):
    """
    Abstract base class for mixer.
    """

    label: str
    """Label for the Mixer."""

    iter_step: int
    """Number of mixing iterations taken since the last reset."""

    options: MixOptions
    """Options for the mixer (damping, history size, ...)."""

    nelem: int | None
    """Number of elements of the mixed vectors (``None`` before reset)."""

    def __init__(
        self,
        options: MixOptions | None = None,
        device: torch.device | None = None,
        dtype: torch.dtype | None = None,
    ) -> None:
        self.label = self.__class__.__name__
        self.options = options if options is not None else dict(default_opts)
        self.iter_step = 0
        self.nelem = None

        self.dd: DD = {
            "device": device if device is not None else get_default_device(),
            "dtype": dtype if dtype is not None else get_default_dtype(),
        }

        damp = self.options["damp"]
        if not 0.0 < damp <= 1.0:
            raise ValueError(
                f"The damping factor of the {self.label} mixer must be in the "
                f"interval (0, 1], but {damp} was given."
            )

    def __str__(self) -> str:
        """Returns representative string."""
        return f"{self.__class__.__name__}({self.iter_step}, {self.options})"

    def __repr__(self) -> str:
        return str(self)

    def reset(self, nelem: int) -> None:
        """
        Resets the mixer to its initial state for vectors of size ``nelem``.

        Calling this function will discard the history of the mixer and all
        quantities derived from it. However, any options set during the
        initialisation process will be retained.

        Parameters
        ----------
        nelem : int
            Number of elements of the vectors to mix.
        """
        if isinstance(nelem, bool) or not isinstance(nelem, int):
            raise TypeError(
                f"Vector size must be an integer, but '{type(nelem)}' was given."
            )
        if nelem < 1:
            raise ValueError(f"Vector size must be positive, but {nelem} was given.")

        self.nelem = nelem
        self.iter_step = 0

    @abstractmethod
    def mix(self, q_inp_res: Tensor, q_diff: Tensor) -> Tensor:
        """
        Performs the mixing operation.

        Parameters
        ----------
        q_inp_res : Tensor
            Current iterate on entry, newly mixed iterate on exit. The tensor
            is modified in place.
        q_diff : Tensor
            Residual of the current iterate, i.e., the difference between the
            output and the input of the iteration.

        Returns
        -------
        Tensor
            The updated ``q_inp_res`` tensor (same object).
        """

    def has_inverse_jacobian(self) -> bool:
        """Whether the mixer can provide an approximate inverse Jacobian."""
        return False

    def get_inverse_jacobian(self, out: Tensor | None = None) -> Tensor:
        """
        Return the approximate inverse Jacobian.

        Only available for mixers that maintain one (see
        :meth:`has_inverse_jacobian`).

        Raises
        ------
        UnsupportedMixerOperationError
            The mixer does not provide an inverse Jacobian.
        """
        self._unsupported("inverse Jacobian")

    def _unsupported(self, operation: str) -> NoReturn:
        raise UnsupportedMixerOperationError(self.label, operation)

    def _prepare(self, q_inp_res: Tensor, q_diff: Tensor) -> tuple[Tensor, Tensor]:
        """
        Check the input vectors and return flattened copies of them.

        Raises
        ------
        MixerStateError
            The mixer was not reset before mixing.
        MixerShapeError
            Sizes of the vectors do not match the size given at reset.
        """
        if self.nelem is None:
            raise MixerStateError(
                f"The {self.label} mixer has to be reset before mixing."
            )

        if q_inp_res.shape != q_diff.shape:
            raise MixerShapeError(
                f"Shape of the iterate {tuple(q_inp_res.shape)} and the residual "
                f"{tuple(q_diff.shape)} do not match."
            )

        if q_inp_res.numel() != self.nelem:
            raise MixerShapeError(
                f"Vectors have {q_inp_res.numel()} elements, but the "
                f"{self.label} mixer was reset for {self.nelem} elements."
            )

        x = q_inp_res.reshape(-1).to(**self.dd).clone()
        f = q_diff.reshape(-1).to(**self.dd).clone()
        return x, f

    def _update(self, q_inp_res: Tensor, x_mix: Tensor) -> Tensor:
        """Write the mixed vector back into the caller's tensor."""
        q_inp_res.copy_(x_mix.reshape(q_inp_res.shape))
        return q_inp_res
