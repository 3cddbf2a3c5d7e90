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
Mixer: History
==============

Fixed-capacity store of iterate/residual pairs shared by the mixers that
extrapolate from previous iterations (Anderson, DIIS).
"""

from __future__ import annotations

import torch

from tbmix._src.typing import DD, Tensor

__all__ = ["History"]


class History:
    """
    First-in-first-out buffer of iterate/residual pairs.

    The storage is allocated once with shape ``(capacity, nelem)`` and never
    grows. Entries are kept newest-first, i.e., index 0 always holds the most
    recent pair. Appending to a full buffer drops the oldest pair.
    """

    capacity: int
    """Maximum number of stored pairs."""

    nelem: int
    """Number of elements of each stored vector."""

    def __init__(
        self,
        capacity: int,
        nelem: int,
        device: torch.device | None = None,
        dtype: torch.dtype | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError(
                f"History capacity must be at least 1, but {capacity} was given."
            )

        self.capacity = capacity
        self.nelem = nelem
        dd: DD = {"device": device, "dtype": dtype}

        self._x = torch.zeros((capacity, nelem), **dd)
        self._f = torch.zeros((capacity, nelem), **dd)
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self._size}/{self.capacity})"

    def __repr__(self) -> str:
        return str(self)

    @property
    def is_full(self) -> bool:
        return self._size == self.capacity

    @property
    def iterates(self) -> Tensor:
        """Stored iterates, newest first (shape: ``(len, nelem)``)."""
        return self._x[: self._size]

    @property
    def residuals(self) -> Tensor:
        """Stored residuals, newest first (shape: ``(len, nelem)``)."""
        return self._f[: self._size]

    @property
    def storage(self) -> tuple[Tensor, Tensor]:
        """Underlying preallocated buffers (including unused slots)."""
        return self._x, self._f

    def append(self, x: Tensor, f: Tensor) -> None:
        """
        Store a new iterate/residual pair as the newest entry.

        Parameters
        ----------
        x : Tensor
            Iterate (shape: ``(nelem,)``).
        f : Tensor
            Residual of the iterate (shape: ``(nelem,)``).
        """
        # Shift the history over; a roll followed by a reassignment avoids
        # in-place modification of tensors that may be referenced elsewhere.
        self._x = torch.roll(self._x, 1, 0)
        self._f = torch.roll(self._f, 1, 0)

        self._x[0] = x
        self._f[0] = f

        self._size = min(self._size + 1, self.capacity)

    def evict_oldest(self) -> None:
        """Remove the oldest pair. The newest pair is never evicted."""
        if self._size > 1:
            self._size -= 1

    def clear(self) -> None:
        """Discard all pairs while keeping the allocated storage."""
        self._x.zero_()
        self._f.zero_()
        self._size = 0
