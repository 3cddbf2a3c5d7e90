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
Numerical Derivatives
=====================

Second derivatives of the energy from central finite differences of
gradients. The driver hands out displaced geometries one after another and
collects the gradients computed for them.

Example
-------
>>> import torch
>>> from tbmix.derivs import NumDerivs
>>>
>>> positions = torch.tensor([[0.0, 0.0, 0.0], [0.0, 0.0, 1.4]])
>>> derivs = NumDerivs(positions, delta=1e-4)
>>> x, finished = derivs.positions, False
>>> while not finished:
>>>     x, finished = derivs.next(get_gradient(x))
>>> hessian = derivs.hessian  # shape: (6, 6)
"""

from __future__ import annotations

import logging

import torch

from tbmix._src.constants import defaults
from tbmix._src.typing import Tensor

__all__ = ["NumDerivs"]


logger = logging.getLogger(__name__)


class NumDerivs:
    """
    Sequencer for the central finite difference Hessian.

    Each Cartesian component of each moved atom is displaced by ``-delta`` and
    ``+delta`` (in this order), iterating over the components before the
    atoms.

    Note
    ----
    Use pre-relaxed coordinates, as the truncation at second derivatives is
    only valid close to a stationary point.
    """

    delta: float
    """Step size of the finite differences."""

    nmoved: int
    """Number of displaced atoms."""

    nderiv: int
    """Number of atoms for which gradients are collected."""

    def __init__(
        self,
        positions: Tensor,
        delta: float = defaults.NUMDERIVS_STEP,
        nderiv: int | None = None,
    ) -> None:
        """
        Parameters
        ----------
        positions : Tensor
            Reference coordinates of the moved atoms (shape: ``(nmoved, 3)``).
        delta : float, optional
            Step size of the finite differences.
        nderiv : int | None, optional
            Number of atoms in the gradients (at least ``nmoved``). Allows a
            rectangular Hessian, e.g., for distributed calculations. Defaults
            to ``nmoved``.
        """
        if positions.ndim != 2 or positions.shape[-1] != 3:
            raise ValueError(
                "Positions must be of shape (nmoved, 3), but "
                f"{tuple(positions.shape)} was given."
            )
        if delta <= 0.0:
            raise ValueError(f"Step size must be positive, but {delta} was given.")

        self.nmoved = positions.shape[0]
        self.nderiv = self.nmoved if nderiv is None else nderiv
        if self.nderiv < self.nmoved:
            raise ValueError(
                f"Number of atoms in the gradient ({self.nderiv}) cannot be "
                f"smaller than the number of moved atoms ({self.nmoved})."
            )

        self.delta = delta
        self._x0 = positions.detach().clone()
        self._derivs = torch.zeros(
            (3 * self.nderiv, 3 * self.nmoved),
            device=positions.device,
            dtype=positions.dtype,
        )

        self._iatom = 0
        self._icomp = 0
        self._sign = -1.0
        self._finished = False

    @property
    def finished(self) -> bool:
        """Whether all displacements have been evaluated."""
        return self._finished

    @property
    def positions(self) -> Tensor:
        """Geometry for which the next gradient is expected."""
        x = self._x0.clone()
        if not self._finished:
            x[self._iatom, self._icomp] += self._sign * self.delta
        return x

    @property
    def hessian(self) -> Tensor:
        """
        Matrix of second derivatives (shape: ``(3 * nderiv, 3 * nmoved)``).

        Raises
        ------
        RuntimeError
            Not all displacements have been evaluated yet.
        """
        if not self._finished:
            raise RuntimeError(
                "Hessian is only available after all displaced geometries have "
                "been evaluated."
            )
        return self._derivs

    def next(self, gradient: Tensor) -> tuple[Tensor, bool]:
        """
        Store the gradient of the current geometry and move on.

        Parameters
        ----------
        gradient : Tensor
            Energy gradient of the current geometry (shape: ``(nderiv, 3)``).

        Returns
        -------
        tuple[Tensor, bool]
            Next geometry to evaluate and whether the sequence has ended. At
            the end, the reference geometry is returned.
        """
        if self._finished:
            raise RuntimeError("All displaced geometries were already evaluated.")

        if gradient.shape != (self.nderiv, 3):
            raise ValueError(
                f"Gradient must be of shape ({self.nderiv}, 3), but "
                f"{tuple(gradient.shape)} was given."
            )

        col = 3 * self._iatom + self._icomp
        self._derivs[:, col] += self._sign * gradient.reshape(-1).to(self._derivs)

        last = self._iatom == self.nmoved - 1 and self._icomp == 2
        if last and self._sign > 0.0:
            self._derivs *= 0.5 / self.delta
            self._finished = True
            logger.debug("Finite difference Hessian of %d atoms done.", self.nmoved)
            return self._x0.clone(), True

        if self._sign < 0.0:
            self._sign = 1.0
        else:
            self._sign = -1.0
            if self._icomp == 2:
                self._iatom += 1
            self._icomp = (self._icomp + 1) % 3

        return self.positions, False
