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
Mixer configuration.
"""

from __future__ import annotations

from tbmix._src.constants import defaults, labels
from tbmix._src.typing import Any

__all__ = ["ConfigMixer"]


class ConfigMixer:
    """
    Configuration for the mixer.

    The mixing scheme is represented as integer. String options are converted
    to integers in the constructor. All options that are not explicitly set
    are taken from the defaults of the respective mixer.
    """

    strict: bool = False
    """Strict mode for mixer configuration. Always throws errors if ``True``."""

    mixer: int
    """Mixing scheme for SCF iterations."""

    damp: float | None
    """Damping factor of the mixer (``None`` for the mixer's default)."""

    generations: int | None
    """Maximum history size of the mixer (``None`` for the mixer's default)."""

    options: dict[str, Any]
    """Additional mixer-specific options."""

    def __init__(
        self,
        *,
        strict: bool = defaults.STRICT,
        mixer: str | int = defaults.MIXER,
        damp: float | None = None,
        generations: int | None = None,
        **options: Any,
    ) -> None:
        self.strict = strict

        mixer_labels = (
            labels.MIXER_LINEAR_STRS
            + labels.MIXER_ANDERSON_STRS
            + labels.MIXER_BROYDEN_STRS
            + labels.MIXER_DIIS_STRS
        )

        if isinstance(mixer, str):
            if mixer.casefold() in labels.MIXER_LINEAR_STRS:
                self.mixer = labels.MIXER_LINEAR
            elif mixer.casefold() in labels.MIXER_ANDERSON_STRS:
                self.mixer = labels.MIXER_ANDERSON
            elif mixer.casefold() in labels.MIXER_BROYDEN_STRS:
                self.mixer = labels.MIXER_BROYDEN
            elif mixer.casefold() in labels.MIXER_DIIS_STRS:
                self.mixer = labels.MIXER_DIIS
            else:
                raise ValueError(
                    f"Unknown mixer '{mixer}'. Choose from "
                    f"'{', '.join(mixer_labels)}'."
                )
        elif isinstance(mixer, int) and not isinstance(mixer, bool):
            if mixer not in (
                labels.MIXER_LINEAR,
                labels.MIXER_ANDERSON,
                labels.MIXER_BROYDEN,
                labels.MIXER_DIIS,
            ):
                raise ValueError(
                    f"Unknown mixer '{mixer}'. Choose from "
                    f"'{', '.join(mixer_labels)}'."
                )

            self.mixer = mixer
        else:
            raise TypeError(
                "The mixer must be of type 'int' or 'str', but "
                f"'{type(mixer)}' was given."
            )

        if damp is not None:
            if isinstance(damp, bool) or not isinstance(damp, (int, float)):
                raise TypeError(
                    "The damping factor must be of type 'float', but "
                    f"'{type(damp)}' was given."
                )
            if not 0.0 < damp <= 1.0:
                raise ValueError(
                    "The damping factor must be in the interval (0, 1], but "
                    f"{damp} was given."
                )
            damp = float(damp)
        self.damp = damp

        if generations is not None:
            if isinstance(generations, bool) or not isinstance(generations, int):
                raise TypeError(
                    "The number of generations must be of type 'int', but "
                    f"'{type(generations)}' was given."
                )
            if generations < 1:
                raise ValueError(
                    "The number of generations must be at least 1, but "
                    f"{generations} was given."
                )
        self.generations = generations

        self.options = options

    @property
    def label(self) -> str:
        """Name of the selected mixer (for printing)."""
        return labels.MIXER_MAP[self.mixer]

    def get_options(self) -> dict[str, Any]:
        """
        Collect all explicitly set options of the mixer.

        Returns
        -------
        dict[str, Any]
            Options to pass to the mixer's constructor.
        """
        opts = dict(self.options)
        if self.damp is not None:
            opts["damp"] = self.damp
        if self.generations is not None and self.mixer != labels.MIXER_LINEAR:
            opts["generations"] = self.generations
        return opts

    def info(self) -> dict[str, dict[str, Any]]:
        """Return a dictionary with the mixer configuration (for printing)."""
        return {"Mixer Settings": {"Mixer": self.label, **self.get_options()}}

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}({self.label}, {self.get_options()})"

    def __repr__(self) -> str:  # pragma: no cover
        return str(self)
