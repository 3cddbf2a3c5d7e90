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
Mixer: Factory
==============

Creation of a bound mixer handle from a configuration.
"""

from __future__ import annotations

import logging

import torch

from tbmix._src.config import ConfigMixer
from tbmix._src.constants import labels
from tbmix._src.io import OutputHandler
from tbmix._src.typing import Any
from tbmix._src.typing.exceptions import ParameterWarning

from . import anderson, broyden, diis, simple
from .handle import MixerHandle

__all__ = ["new_mixer"]


logger = logging.getLogger(__name__)


_MIXERS = {
    labels.MIXER_LINEAR: (simple.Simple, simple.default_opts),
    labels.MIXER_ANDERSON: (anderson.Anderson, anderson.default_opts),
    labels.MIXER_BROYDEN: (broyden.Broyden, broyden.default_opts),
    labels.MIXER_DIIS: (diis.DIIS, diis.default_opts),
}


def new_mixer(
    config: ConfigMixer | str | int | None = None,
    device: torch.device | None = None,
    dtype: torch.dtype | None = None,
    **kwargs: Any,
) -> MixerHandle:
    """
    Create a mixer handle bound to the configured mixer.

    Parameters
    ----------
    config : ConfigMixer | str | int | None, optional
        Mixer configuration, or label of the mixer. Defaults to ``None``,
        which selects the default mixer.
    device : torch.device | None, optional
        Device of the internal tensors of the mixer.
    dtype : torch.dtype | None, optional
        Floating point type of the internal tensors of the mixer.
    kwargs : Any
        Options for the configuration, only allowed if no configuration object
        is given (see :class:`ConfigMixer`).

    Returns
    -------
    MixerHandle
        Handle bound to a freshly created mixer (not reset yet).

    Raises
    ------
    ValueError
        Unknown option for the mixer in strict mode.
    """
    if config is None:
        config = ConfigMixer(**kwargs)
    elif isinstance(config, (str, int)):
        config = ConfigMixer(mixer=config, **kwargs)
    elif kwargs:
        raise TypeError(
            "Additional options cannot be given together with a configuration "
            f"object ({', '.join(kwargs)})."
        )

    cls, default_opts = _MIXERS[config.mixer]

    opts = config.get_options()
    for key in list(opts):
        if key in default_opts:
            continue

        msg = f"Unknown option '{key}' for the {config.label} mixer."
        if config.strict is True:
            raise ValueError(msg)

        OutputHandler.warn(msg + " It will be ignored.", ParameterWarning)
        del opts[key]

    logger.debug("Creating %s mixer with options %s.", config.label, opts)
    OutputHandler.write(config.info(), v=6)

    return MixerHandle(cls(opts, device=device, dtype=dtype))
