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
Test the logging configuration.
"""

from __future__ import annotations

import logging

import pytest

from tbmix._src.io import DEFAULT_LOG_CONFIG, get_logging_config


def test_default() -> None:
    cfg = get_logging_config()
    assert cfg == DEFAULT_LOG_CONFIG
    assert cfg["level"] == logging.INFO

    # defaults are not modified
    cfg["level"] = logging.DEBUG
    assert DEFAULT_LOG_CONFIG["level"] == logging.INFO


@pytest.mark.parametrize(
    "level, ref",
    [
        ("debug", logging.DEBUG),
        ("WARNING", logging.WARNING),
        ("warn", logging.WARNING),
        (logging.ERROR, logging.ERROR),
    ],
)
def test_level(level: str | int, ref: int) -> None:
    assert get_logging_config(level=level)["level"] == ref


def test_fail_level() -> None:
    with pytest.raises(ValueError):
        get_logging_config(level="verbose")
