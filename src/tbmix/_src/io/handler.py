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
I/O: Output Handler
===================

The I/O module contains the singleton `OutputHandler` class that is used to
write output to the console and to collect warnings.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from tbmix._src.constants import defaults
from tbmix._src.typing import Any, Generator, override

__all__ = ["OutputHandler"]


class CustomStreamHandler(logging.StreamHandler):
    """
    A custom stream handler that allows for the addition of a newline at the
    end of the message.
    """

    @override
    def emit(self, record):
        """
        Emit a record.

        The record is written to the stream with a trailing newline, unless
        the record carries ``newline=False``.
        """
        try:
            msg = self.format(record)

            if getattr(record, "newline", True):
                msg += self.terminator

            self.stream.write(msg)
            self.stream.flush()
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


class _OutputHandler:
    """
    Singleton class that handles output to the console.
    """

    def __init__(self):
        self.warnings: list[tuple[str, type[Warning]]] = []

        self.console_logger = logging.getLogger("tbmix_console")
        self.setup_console_logger()

        self._verbosity = defaults.VERBOSITY

    @property
    def verbosity(self) -> int:
        """
        Get the verbosity level.

        Returns
        -------
        int
            The verbosity level.
        """
        return self._verbosity

    @verbosity.setter
    def verbosity(self, level: int | None) -> None:
        if level is None:
            return

        if not isinstance(level, int):
            raise TypeError("Verbosity level must be an integer.")
        self._verbosity = level

    @contextmanager
    def with_verbosity(self, level: int) -> Generator[None, Any, None]:
        original_verbosity = self.verbosity
        self.verbosity = level
        try:
            yield
        finally:
            self.verbosity = original_verbosity

    def setup_console_logger(self, level=logging.INFO):
        """
        Setup the console logger.

        Parameters
        ----------
        level : int, optional
            The logging level. Defaults to `logging.INFO`.
        """
        if self.console_logger.handlers:
            return

        ch = CustomStreamHandler()
        ch.setLevel(level)
        ch.setFormatter(logging.Formatter("%(message)s"))
        self.console_logger.addHandler(ch)
        self.console_logger.setLevel(level)
        self.console_logger.propagate = False

    def write(self, data: dict[str, Any], v: int = 5) -> None:
        """
        Write a dictionary of data blocks to the console.

        Parameters
        ----------
        data : dict[str, Any]
            Mapping of block titles to key-value pairs.
        v : int, optional
            The verbosity level at which to write the data. Defaults to 5.
        """
        if self.verbosity < v:
            return

        for key, value in data.items():
            self.console_logger.info(self.format_for_console(key, value))

    def write_stdout(
        self,
        msg: str,
        *args,
        v: int = 5,
        newline: bool = True,
    ) -> None:
        """
        Write a message to the console.

        Parameters
        ----------
        msg : str
            The message to write. Callables are evaluated lazily and
            additional arguments are used for %-formatting.
        v : int, optional
            The verbosity level at which to write the message. Defaults to 5,
            which is the standard verbosity level between 0 and 10.
        newline : bool, optional
            Whether to add a newline at the end of the message.
            Defaults to ``True``.
        """
        if self.verbosity < v:
            return

        if callable(msg):
            message = msg()
        elif args:
            message = msg % args
        else:
            message = msg

        self.console_logger.info(message, extra={"newline": newline})

    def write_row(self, key: str, row: list[str], v: int = 5) -> None:
        """
        Write a single row of a table to the console.

        Parameters
        ----------
        key : str
            Row identifier (e.g. the iteration number).
        row : list[str]
            Formatted entries of the row.
        v : int, optional
            The verbosity level at which to write the row. Defaults to 5.
        """
        if self.verbosity < v:
            return
        self.console_logger.info("   ".join([key] + row))

    def warn(self, msg: str, warning_type: type[Warning] = UserWarning) -> None:
        """
        Add a warning message to the list of warnings.

        Parameters
        ----------
        msg : str
            The warning message.
        warning_type : type[Warning], optional
            The type of warning. Defaults to ``UserWarning``.
        """
        self.warnings.append((msg, warning_type))

    def clear_warnings(self) -> None:
        """Remove all collected warnings."""
        self.warnings = []

    def dump_warnings(self) -> None:
        """Dump all warnings to the console."""
        if len(self.warnings) == 0:
            return

        self.console_logger.warning("\nWARNINGS")
        for msg, warning_type in self.warnings:
            self.console_logger.warning(f"[{warning_type.__name__}] {msg}")

    def format_for_console(
        self,
        title: str,
        info: dict[str, Any],
        separator: str = ":",
        indent: int = 0,
        precision: int = 3,
    ) -> str:
        """
        Format the data for the console.

        Parameters
        ----------
        title : str
            The title of the data.
        info : dict[str, Any]
            The data to format.

        Returns
        -------
        str
            The formatted data.
        """
        formatted_str = f"{title}\n" + "-" * len(title) + "\n\n"
        for key, value in info.items():
            if isinstance(value, float):
                value = f"{value:.{precision}e}"
            if isinstance(value, list):
                value = " ".join(str(v) for v in value)
            formatted_str += f"{indent*' '}{key.ljust(20)}{separator} {value}\n"
        return formatted_str


OutputHandler = _OutputHandler()
