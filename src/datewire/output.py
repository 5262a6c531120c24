from __future__ import annotations

import logging
from typing import Protocol


class Output(Protocol):
    """Write a line of text somewhere.

    Consumers depend on this capability rather than on the console, so the
    destination is chosen by whoever composes the application.
    """

    def write(self, content: str) -> None: ...


class ConsoleOutput:
    """Write content to standard output, followed by a line terminator."""

    def write(self, content: str) -> None:
        print(content)  # noqa: T201


class LoggingOutput:
    """Write content as an INFO record on a named logger."""

    def __init__(self, logger_name: str = "datewire.output") -> None:
        self._logger = logging.getLogger(logger_name)

    def write(self, content: str) -> None:
        self._logger.info("%s", content)
