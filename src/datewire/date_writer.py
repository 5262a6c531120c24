from __future__ import annotations

import datetime
from collections.abc import Callable
from typing import Protocol

from datewire.output import Output


class DateWriter(Protocol):
    """Produce a representation of a date and emit it."""

    def write_date(self) -> None: ...


def format_short_date(value: datetime.date) -> str:
    """Render ``value`` as ``M/D/YYYY``, without zero padding on month and day.

    The pattern is fixed and does not follow the process locale.
    """
    return f"{value.month}/{value.day}/{value.year:04d}"


class TodayWriter:
    """Write today's local date in short numeric form.

    The sink is whatever ``Output`` the composition root binds, so the same
    writer can target the console, a log, or a test double.
    """

    def __init__(
        self,
        output: Output,
        today: Callable[[], datetime.date] = datetime.date.today,
    ) -> None:
        self._output = output
        self._today = today

    def write_date(self) -> None:
        self._output.write(format_short_date(self._today()))


class IsoDateWriter:
    """Write today's local date as ISO-8601 (``YYYY-MM-DD``)."""

    def __init__(
        self,
        output: Output,
        today: Callable[[], datetime.date] = datetime.date.today,
    ) -> None:
        self._output = output
        self._today = today

    def write_date(self) -> None:
        self._output.write(self._today().isoformat())
