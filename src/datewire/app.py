"""Composition root for the ``datewire`` console program.

Binds the concrete sink and date writer to their capabilities, then writes
today's date from inside a single resolution scope.
"""

from __future__ import annotations

import logging
import sys
from contextlib import suppress

from datewire.container import ContainerBuilder, Registry
from datewire.date_writer import DateWriter, IsoDateWriter, TodayWriter
from datewire.exceptions import DateWireError
from datewire.output import ConsoleOutput, Output
from datewire.settings import DateWireSettings

logger = logging.getLogger(__name__)

_DATE_WRITERS = {
    "short": TodayWriter,
    "iso": IsoDateWriter,
}


def build_registry(settings: DateWireSettings | None = None) -> Registry:
    if settings is None:
        settings = DateWireSettings()
    builder = ContainerBuilder()
    builder.register_instance(DateWireSettings, settings)
    builder.register(Output, ConsoleOutput)
    builder.register(DateWriter, _DATE_WRITERS[settings.writer])
    return builder.build()


def write_date(registry: Registry) -> None:
    """Resolve a ``DateWriter`` in a fresh scope and write the date once.

    The scope is released on every exit path, including when resolution or
    writing fails.
    """
    with registry.begin_scope() as scope:
        writer = scope.resolve(DateWriter)
        writer.write_date()


def run(settings: DateWireSettings) -> None:
    registry = build_registry(settings)
    try:
        write_date(registry)
    finally:
        registry.close()

    if settings.wait_for_enter:
        print(settings.prompt)  # noqa: T201
        # A closed stdin counts as ENTER.
        with suppress(EOFError):
            input()


def main() -> None:
    settings = DateWireSettings()
    logging.basicConfig(level=settings.log_level, stream=sys.stderr)
    try:
        run(settings)
    except DateWireError as error:
        logger.error("datewire aborted: %s", error)
        raise SystemExit(1) from error


if __name__ == "__main__":
    main()
