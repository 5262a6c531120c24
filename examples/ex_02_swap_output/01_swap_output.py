"""Swap the sink: the same writer targets a logger instead of the console.

``TodayWriter`` only knows the ``Output`` capability, so changing one
registration redirects every date it writes.
"""

from __future__ import annotations

import logging

from datewire import ContainerBuilder, DateWriter, IsoDateWriter, LoggingOutput, Output


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    builder = ContainerBuilder()
    builder.register(Output, LoggingOutput)
    builder.register(DateWriter, IsoDateWriter)
    registry = builder.build()

    with registry.begin_scope() as scope:
        scope.resolve(DateWriter).write_date()  # => datewire.output: 2026-10-19


if __name__ == "__main__":
    main()
