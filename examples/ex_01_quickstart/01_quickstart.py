"""Quickstart: write today's date through two injected capabilities.

Bind a sink and a date writer, open one scope, resolve the writer, and let
the scope release everything it created.
"""

from __future__ import annotations

from datewire import ConsoleOutput, ContainerBuilder, DateWriter, Output, TodayWriter


def main() -> None:
    builder = ContainerBuilder()
    builder.register(Output, ConsoleOutput)
    builder.register(DateWriter, TodayWriter)
    registry = builder.build()

    with registry.begin_scope() as scope:
        scope.resolve(DateWriter).write_date()  # => 10/19/2026


if __name__ == "__main__":
    main()
