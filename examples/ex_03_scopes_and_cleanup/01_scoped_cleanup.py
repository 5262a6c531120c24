"""Scoped cleanup: generator teardown runs when the scope is released."""

from __future__ import annotations

from collections.abc import Generator

from datewire import ContainerBuilder, DateWireScopeMisuseError, Output


class BufferedOutput:
    def __init__(self) -> None:
        self.lines: list[str] = []

    def write(self, content: str) -> None:
        self.lines.append(content)


def main() -> None:
    state = {"flushed": 0}

    def provide_output() -> Generator[Output, None, None]:
        output = BufferedOutput()
        try:
            yield output
        finally:
            print("\n".join(output.lines))
            state["flushed"] += 1

    builder = ContainerBuilder()
    builder.register_generator(Output, provide_output)
    registry = builder.build()

    scope = registry.begin_scope()
    with scope:
        scope.resolve(Output).write("hello")
        flushed_inside_scope = state["flushed"]
    # => hello

    print(f"flushed_after_release={flushed_inside_scope == 0 and state['flushed'] == 1}")
    # => flushed_after_release=True

    try:
        scope.resolve(Output)
    except DateWireScopeMisuseError:
        print("released_scope_rejected=True")  # => released_scope_rejected=True


if __name__ == "__main__":
    main()
