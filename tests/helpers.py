import datetime

FIXED_DATE = datetime.date(2026, 3, 7)


class RecordingOutput:
    """Output double that keeps every written line."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def write(self, content: str) -> None:
        self.lines.append(content)


def fixed_today() -> datetime.date:
    return FIXED_DATE
