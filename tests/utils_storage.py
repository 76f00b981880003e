from __future__ import annotations

from datetime import datetime, timedelta, timezone


BUCKET = "pdf-store-test"

SAMPLE_PDF = (
    b"%PDF-1.4\n"
    b"1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj\n"
    b"2 0 obj << /Type /Pages /Kids [] /Count 0 >> endobj\n"
    b"trailer << /Root 1 0 R >>\n"
    b"%%EOF\n"
)


class TickingClock:
    """Deterministic clock that advances one minute per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current = value + timedelta(minutes=1)
        return value
