from __future__ import annotations

from datetime import date, datetime

# Monday 2026-10-19, noon clinic time
NOW = datetime(2026, 10, 19, 12, 0)
MONDAY = date(2026, 10, 19)
WEDNESDAY = date(2026, 10, 21)
THURSDAY = date(2026, 10, 22)
SATURDAY = date(2026, 10, 24)
SUNDAY = date(2026, 10, 25)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingNotifier:
    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    def __call__(self, event_type: str, payload: dict) -> None:
        self.events.append((event_type, payload))

    @property
    def types(self) -> list[str]:
        return [event_type for event_type, _ in self.events]


def auth_headers(user_id: str, role: str | None = None) -> dict[str, str]:
    headers = {"X-User-Id": user_id}
    if role:
        headers["X-User-Role"] = role
    return headers
