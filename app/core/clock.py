"""Time source for workflow commands.

Services never read the wall clock directly; they receive a ``Clock`` so that
date-driven rules (minimum term, OTP expiry, normal expiry) stay testable.
All datetimes are naive UTC, matching what the database columns store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def today(self) -> date:
        return self.now().date()


@dataclass
class FixedClock:
    """Clock frozen at ``current`` until advanced explicitly."""

    current: datetime = field(default_factory=lambda: SystemClock().now())

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)
