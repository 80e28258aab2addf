"""Time-lock schedule models.

A TimeLockWindow is a recurring period during which switching into the
parent console is refused, whatever the credential. Windows are expressed
in wall-clock time-of-day and may wrap past midnight (end < start). A
wrapping window belongs to the weekday on which it starts: a Monday
21:00-06:00 window covers Monday 23:30 and Tuesday 03:00.

Occurrences are half-open intervals [start, end). A window whose start
equals its end covers the full 24 hours from its start.

All evaluation takes a datetime already converted to the gate's local
timezone; conversion is the caller's job (see ModeGate._local).
"""

from datetime import date, datetime, time, timedelta
from enum import IntEnum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Weekday(IntEnum):
    """Weekday numbering matching datetime.weekday()."""

    MON = 0
    TUE = 1
    WED = 2
    THU = 3
    FRI = 4
    SAT = 5
    SUN = 6

    @classmethod
    def parse(cls, value) -> "Weekday":
        if isinstance(value, Weekday):
            return value
        if isinstance(value, int):
            return cls(value)
        key = str(value).strip().lower()[:3]
        try:
            return cls[key.upper()]
        except KeyError:
            raise ValueError(f"Unknown weekday: {value!r}") from None


ALL_DAYS = frozenset(Weekday)


class TimeLockWindow(BaseModel):
    """Recurring lock period: weekday set plus start/end time-of-day."""

    model_config = ConfigDict(frozen=True)

    days: frozenset[Weekday] = Field(default=ALL_DAYS, min_length=1)
    start: time
    end: time

    @field_validator("days", mode="before")
    @classmethod
    def parse_days(cls, v):
        if isinstance(v, (str, int)):
            v = [v]
        return frozenset(Weekday.parse(d) for d in v)

    @field_validator("start", "end")
    @classmethod
    def drop_seconds(cls, v: time) -> time:
        return v.replace(second=0, microsecond=0, tzinfo=None)

    @property
    def wraps_midnight(self) -> bool:
        return self.end < self.start

    @property
    def duration(self) -> timedelta:
        start_min = self.start.hour * 60 + self.start.minute
        end_min = self.end.hour * 60 + self.end.minute
        minutes = (end_min - start_min) % (24 * 60)
        return timedelta(minutes=minutes or 24 * 60)

    def occurrences(self, local_now: datetime) -> Iterator[tuple[datetime, datetime]]:
        """Yield [start, end) occurrences that could contain local_now.

        An occurrence lasts at most 24h, so only occurrences starting
        yesterday or today need checking.
        """
        today: date = local_now.date()
        for start_day in (today - timedelta(days=1), today):
            if Weekday(start_day.weekday()) not in self.days:
                continue
            start_dt = datetime.combine(start_day, self.start, tzinfo=local_now.tzinfo)
            yield start_dt, start_dt + self.duration

    def active_until(self, local_now: datetime) -> Optional[datetime]:
        """End of the occurrence containing local_now, or None."""
        ends = [end for start, end in self.occurrences(local_now) if start <= local_now < end]
        return max(ends) if ends else None

    def contains(self, local_now: datetime) -> bool:
        return self.active_until(local_now) is not None

    def __str__(self) -> str:
        days = ",".join(d.name.lower() for d in sorted(self.days))
        return f"{days} {self.start:%H:%M}-{self.end:%H:%M}"


class TimeLockSchedule(BaseModel):
    """Ordered set of lock windows. Empty means never time locked."""

    model_config = ConfigDict(frozen=True)

    windows: tuple[TimeLockWindow, ...] = ()

    def is_locked(self, local_now: datetime) -> bool:
        return any(w.contains(local_now) for w in self.windows)

    def locked_until(self, local_now: datetime) -> Optional[datetime]:
        """First instant at or after local_now that no window covers.

        Overlapping and back-to-back windows are chained, so the result is
        the real unlock time rather than the end of the first window hit.
        Returns None when local_now is not locked.
        """
        cursor = local_now
        # Each hop moves past at least one occurrence; bound the walk so a
        # schedule covering the whole week cannot loop forever.
        for _ in range(len(self.windows) * 8 + 1):
            ends = [end for w in self.windows if (end := w.active_until(cursor))]
            if not ends:
                break
            cursor = max(ends)
        return cursor if cursor != local_now else None
