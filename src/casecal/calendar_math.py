from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Union
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

# Python weekday numbers (Monday == 0).
MONDAY = 0
SUNDAY = 6

WEEKDAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

DateLike = Union[date, datetime]


def parse_weekday(name: str) -> int:
    key = name.strip().lower()
    if key not in WEEKDAY_NAMES:
        raise ValueError(f"Unknown weekday: {name!r}")
    return WEEKDAY_NAMES[key]


@dataclass(frozen=True)
class CalendarMath:
    """Calendar arithmetic on local days of a single timezone.

    Period ends are inclusive: the last microsecond of the day/week/month.
    """

    tz: ZoneInfo
    week_starts_on: int = SUNDAY

    def localize(self, value: DateLike) -> datetime:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=self.tz)
            return value.astimezone(self.tz)
        return datetime.combine(value, time.min, tzinfo=self.tz)

    def day_key(self, value: DateLike) -> date:
        if isinstance(value, datetime):
            return self.localize(value).date()
        return value

    def start_of_day(self, value: DateLike) -> datetime:
        return datetime.combine(self.day_key(value), time.min, tzinfo=self.tz)

    def end_of_day(self, value: DateLike) -> datetime:
        return datetime.combine(self.day_key(value), time.max, tzinfo=self.tz)

    def start_of_month(self, value: DateLike) -> datetime:
        return self.start_of_day(self.day_key(value).replace(day=1))

    def end_of_month(self, value: DateLike) -> datetime:
        first = self.day_key(value).replace(day=1)
        return self.end_of_day(first + relativedelta(months=1, days=-1))

    def start_of_week(self, value: DateLike) -> datetime:
        day = self.day_key(value)
        offset = (day.weekday() - self.week_starts_on) % 7
        return self.start_of_day(day - timedelta(days=offset))

    def end_of_week(self, value: DateLike) -> datetime:
        return self.end_of_day(self.start_of_week(value).date() + timedelta(days=6))

    def is_same_day(self, left: DateLike, right: DateLike) -> bool:
        return self.day_key(left) == self.day_key(right)

    def add_days(self, value: datetime, days: int) -> datetime:
        # Wall-clock arithmetic: 09:00 stays 09:00 across DST changes.
        return self.localize(value) + timedelta(days=days)

    def add_months(self, value: datetime, months: int) -> datetime:
        # relativedelta clamps to the last day of shorter months.
        return self.localize(value) + relativedelta(months=months)
