"""Expansion of recurring calendar events into concrete occurrences."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Iterator, List, Optional, Union
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from .calendar_math import CalendarMath
from .models import (
    RECURRENCE_DAILY,
    RECURRENCE_MONTHLY,
    RECURRENCE_WEEKLY,
    Event,
    Occurrence,
)

_LOGGER = logging.getLogger(__name__)

MAX_INSTANCES = 100
DEFAULT_HORIZON = relativedelta(months=3)

RangeBound = Union[date, datetime]


def _default_math() -> CalendarMath:
    return CalendarMath(tz=ZoneInfo("UTC"))


def _range_bounds(
    math: CalendarMath, range_start: RangeBound, range_end: RangeBound
) -> tuple[datetime, datetime]:
    # A bare date covers the whole local day on either side.
    start = range_start if isinstance(range_start, datetime) else math.start_of_day(range_start)
    end = range_end if isinstance(range_end, datetime) else math.end_of_day(range_end)
    start = math.localize(start)
    end = math.localize(end)
    if start > end:
        raise ValueError(f"range_start {start.isoformat()} is after range_end {end.isoformat()}")
    return start, end


def _step(math: CalendarMath, anchor: datetime, recurrence_type: Optional[str], index: int) -> datetime:
    """Return the start of the ``index``-th instance counted from ``anchor``.

    Monthly instances are always measured from the anchor rather than chained
    from the previous instance, so a series from the 31st returns to the 31st
    after a short month instead of drifting to the 29th.
    """
    if recurrence_type == RECURRENCE_MONTHLY:
        # Measured from the anchor so Jan 31 gives Feb 29, Mar 31, Apr 30.
        return math.add_months(anchor, index)
    if recurrence_type == RECURRENCE_WEEKLY:
        return math.add_days(anchor, 7 * index)
    # Daily, and the fallback for unrecognized types.
    return math.add_days(anchor, index)


def iter_occurrences(
    event: Event,
    range_start: datetime,
    range_end: datetime,
    math: CalendarMath,
    max_instances: int = MAX_INSTANCES,
    horizon: relativedelta = DEFAULT_HORIZON,
) -> Iterator[Occurrence]:
    """Yield the occurrences of one event, chronologically.

    ``range_start`` and ``range_end`` must already be localized datetimes.
    Non-recurring events yield their single original occurrence whether or
    not it falls inside the range. The instance on the original start's day is
    always yielded as the original occurrence, even before ``range_start``.
    """
    if not event.is_recurring:
        yield Occurrence.original(event)
        return

    anchor = math.localize(event.start_at)
    if event.recurrence_end is not None:
        ceiling = math.localize(event.recurrence_end)
    else:
        ceiling = range_end + horizon

    if event.recurrence_type not in (RECURRENCE_DAILY, RECURRENCE_WEEKLY, RECURRENCE_MONTHLY):
        _LOGGER.debug(
            "Event %s has unknown recurrence type %r; stepping daily",
            event.id, event.recurrence_type,
        )

    cursor = anchor
    count = 0
    while cursor <= ceiling and cursor <= range_end and count < max_instances:
        on_original_day = math.is_same_day(cursor, anchor)
        if cursor >= range_start or on_original_day:
            if on_original_day:
                yield Occurrence.original(event)
            else:
                yield Occurrence.virtual(event, cursor)
        count += 1
        cursor = _step(math, anchor, event.recurrence_type, count)

    if count >= max_instances:
        _LOGGER.debug("Event %s hit the %d instance cap", event.id, max_instances)


def expand(
    events: Iterable[Event],
    range_start: RangeBound,
    range_end: RangeBound,
    math: Optional[CalendarMath] = None,
    *,
    max_instances: int = MAX_INSTANCES,
    horizon: relativedelta = DEFAULT_HORIZON,
) -> List[Occurrence]:
    """Flatten ``events`` into occurrences for the ``[range_start, range_end]`` window.

    Output keeps the input event order; each event's occurrences are
    chronological. Nothing is sorted across events and nothing is cached, so
    repeated calls with the same input return equal lists.
    """
    math = math or _default_math()
    start, end = _range_bounds(math, range_start, range_end)

    occurrences: List[Occurrence] = []
    for event in events:
        occurrences.extend(
            iter_occurrences(event, start, end, math, max_instances=max_instances, horizon=horizon)
        )
    return occurrences
