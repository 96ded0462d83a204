"""Selection of occurrences for the month/week/day views and day bucketing."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from .calendar_math import CalendarMath, DateLike
from .models import Event
from .state import ViewState

VIEW_MONTH = "month"
VIEW_WEEK = "week"
VIEW_MODES = (VIEW_MONTH, VIEW_WEEK)

DAY_PREVIEW_COUNT = 3

E = TypeVar("E", bound=Event)


def _default_math() -> CalendarMath:
    return CalendarMath(tz=ZoneInfo("UTC"))


def _sort_key(e: Event):
    return (e.start_at, e.title.lower())


def sort_occurrences(occurrences: Iterable[E]) -> List[E]:
    return sorted(occurrences, key=_sort_key)


def period_range(
    reference_date: DateLike, mode: str, math: Optional[CalendarMath] = None
) -> Tuple[datetime, datetime]:
    """Inclusive bounds of the month or week containing ``reference_date``."""
    math = math or _default_math()
    if mode == VIEW_WEEK:
        return math.start_of_week(reference_date), math.end_of_week(reference_date)
    return math.start_of_month(reference_date), math.end_of_month(reference_date)


def grid_range(
    reference_date: DateLike, mode: str, math: Optional[CalendarMath] = None
) -> Tuple[datetime, datetime]:
    """Bounds of the rendered grid: the month padded out to whole weeks, or the week."""
    math = math or _default_math()
    start, end = period_range(reference_date, mode, math)
    return math.start_of_week(start), math.end_of_week(end)


def select_for_view(
    occurrences: Iterable[E],
    mode: str,
    reference_date: DateLike,
    selected_date: Optional[DateLike] = None,
    showing_specific_day: bool = False,
    math: Optional[CalendarMath] = None,
) -> List[E]:
    """Return the occurrences the current view shows, ascending by start.

    A specific selected day overrides the mode. Otherwise the month or week
    containing ``reference_date`` is used; unknown modes behave as month.
    """
    math = math or _default_math()

    if showing_specific_day and selected_date is not None:
        return sort_occurrences(o for o in occurrences if math.is_same_day(o.start_at, selected_date))

    start, end = period_range(reference_date, mode, math)
    return sort_occurrences(o for o in occurrences if start <= math.localize(o.start_at) <= end)


def bucket_by_day(
    occurrences: Iterable[E],
    start: DateLike,
    end: DateLike,
    math: Optional[CalendarMath] = None,
) -> Dict[date, List[E]]:
    """Group occurrences by the local day of their start.

    Every day in ``[start, end]`` gets a key, empty days included, in
    calendar order. Occurrences starting outside the span are left out.
    """
    math = math or _default_math()
    first = math.day_key(start)
    last = math.day_key(end)

    buckets: Dict[date, List[E]] = {}
    day = first
    while day <= last:
        buckets[day] = []
        day += timedelta(days=1)

    for o in sort_occurrences(occurrences):
        key = math.day_key(o.start_at)
        if key in buckets:
            buckets[key].append(o)
    return buckets


def split_preview(day_occurrences: Sequence[E], limit: int = DAY_PREVIEW_COUNT) -> Tuple[List[E], int]:
    """Split one day's list into the entries shown in a grid cell and the hidden count."""
    limit = max(0, limit)
    shown = list(day_occurrences[:limit])
    return shown, len(day_occurrences) - len(shown)


def occurrences_on(occurrences: Iterable[E], day: DateLike, math: Optional[CalendarMath] = None) -> List[E]:
    math = math or _default_math()
    return sort_occurrences(o for o in occurrences if math.is_same_day(o.start_at, day))


def events_overlapping(events: Iterable[E], start: datetime, end: datetime) -> List[E]:
    """Events whose span touches ``[start, end]``."""
    return [e for e in events if e.start_at <= end and e.end_at >= start]


NAV_ACTIONS = ("show", "prev", "next", "today", "month", "week", "day", "clear-day", "reset")


def navigate(state: ViewState, action: str, today: date, day: Optional[date] = None) -> ViewState:
    """Apply one calendar control to the view state and return the new state.

    ``prev``/``next`` move by a month in month view and by a week in week
    view. ``day`` selects a specific day, which also moves the reference date
    there.
    """
    reference = state.reference or today

    if action == "show":
        return replace(state, reference_date=reference.isoformat())
    if action in ("prev", "next"):
        sign = -1 if action == "prev" else 1
        if state.view_mode == VIEW_WEEK:
            moved = reference + timedelta(days=7 * sign)
        else:
            moved = reference + relativedelta(months=sign)
        return replace(state, reference_date=moved.isoformat(), selected_date="", showing_specific_day=False)
    if action == "today":
        return replace(state, reference_date=today.isoformat(), selected_date="", showing_specific_day=False)
    if action in VIEW_MODES:
        return replace(state, reference_date=reference.isoformat(), view_mode=action)
    if action == "day":
        if day is None:
            raise ValueError("The day action needs a date")
        return replace(
            state,
            reference_date=day.isoformat(),
            selected_date=day.isoformat(),
            showing_specific_day=True,
        )
    if action == "clear-day":
        return replace(state, reference_date=reference.isoformat(), selected_date="", showing_specific_day=False)
    if action == "reset":
        return ViewState(reference_date=today.isoformat())
    raise ValueError(f"Unknown calendar action: {action!r}")
