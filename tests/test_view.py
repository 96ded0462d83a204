from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from casecal.calendar_math import CalendarMath
from casecal.models import Event, Occurrence
from casecal.state import ViewState
from casecal.view import (
    VIEW_MONTH,
    VIEW_WEEK,
    bucket_by_day,
    events_overlapping,
    grid_range,
    navigate,
    occurrences_on,
    select_for_view,
    split_preview,
)

TZ = ZoneInfo("America/Sao_Paulo")
MATH = CalendarMath(tz=TZ)


def _occ(title: str, start: datetime, minutes: int = 60) -> Occurrence:
    return Occurrence.original(
        Event(id=title.lower().replace(" ", "-"), title=title, start_at=start, end_at=start + timedelta(minutes=minutes))
    )


def test_month_view_selects_only_the_reference_month():
    occurrences = [
        _occ("Janeiro", datetime(2024, 1, 31, 10, 0, tzinfo=TZ)),
        _occ("Bissexto", datetime(2024, 2, 29, 10, 0, tzinfo=TZ)),
        _occ("Primeiro", datetime(2024, 2, 1, 10, 0, tzinfo=TZ)),
    ]

    selected = select_for_view(occurrences, VIEW_MONTH, date(2024, 2, 15), math=MATH)

    assert [o.title for o in selected] == ["Primeiro", "Bissexto"]


def test_specific_day_overrides_mode_and_compares_local_days():
    utc = ZoneInfo("UTC")
    occurrences = [
        _occ("Late evening", datetime(2024, 3, 11, 2, 30, tzinfo=utc)),  # 23:30 on the 10th locally
        _occ("Morning", datetime(2024, 3, 10, 9, 0, tzinfo=TZ)),
        _occ("Next day", datetime(2024, 3, 11, 9, 0, tzinfo=TZ)),
    ]

    selected = select_for_view(
        occurrences,
        VIEW_WEEK,
        date(2024, 5, 1),
        selected_date=date(2024, 3, 10),
        showing_specific_day=True,
        math=MATH,
    )

    assert [o.title for o in selected] == ["Morning", "Late evening"]


def test_week_view_uses_sunday_to_saturday():
    occurrences = [
        _occ("Saturday before", datetime(2024, 3, 9, 10, 0, tzinfo=TZ)),
        _occ("Sunday", datetime(2024, 3, 10, 0, 0, tzinfo=TZ)),
        _occ("Saturday", datetime(2024, 3, 16, 23, 59, tzinfo=TZ)),
        _occ("Sunday after", datetime(2024, 3, 17, 0, 0, tzinfo=TZ)),
    ]

    selected = select_for_view(occurrences, VIEW_WEEK, date(2024, 3, 13), math=MATH)

    assert [o.title for o in selected] == ["Sunday", "Saturday"]


def test_selected_date_is_ignored_unless_showing_specific_day():
    occurrences = [_occ("Março", datetime(2024, 3, 20, 10, 0, tzinfo=TZ))]

    selected = select_for_view(occurrences, VIEW_MONTH, date(2024, 3, 1), selected_date=date(2024, 3, 2), math=MATH)

    assert [o.title for o in selected] == ["Março"]


def test_empty_inputs_give_empty_collections():
    assert select_for_view([], VIEW_MONTH, date(2024, 3, 1), math=MATH) == []
    assert select_for_view([], VIEW_WEEK, date(2024, 3, 1), date(2024, 3, 1), True, MATH) == []
    assert bucket_by_day([], date(2024, 3, 1), date(2024, 3, 3), MATH) == {
        date(2024, 3, 1): [],
        date(2024, 3, 2): [],
        date(2024, 3, 3): [],
    }


def test_bucket_by_day_sorts_each_day_and_drops_days_outside_the_span():
    occurrences = [
        _occ(f"Evento {hour}", datetime(2024, 3, 20, hour, 0, tzinfo=TZ)) for hour in (15, 9, 11, 8, 17)
    ] + [_occ("Fora", datetime(2024, 4, 20, 9, 0, tzinfo=TZ))]

    buckets = bucket_by_day(occurrences, date(2024, 3, 19), date(2024, 3, 21), MATH)

    assert list(buckets) == [date(2024, 3, 19), date(2024, 3, 20), date(2024, 3, 21)]
    assert [o.title for o in buckets[date(2024, 3, 20)]] == [
        "Evento 8",
        "Evento 9",
        "Evento 11",
        "Evento 15",
        "Evento 17",
    ]


def test_split_preview_keeps_the_full_day_list():
    day = [_occ(f"Evento {hour}", datetime(2024, 3, 20, hour, 0, tzinfo=TZ)) for hour in range(8, 13)]

    shown, hidden = split_preview(day)

    assert [o.title for o in shown] == ["Evento 8", "Evento 9", "Evento 10"]
    assert hidden == 2
    assert len(day) == 5


def test_month_grid_is_padded_to_whole_weeks():
    start, end = grid_range(date(2024, 3, 13), VIEW_MONTH, MATH)

    assert start == datetime(2024, 2, 25, 0, 0, tzinfo=TZ)
    assert end.date() == date(2024, 4, 6)


def test_week_grid_is_the_week_itself():
    start, end = grid_range(date(2024, 3, 13), VIEW_WEEK, MATH)

    assert (start.date(), end.date()) == (date(2024, 3, 10), date(2024, 3, 16))


def test_occurrences_on_returns_one_day_sorted():
    occurrences = [
        _occ("Tarde", datetime(2024, 3, 20, 15, 0, tzinfo=TZ)),
        _occ("Manhã", datetime(2024, 3, 20, 9, 0, tzinfo=TZ)),
        _occ("Outro dia", datetime(2024, 3, 21, 9, 0, tzinfo=TZ)),
    ]

    assert [o.title for o in occurrences_on(occurrences, date(2024, 3, 20), MATH)] == ["Manhã", "Tarde"]


def test_events_overlapping_includes_events_touching_the_range():
    events = [
        _occ("Antes", datetime(2024, 3, 1, 8, 0, tzinfo=TZ)),
        _occ("Cruza", datetime(2024, 3, 1, 9, 30, tzinfo=TZ)),
        _occ("Depois", datetime(2024, 3, 1, 12, 0, tzinfo=TZ)),
    ]

    hits = events_overlapping(
        events,
        datetime(2024, 3, 1, 10, 0, tzinfo=TZ),
        datetime(2024, 3, 1, 11, 0, tzinfo=TZ),
    )

    assert [e.title for e in hits] == ["Cruza"]


def test_navigate_moves_by_month_and_clamps():
    state = ViewState(reference_date="2024-01-31")

    moved = navigate(state, "next", today=date(2024, 6, 1))

    assert moved.reference_date == "2024-02-29"
    assert navigate(ViewState(reference_date="2024-03-31"), "prev", date(2024, 6, 1)).reference_date == "2024-02-29"


def test_navigate_moves_by_week_in_week_view():
    state = ViewState(reference_date="2024-03-13", view_mode=VIEW_WEEK)

    assert navigate(state, "next", date(2024, 6, 1)).reference_date == "2024-03-20"
    assert navigate(state, "prev", date(2024, 6, 1)).reference_date == "2024-03-06"


def test_navigate_day_selection_and_clearing():
    today = date(2024, 3, 13)

    picked = navigate(ViewState(), "day", today, day=date(2024, 3, 10))
    assert picked.showing_specific_day is True
    assert picked.selected_date == "2024-03-10"
    assert picked.reference_date == "2024-03-10"

    cleared = navigate(picked, "clear-day", today)
    assert cleared.showing_specific_day is False
    assert cleared.selected_date == ""
    assert cleared.reference_date == "2024-03-10"

    assert navigate(cleared, "today", today).reference_date == "2024-03-13"
    assert navigate(cleared, "week", today).view_mode == VIEW_WEEK
    assert navigate(ViewState(view_mode=VIEW_WEEK, reference_date="2020-01-01"), "reset", today) == ViewState(
        reference_date="2024-03-13"
    )


def test_navigate_rejects_bad_input():
    with pytest.raises(ValueError):
        navigate(ViewState(), "day", date(2024, 3, 13))
    with pytest.raises(ValueError):
        navigate(ViewState(), "year", date(2024, 3, 13))
