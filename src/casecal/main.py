from __future__ import annotations

import os
from datetime import date, datetime
from typing import List, Optional

from dateutil.relativedelta import relativedelta
from dotenv import load_dotenv

from .backend import BackendError, CalendarBackend, load_events_file
from .config import AppConfig, load_config
from .models import Event
from .recurrence import expand
from .render import format_header, render_agenda
from .state import ViewState, load_state, save_state
from .view import NAV_ACTIONS, VIEW_WEEK, bucket_by_day, grid_range, navigate, select_for_view

STATE_PATH_DEFAULT = os.path.expanduser("~/.local/state/casecal/view.json")
CONFIG_PATH_DEFAULT = "config.yaml"


def _fetch_events(cfg: AppConfig, events_file: Optional[str] = None) -> List[Event]:
    tz = cfg.calendar_math().tz
    if events_file:
        return load_events_file(events_file, tz)

    if not cfg.backend.enabled:
        print("Backend disabled and no events file given; showing an empty calendar.")
        return []

    url = os.environ.get("SUPABASE_URL", "")
    key = os.environ.get("SUPABASE_ANON_KEY", "")
    if not url or not key:
        print("Backend enabled but SUPABASE_URL/SUPABASE_ANON_KEY not set; skipping backend.")
        return []

    backend = CalendarBackend(url, key, table=cfg.backend.table, timeout=cfg.backend.timeout_seconds)
    try:
        # Recurring events may start long before the visible grid, so no range filter here.
        return backend.fetch_events(tz)
    except BackendError as e:
        print(f"Calendar fetch failed; continuing without backend events. Error: {e}")
        return []


def build_agenda(cfg: AppConfig, state: ViewState, events: List[Event], today: date) -> str:
    math = cfg.calendar_math()
    reference = state.reference or today
    grid_start, grid_end = grid_range(reference, state.view_mode, math)

    occurrences = expand(
        events,
        grid_start,
        grid_end,
        math,
        max_instances=cfg.calendar.max_instances,
        horizon=relativedelta(months=cfg.calendar.horizon_months),
    )
    selected = select_for_view(
        occurrences,
        state.view_mode,
        reference,
        selected_date=state.selected,
        showing_specific_day=state.showing_specific_day,
        math=math,
    )
    buckets = bucket_by_day(occurrences, grid_start, grid_end, math)

    if state.showing_specific_day and state.selected:
        list_title = f"Eventos de {state.selected.strftime('%d/%m/%Y')}"
    else:
        list_title = "Eventos da semana" if state.view_mode == VIEW_WEEK else "Eventos do mês"

    return render_agenda(
        format_header(grid_start.date() if state.view_mode == VIEW_WEEK else reference, state.view_mode),
        buckets,
        selected,
        math,
        month=None if state.view_mode == VIEW_WEEK else reference.month,
        today=today,
        preview_count=cfg.calendar.day_preview_count,
        list_title=list_title,
    )


def run_once(
    action: str = "show",
    day: Optional[date] = None,
    config_path: str = CONFIG_PATH_DEFAULT,
    state_path: str = STATE_PATH_DEFAULT,
    events_file: Optional[str] = None,
    today: Optional[date] = None,
) -> None:
    load_dotenv()
    cfg = load_config(config_path)
    math = cfg.calendar_math()
    today = today or datetime.now(tz=math.tz).date()

    state = navigate(load_state(state_path), action, today, day)
    events = _fetch_events(cfg, events_file)
    print(f"Loaded {len(events)} events; view={state.view_mode}, reference={state.reference_date}")

    print(build_agenda(cfg, state, events, today))
    save_state(state_path, state)


def main():
    import argparse

    ap = argparse.ArgumentParser(description="Case-management calendar agenda")
    ap.add_argument("action", nargs="?", default="show", choices=NAV_ACTIONS)
    ap.add_argument("date", nargs="?", type=date.fromisoformat, help="YYYY-MM-DD, used by the day action")
    ap.add_argument("--config", default=CONFIG_PATH_DEFAULT)
    ap.add_argument("--state", default=STATE_PATH_DEFAULT)
    ap.add_argument("--events-file", help="JSON array of calendar_events rows instead of the backend")
    ap.add_argument("--today", type=date.fromisoformat, help="Override today's date (YYYY-MM-DD)")
    args = ap.parse_args()

    if args.action == "day" and args.date is None:
        ap.error("the day action needs a DATE")

    run_once(
        action=args.action,
        day=args.date,
        config_path=args.config,
        state_path=args.state,
        events_file=args.events_file,
        today=args.today,
    )


if __name__ == "__main__":
    main()
