"""Fetching calendar events from the hosted database (Supabase / PostgREST)."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

import requests
from dateutil.parser import isoparse

from .models import EVENT_TYPE_EVENT, RECURRENCE_NONE, Event

_LOGGER = logging.getLogger(__name__)

DEFAULT_TABLE = "calendar_events"

# Same embedded select the application uses for the calendar page.
EVENT_SELECT = (
    "*,"
    "created_by_profile:profiles!calendar_events_created_by_fkey(full_name),"
    "participants:event_participants(*,user_profile:profiles!event_participants_user_id_fkey(full_name)),"
    "external_participants:external_event_participants(*)"
)


class EventParseError(ValueError):
    """Raised when a calendar_events row cannot be turned into an Event."""


class BackendError(RuntimeError):
    """Raised when the calendar backend cannot be queried."""


def _parse_timestamp(row: Dict[str, Any], key: str, tz: ZoneInfo, required: bool = True) -> Optional[datetime]:
    raw = row.get(key)
    if raw in (None, ""):
        if required:
            raise EventParseError(f"Row {row.get('id')!r} has no {key}")
        return None
    try:
        value = isoparse(str(raw))
    except (ValueError, OverflowError) as e:
        raise EventParseError(f"Row {row.get('id')!r} has an invalid {key}: {raw!r}") from e
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value


def _profile_name(entry: Any, key: str) -> Optional[str]:
    if not isinstance(entry, dict):
        return None
    profile = entry.get(key)
    if isinstance(profile, dict) and profile.get("full_name"):
        return str(profile["full_name"])
    return None


def parse_event_row(row: Dict[str, Any], tz: ZoneInfo) -> Event:
    if not isinstance(row, dict):
        raise EventParseError(f"Expected a row object, got {type(row).__name__}")
    if not row.get("id"):
        raise EventParseError("Row has no id")

    start_at = _parse_timestamp(row, "data_inicio", tz)
    end_at = _parse_timestamp(row, "data_fim", tz)
    recurrence_end = _parse_timestamp(row, "recurrence_end", tz, required=False)
    if end_at < start_at:
        raise EventParseError(f"Row {row['id']!r} ends before it starts")

    participants: List[str] = []
    organizer = _profile_name(row, "created_by_profile")
    for p in row.get("participants") or []:
        name = _profile_name(p, "user_profile")
        if not name:
            continue
        participants.append(name)
        if p.get("is_organizer"):
            organizer = name
    for ext in row.get("external_participants") or []:
        if isinstance(ext, dict) and ext.get("name"):
            participants.append(str(ext["name"]))

    return Event(
        id=str(row["id"]),
        title=str(row.get("titulo") or "(Sem título)"),
        start_at=start_at,
        end_at=end_at,
        all_day=bool(row.get("all_day") or False),
        event_type=str(row.get("tipo") or EVENT_TYPE_EVENT),
        recurrence_type=str(row.get("recurrence_type") or RECURRENCE_NONE),
        recurrence_end=recurrence_end,
        location=row.get("location") or None,
        description=row.get("descricao") or None,
        task_id=row.get("task_id") or None,
        participants=tuple(participants),
        organizer=organizer,
    )


def parse_events(rows: Iterable[Dict[str, Any]], tz: ZoneInfo) -> List[Event]:
    """Parse rows, skipping (and logging) the ones with missing or malformed dates."""
    events: List[Event] = []
    for row in rows:
        try:
            events.append(parse_event_row(row, tz))
        except EventParseError as e:
            _LOGGER.warning("Skipping calendar event: %s", e)
    return events


def load_events_file(path: str, tz: ZoneInfo) -> List[Event]:
    """Read calendar_events rows exported as a JSON array."""
    rows = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(rows, list):
        raise EventParseError(f"{path} does not contain a JSON array of rows")
    return parse_events(rows, tz)


class CalendarBackend:
    """Read-only client for the calendar_events table behind PostgREST."""

    def __init__(
        self,
        url: str,
        api_key: str,
        table: str = DEFAULT_TABLE,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = url.rstrip("/")
        self.table = table
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            }
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def fetch_rows(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Dict[str, Any]]:
        params = [("select", EVENT_SELECT), ("order", "data_inicio.asc")]
        if start is not None:
            params.append(("data_inicio", f"gte.{start.isoformat()}"))
        if end is not None:
            params.append(("data_fim", f"lte.{end.isoformat()}"))

        try:
            resp = self._session.get(self.endpoint, params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            raise BackendError(f"Fetching {self.table} failed: {e}") from e
        except ValueError as e:
            raise BackendError(f"{self.table} returned a non-JSON response") from e

        if not isinstance(payload, list):
            raise BackendError(f"{self.table} returned {type(payload).__name__}, expected a list of rows")
        _LOGGER.debug("Fetched %d rows from %s", len(payload), self.table)
        return payload

    def fetch_events(
        self,
        tz: ZoneInfo,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Event]:
        return parse_events(self.fetch_rows(start, end), tz)
