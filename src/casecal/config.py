from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict
from zoneinfo import ZoneInfo
import yaml

from .calendar_math import CalendarMath, parse_weekday

@dataclass
class CalendarConfig:
    week_starts_on: str
    day_preview_count: int
    max_instances: int
    horizon_months: int

@dataclass
class BackendConfig:
    enabled: bool
    table: str
    timeout_seconds: float

@dataclass
class AppConfig:
    timezone: str
    calendar: CalendarConfig
    backend: BackendConfig

    def calendar_math(self) -> CalendarMath:
        return CalendarMath(
            tz=ZoneInfo(self.timezone),
            week_starts_on=parse_weekday(self.calendar.week_starts_on),
        )

def load_config(path: str) -> AppConfig:
    p = Path(path)
    data: Dict[str, Any] = {}
    if p.exists():
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    calendar = data.get("calendar", {}) or {}
    backend = data.get("backend", {}) or {}

    return AppConfig(
        timezone=str(data.get("timezone", "America/Sao_Paulo")),
        calendar=CalendarConfig(
            week_starts_on=str(calendar.get("week_starts_on", "sunday")),
            day_preview_count=int(calendar.get("day_preview_count", 3)),
            max_instances=int(calendar.get("max_instances", 100)),
            horizon_months=int(calendar.get("horizon_months", 3)),
        ),
        backend=BackendConfig(
            enabled=bool(backend.get("enabled", True)),
            table=str(backend.get("table", "calendar_events")),
            timeout_seconds=float(backend.get("timeout_seconds", 10)),
        ),
    )
