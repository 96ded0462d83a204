from __future__ import annotations
from datetime import date, datetime
from typing import Dict, List, Optional

from .calendar_math import CalendarMath
from .models import Occurrence
from .view import DAY_PREVIEW_COUNT, VIEW_WEEK, split_preview

MONTH_NAMES = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]
WEEKDAY_ABBR = ["Seg", "Ter", "Qua", "Qui", "Sex", "Sáb", "Dom"]

def _fmt_time(dt: datetime) -> str:
    return dt.strftime("%H:%M")

def format_header(reference: date, mode: str) -> str:
    # Example: março 2024 / Semana de 10/03/2024
    if mode == VIEW_WEEK:
        return f"Semana de {reference.strftime('%d/%m/%Y')}"
    return f"{MONTH_NAMES[reference.month - 1]} {reference.year}"

def format_time_range(o: Occurrence, math: CalendarMath) -> str:
    if o.all_day:
        return "Dia todo"
    return f"{_fmt_time(math.localize(o.start_at))} - {_fmt_time(math.localize(o.end_at))}"

def format_occurrence(o: Occurrence, math: CalendarMath) -> str:
    parts = [format_time_range(o, math), o.title, f"[{o.type_label}]"]
    if o.location:
        parts.append(f"@ {o.location}")
    if o.participant_count:
        parts.append(f"({o.participant_count} participantes)")
    if o.is_virtual:
        # Editing a repeated instance opens the stored event.
        parts.append(f"-> {o.source_event_id}")
    return " ".join(parts)

def render_grid(
    buckets: Dict[date, List[Occurrence]],
    math: CalendarMath,
    month: Optional[int] = None,
    today: Optional[date] = None,
    preview_count: int = DAY_PREVIEW_COUNT,
) -> List[str]:
    lines: List[str] = []
    for day, day_occurrences in buckets.items():
        marker = "*" if today is not None and day == today else " "
        outside = "" if month is None or day.month == month else " (outro mês)"
        lines.append(f"{marker}{WEEKDAY_ABBR[day.weekday()]} {day.strftime('%d/%m')}{outside}")
        shown, hidden = split_preview(day_occurrences, preview_count)
        for o in shown:
            label = o.title if o.all_day else f"{_fmt_time(math.localize(o.start_at))} {o.title}"
            lines.append(f"    {label}")
        if hidden:
            lines.append(f"    +{hidden} mais")
    return lines

def render_agenda(
    header: str,
    buckets: Dict[date, List[Occurrence]],
    selected: List[Occurrence],
    math: CalendarMath,
    month: Optional[int] = None,
    today: Optional[date] = None,
    preview_count: int = DAY_PREVIEW_COUNT,
    list_title: str = "Eventos",
) -> str:
    lines = [header, "=" * len(header)]
    lines.extend(render_grid(buckets, math, month=month, today=today, preview_count=preview_count))
    lines.append("")
    lines.append(list_title)
    if not selected:
        lines.append("  Nenhum evento")
    for o in selected:
        lines.append(f"  {math.localize(o.start_at).strftime('%d/%m')} {format_occurrence(o, math)}")
    return "\n".join(lines)
