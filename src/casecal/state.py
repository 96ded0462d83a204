from __future__ import annotations
from dataclasses import dataclass, asdict
from datetime import date
from pathlib import Path
from typing import Optional, Dict, Any
import json

@dataclass
class ViewState:
    reference_date: str = ""         # YYYY-MM-DD the month/week view is built around
    view_mode: str = "month"         # "month" / "week"
    selected_date: str = ""          # YYYY-MM-DD of the clicked day
    showing_specific_day: bool = False

    @property
    def reference(self) -> Optional[date]:
        return _parse_day(self.reference_date)

    @property
    def selected(self) -> Optional[date]:
        return _parse_day(self.selected_date)

def _parse_day(value: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None

def load_state(path: str) -> ViewState:
    p = Path(path)
    if not p.exists():
        return ViewState()
    data: Dict[str, Any] = json.loads(p.read_text(encoding="utf-8"))
    return ViewState(
        reference_date=str(data.get("reference_date", "")),
        view_mode=str(data.get("view_mode", "month")),
        selected_date=str(data.get("selected_date", "")),
        showing_specific_day=bool(data.get("showing_specific_day", False)),
    )

def save_state(path: str, state: ViewState) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(asdict(state), indent=2), encoding="utf-8")
