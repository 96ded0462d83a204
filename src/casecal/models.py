from __future__ import annotations
from dataclasses import dataclass, fields
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

EVENT_TYPE_MEETING = "reuniao"
EVENT_TYPE_APPOINTMENT = "atendimento"
EVENT_TYPE_EVENT = "evento"
EVENT_TYPE_REMINDER = "lembrete"

EVENT_TYPE_LABELS = {
    EVENT_TYPE_MEETING: "Reunião",
    EVENT_TYPE_APPOINTMENT: "Atendimento",
    EVENT_TYPE_EVENT: "Evento",
    EVENT_TYPE_REMINDER: "Lembrete",
}

RECURRENCE_NONE = "none"
RECURRENCE_DAILY = "daily"
RECURRENCE_WEEKLY = "weekly"
RECURRENCE_MONTHLY = "monthly"

RECURRENCE_LABELS = {
    RECURRENCE_NONE: "Não repetir",
    RECURRENCE_DAILY: "Diariamente",
    RECURRENCE_WEEKLY: "Semanalmente",
    RECURRENCE_MONTHLY: "Mensalmente",
}


@dataclass(frozen=True)
class Event:
    id: str
    title: str
    start_at: datetime          # timezone-aware
    end_at: datetime            # timezone-aware
    all_day: bool = False
    event_type: str = EVENT_TYPE_EVENT
    recurrence_type: Optional[str] = RECURRENCE_NONE
    recurrence_end: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None
    task_id: Optional[str] = None
    participants: Tuple[str, ...] = ()
    organizer: Optional[str] = None

    @property
    def duration(self) -> timedelta:
        # Elapsed time between the instants, not the wall-clock difference.
        return self.end_at.astimezone(timezone.utc) - self.start_at.astimezone(timezone.utc)

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    @property
    def is_recurring(self) -> bool:
        return bool(self.recurrence_type) and self.recurrence_type != RECURRENCE_NONE

    @property
    def type_label(self) -> str:
        return EVENT_TYPE_LABELS.get(self.event_type, self.event_type)


@dataclass(frozen=True)
class Occurrence(Event):
    """One concrete appearance of an event on the calendar.

    The original appearance keeps the event's id; recurrence-generated ones are
    virtual and carry ``{event id}_{YYYY-MM-DD}``. ``source_event_id`` always
    points back at the stored event, which is what an editor should open.
    """

    occurrence_id: str = ""
    is_virtual: bool = False
    source_event_id: str = ""

    @classmethod
    def original(cls, event: Event) -> "Occurrence":
        return cls(
            **_event_values(event),
            occurrence_id=event.id,
            is_virtual=False,
            source_event_id=event.id,
        )

    @classmethod
    def virtual(cls, event: Event, start: datetime) -> "Occurrence":
        values = _event_values(event)
        values["start_at"] = start
        values["end_at"] = (start.astimezone(timezone.utc) + event.duration).astimezone(start.tzinfo)
        return cls(
            **values,
            occurrence_id=f"{event.id}_{start.date().isoformat()}",
            is_virtual=True,
            source_event_id=event.id,
        )

    def to_event(self) -> Event:
        return Event(**_event_values(self))


def _event_values(event: Event) -> dict:
    return {f.name: getattr(event, f.name) for f in fields(Event)}
