# src/remindcycle/trigger_status.py
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .calendar_date import CalendarDate
from .models import FrequencyRule, Once, ReminderRecord, ReminderStatus


class TriggerStatus(str, Enum):
    PENDING = 'PENDING'
    TRIGGER_TODAY = 'TRIGGER_TODAY'
    OVERDUE = 'OVERDUE'
    COMPLETED = 'COMPLETED'
    DELETED = 'DELETED'


class DisplayStatus(str, Enum):
    """Anzeige-Sicht: TriggerStatus plus 'heute schon erledigt'."""
    TRIGGER_TODAY = 'TRIGGER_TODAY'
    OVERDUE = 'OVERDUE'
    COMPLETED_TODAY = 'COMPLETED_TODAY'
    NOT_STARTED = 'NOT_STARTED'
    COMPLETED = 'COMPLETED'
    DELETED = 'DELETED'


# Sortierreihenfolge der Anzeige, kleiner = wichtiger
DISPLAY_PRIORITY = {
    DisplayStatus.TRIGGER_TODAY: 1,
    DisplayStatus.OVERDUE: 2,
    DisplayStatus.COMPLETED_TODAY: 3,
    DisplayStatus.NOT_STARTED: 4,
    DisplayStatus.COMPLETED: 5,
    DisplayStatus.DELETED: 6,
}


def classify(
    next_trigger_date: CalendarDate,
    last_completed_date: Optional[CalendarDate],
    status: ReminderStatus,
    rule: FrequencyRule,
    deleted_at: Optional[datetime],
    today: CalendarDate,
) -> TriggerStatus:
    """
    Ordnet eine Erinnerung genau einem von fünf Zuständen zu.
    Reihenfolge der Regeln ist Teil der Semantik: gelöscht schlägt alles,
    danach abgeschlossene Einmal-Erinnerungen, dann der Datumsvergleich.
    `last_completed_date` spielt hier keine Rolle, nur in display_status.
    """
    if deleted_at is not None:
        return TriggerStatus.DELETED
    if status == ReminderStatus.COMPLETED and isinstance(rule, Once):
        return TriggerStatus.COMPLETED
    if next_trigger_date == today:
        return TriggerStatus.TRIGGER_TODAY
    if next_trigger_date < today and status == ReminderStatus.PENDING:
        return TriggerStatus.OVERDUE
    return TriggerStatus.PENDING


def classify_record(record: ReminderRecord, today: CalendarDate) -> TriggerStatus:
    return classify(record.next_trigger_date, record.last_completed_date, record.status,
                    record.rule, record.deleted_at, today)


def days_until_trigger(next_trigger_date: CalendarDate, today: CalendarDate) -> int:
    """Positiv = Termin liegt in der Zukunft, 0 = heute, negativ = überfällig."""
    return today.days_until(next_trigger_date)


def display_status(record: ReminderRecord, today: CalendarDate) -> DisplayStatus:
    trigger = classify_record(record, today)
    if trigger == TriggerStatus.DELETED:
        return DisplayStatus.DELETED
    if trigger == TriggerStatus.COMPLETED:
        return DisplayStatus.COMPLETED
    # wiederkehrend: nach Erledigung liegt next_trigger_date schon in der Zukunft
    if record.last_completed_date == today:
        return DisplayStatus.COMPLETED_TODAY
    if trigger == TriggerStatus.OVERDUE:
        return DisplayStatus.OVERDUE
    if trigger == TriggerStatus.TRIGGER_TODAY:
        return DisplayStatus.TRIGGER_TODAY
    return DisplayStatus.NOT_STARTED


@dataclass(frozen=True)
class ReminderView:
    """Nur-Lese-Projektion für die Anzeige; wird nie zurückgeschrieben."""
    record: ReminderRecord
    trigger_status: TriggerStatus
    display_status: DisplayStatus
    days_until_trigger: int
    is_overdue: bool
    is_today: bool
    is_completed_today: bool

    @property
    def priority(self) -> int:
        return DISPLAY_PRIORITY[self.display_status]


def build_view(record: ReminderRecord, today: CalendarDate) -> ReminderView:
    trigger = classify_record(record, today)
    days = days_until_trigger(record.next_trigger_date, today)
    return ReminderView(
        record=record,
        trigger_status=trigger,
        display_status=display_status(record, today),
        days_until_trigger=days,
        is_overdue=trigger == TriggerStatus.OVERDUE,
        is_today=days == 0,
        is_completed_today=record.last_completed_date == today,
    )


def sort_for_display(views):
    """Nach Anzeige-Priorität, dann nach Termin."""
    return sorted(views, key=lambda v: (v.priority, v.record.next_trigger_date))
