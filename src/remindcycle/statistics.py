# src/remindcycle/statistics.py
from collections import Counter
from typing import Dict, Iterable

from remindcycle.calendar_date import CalendarDate
from remindcycle.models import ReminderRecord, frequency_name
from remindcycle.trigger_status import DisplayStatus, ReminderView, build_view


def count_by_display_status(views: Iterable[ReminderView]) -> Dict[DisplayStatus, int]:
    """Anzahl je Anzeige-Status; fehlende Status zählen 0."""
    counts = Counter(v.display_status for v in views)
    return {st: counts.get(st, 0) for st in DisplayStatus}


def summarize_reminders(records: Iterable[ReminderRecord], today: CalendarDate) -> Dict[str, int]:
    """
    Gesamt-Zusammenfassung für eine Liste von Erinnerungen:
      total           : Anzahl Erinnerungen
      due_today       : heute fällig und noch nicht erledigt
      overdue         : überfällig
      completed_today : heute schon erledigt
      upcoming        : Termin liegt in der Zukunft
      recurring       : wiederkehrende Erinnerungen
    """
    records = list(records)
    views = [build_view(r, today) for r in records]
    by_status = count_by_display_status(views)
    return {
        'total': len(records),
        'due_today': by_status[DisplayStatus.TRIGGER_TODAY],
        'overdue': by_status[DisplayStatus.OVERDUE],
        'completed_today': by_status[DisplayStatus.COMPLETED_TODAY],
        'upcoming': by_status[DisplayStatus.NOT_STARTED],
        'recurring': sum(1 for r in records if frequency_name(r.rule) != 'ONCE'),
    }
