# src/remindcycle/export_utils.py
from remindcycle.calendar_date import Weekday
from remindcycle.models import Daily, EveryNDays, Monthly, Once, Weekly, Yearly
from remindcycle.trigger_status import DisplayStatus, ReminderView


_WEEKDAY_SHORT = {
    Weekday.MONDAY: 'Mo',
    Weekday.TUESDAY: 'Di',
    Weekday.WEDNESDAY: 'Mi',
    Weekday.THURSDAY: 'Do',
    Weekday.FRIDAY: 'Fr',
    Weekday.SATURDAY: 'Sa',
    Weekday.SUNDAY: 'So',
}

_MONTH_NAMES = ['Januar', 'Februar', 'März', 'April', 'Mai', 'Juni', 'Juli',
                'August', 'September', 'Oktober', 'November', 'Dezember']

STATUS_LABELS = {
    DisplayStatus.TRIGGER_TODAY: 'Heute fällig',
    DisplayStatus.OVERDUE: 'Überfällig',
    DisplayStatus.COMPLETED_TODAY: 'Heute erledigt',
    DisplayStatus.NOT_STARTED: 'Geplant',
    DisplayStatus.COMPLETED: 'Erledigt',
    DisplayStatus.DELETED: 'Gelöscht',
}


def format_days_text(days: int) -> str:
    """0 -> 'heute', 1 -> 'morgen', -1 -> 'gestern', sonst 'in N Tagen' / 'vor N Tagen'."""
    if days == 0:
        return 'heute'
    if days == 1:
        return 'morgen'
    if days == -1:
        return 'gestern'
    if days > 0:
        return f"in {days} Tagen"
    return f"vor {abs(days)} Tagen"


def describe_rule(rule, start_date=None) -> str:
    """Menschenlesbare Kurzbeschreibung einer Frequenz-Regel."""
    if isinstance(rule, Once):
        return 'einmalig'
    if isinstance(rule, Daily):
        return 'täglich'
    if isinstance(rule, EveryNDays):
        return 'täglich' if rule.interval == 1 else f"alle {rule.interval} Tage"
    if isinstance(rule, Weekly):
        return 'wöchentlich ' + ', '.join(_WEEKDAY_SHORT[wd] for wd in sorted(rule.weekdays))
    if isinstance(rule, Monthly):
        return f"monatlich am {rule.day_of_month}."
    if isinstance(rule, Yearly):
        if start_date is None:
            return 'jährlich'
        day = rule.day_of_month or start_date.day
        return f"jährlich am {day}. {_MONTH_NAMES[start_date.month - 1]}"
    return type(rule).__name__


def format_reminder_line(view: ReminderView) -> str:
    rec = view.record
    return (
        f"[{rec.id}] {rec.title} - {describe_rule(rec.rule, rec.start_date)} - "
        f"{rec.next_trigger_date} ({format_days_text(view.days_until_trigger)}) - "
        f"{STATUS_LABELS[view.display_status]}"
    )
