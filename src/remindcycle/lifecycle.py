# src/remindcycle/lifecycle.py
"""
Anlegen, Ändern, Erledigen und Löschen von Erinnerungen.

Die Funktionen create_record / apply_patch / complete_record / delete_record
sind rein: sie bekommen einen Datensatz und "heute" und liefern den neuen
Datensatz. ReminderLifecycle hängt nur Store-Zugriffe und die Uhr davor.
Lesen-dann-Schreiben muss der Store pro Datensatz serialisieren (hier über
die Versionsspalte, siehe Database.save).
"""
import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import List, Optional, Union

from .calendar_date import CalendarDate
from .calendar_logic import compute_initial, compute_next, yearly_month_day
from .errors import BusinessError, NotFoundError, ValidationError
from .models import (
    FREQUENCY_NAMES, FrequencyRule, Once, ReminderPatch, ReminderRecord,
    ReminderStatus, Yearly, is_recurring,
)
from .trigger_status import ReminderView, TriggerStatus, build_view, classify_record, sort_for_display

MAX_PAGE_SIZE = 100
COMPLETABLE = (TriggerStatus.TRIGGER_TODAY, TriggerStatus.OVERDUE)

DateLike = Union[CalendarDate, str, None]


def _as_date(value: DateLike, field_name: str) -> Optional[CalendarDate]:
    if value is None or isinstance(value, CalendarDate):
        return value
    if isinstance(value, str):
        try:
            return CalendarDate.parse(value)
        except ValidationError as e:
            raise ValidationError(field_name, e.reason, f"{field_name}: {e}") from e
    raise ValidationError(field_name, ValidationError.INVALID_FORMAT,
                          f"{field_name} muss ein Kalendertag sein, erhalten: {type(value).__name__}")


def _check_title(title):
    if not title or not str(title).strip():
        raise ValidationError('title', ValidationError.MISSING_FIELD, "title ist erforderlich")


def _check_rule(rule):
    if type(rule) not in FREQUENCY_NAMES:
        raise ValidationError('rule', ValidationError.MISSING_FIELD, "Gültige Frequenz-Regel ist erforderlich")


def create_record(owner, title: str, rule: FrequencyRule, today: CalendarDate,
                  start_date: DateLike = None, explicit_trigger: DateLike = None,
                  description: Optional[str] = None) -> ReminderRecord:
    _check_title(title)
    _check_rule(rule)
    start = _as_date(start_date, 'start_date')
    trigger = _as_date(explicit_trigger, 'next_trigger_date')

    if isinstance(rule, Once):
        # Einmalig: Startdatum ist der Termin, ersatzweise der explizite Termin
        start = start or trigger
        if start is None:
            raise ValidationError('start_date', ValidationError.MISSING_FIELD,
                                  "start_date oder next_trigger_date ist für ONCE erforderlich")
    else:
        start = start or today
    if isinstance(rule, Yearly):
        yearly_month_day(rule, start)

    return ReminderRecord(
        owner=owner,
        title=title,
        description=description or None,
        rule=rule,
        start_date=start if is_recurring(rule) else None,
        next_trigger_date=trigger if trigger is not None else compute_initial(rule, start),
        status=ReminderStatus.PENDING,
    )


def apply_patch(record: ReminderRecord, patch: ReminderPatch, today: CalendarDate) -> ReminderRecord:
    changes = {}
    if patch.is_set('title'):
        _check_title(patch.title)
        changes['title'] = patch.title
    if patch.is_set('description'):
        changes['description'] = patch.description or None
    if patch.is_set('rule'):
        _check_rule(patch.rule)
        changes['rule'] = patch.rule
    if patch.is_set('start_date'):
        changes['start_date'] = _as_date(patch.start_date, 'start_date')
    if patch.is_set('next_trigger_date'):
        trigger = _as_date(patch.next_trigger_date, 'next_trigger_date')
        if trigger is None:
            raise ValidationError('next_trigger_date', ValidationError.MISSING_FIELD,
                                  "next_trigger_date darf nicht geleert werden")
        changes['next_trigger_date'] = trigger

    updated = replace(record, **changes)

    rule_changed = 'rule' in changes and changes['rule'] != record.rule
    start_changed = 'start_date' in changes and changes['start_date'] != record.start_date
    if (rule_changed or start_changed) and 'next_trigger_date' not in changes:
        updated.next_trigger_date = compute_initial(updated.rule, updated.start_date or today)
    elif isinstance(updated.rule, Yearly) and (rule_changed or start_changed):
        yearly_month_day(updated.rule, updated.start_date or updated.next_trigger_date)
    # COMPLETED gibt es nur für Einmal-Erinnerungen
    if is_recurring(updated.rule):
        updated.status = ReminderStatus.PENDING
    else:
        # Einmal-Erinnerungen tragen ihr Datum nur im Termin
        updated.start_date = None
    return updated


def complete_record(record: ReminderRecord, today: CalendarDate) -> ReminderRecord:
    """Nur heute fällige oder überfällige Erinnerungen können erledigt werden."""
    current = classify_record(record, today)
    if current not in COMPLETABLE:
        raise BusinessError('reminder.onlyTodayOrOverdueCanComplete',
                            f"Erinnerung ist {current.value}, nicht fällig",
                            {'status': current.value})

    if not is_recurring(record.rule):
        return replace(record, status=ReminderStatus.COMPLETED, last_completed_date=today)

    # alter Termin ist der Anker, damit verpasste Zyklen die Phase nicht verschieben
    next_trigger = compute_next(record.rule, anchor=record.next_trigger_date,
                                completed_date=today, start_date=record.start_date)
    return replace(record, last_completed_date=today, next_trigger_date=next_trigger,
                   status=ReminderStatus.PENDING)


def delete_record(record: ReminderRecord, now: datetime) -> ReminderRecord:
    return replace(record, deleted_at=now)


@dataclass
class ReminderPage:
    items: List[ReminderRecord]
    total: int
    page: int
    limit: int
    total_pages: int


class ReminderLifecycle:
    def __init__(self, store, clock):
        self.store = store
        self.clock = clock

    def _today(self, today: Optional[CalendarDate]) -> CalendarDate:
        return today if today is not None else CalendarDate.today(self.clock)

    def create(self, owner, title: str, rule: FrequencyRule, start_date: DateLike = None,
               explicit_trigger: DateLike = None, description: Optional[str] = None,
               today: Optional[CalendarDate] = None) -> ReminderRecord:
        record = create_record(owner, title, rule, self._today(today), start_date,
                               explicit_trigger, description)
        record = self.store.insert(record)
        logging.info(f"[remindcycle] Erinnerung {record.id} angelegt, nächster Termin {record.next_trigger_date}")
        return record

    def get(self, owner, reminder_id) -> ReminderRecord:
        record = self.store.get(owner, reminder_id)
        if record is None:
            raise NotFoundError(reminder_id)
        return record

    def update(self, owner, reminder_id, patch: ReminderPatch,
               today: Optional[CalendarDate] = None) -> ReminderRecord:
        record = self.get(owner, reminder_id)
        updated = self.store.save(apply_patch(record, patch, self._today(today)))
        logging.info(f"[remindcycle] Erinnerung {reminder_id} geändert, nächster Termin {updated.next_trigger_date}")
        return updated

    def complete(self, owner, reminder_id, today: Optional[CalendarDate] = None) -> ReminderRecord:
        record = self.get(owner, reminder_id)
        updated = self.store.save(complete_record(record, self._today(today)))
        logging.info(f"[remindcycle] Erinnerung {reminder_id} erledigt, Status {updated.status.value}, "
                     f"nächster Termin {updated.next_trigger_date}")
        return updated

    def delete(self, owner, reminder_id, now: Optional[datetime] = None) -> ReminderRecord:
        record = self.get(owner, reminder_id)
        when = now or self.clock()
        if when.tzinfo is not None:
            when = when.astimezone(timezone.utc)
        deleted = self.store.save(delete_record(record, when))
        logging.info(f"[remindcycle] Erinnerung {reminder_id} gelöscht")
        return deleted

    def list(self, owner, page: int = 1, limit: int = 20, frequency: Optional[str] = None,
             status: Optional[ReminderStatus] = None, include_completed: bool = False) -> ReminderPage:
        page = max(1, int(page or 1))
        limit = min(max(1, int(limit or 20)), MAX_PAGE_SIZE)
        filters = dict(frequency=frequency, status=status, include_completed=include_completed)
        items = self.store.list_for_owner(owner, offset=(page - 1) * limit, limit=limit, **filters)
        total = self.store.count_for_owner(owner, **filters)
        return ReminderPage(items=items, total=total, page=page, limit=limit,
                            total_pages=math.ceil(total / limit))

    def overview(self, owner, today: Optional[CalendarDate] = None,
                 include_completed: bool = False) -> List[ReminderView]:
        """Alle aktiven Erinnerungen als Anzeige-Sicht, wichtigste zuerst."""
        day = self._today(today)
        total = self.store.count_for_owner(owner, include_completed=include_completed)
        records = self.store.list_for_owner(owner, offset=0, limit=max(total, 1),
                                            include_completed=include_completed)
        return sort_for_display(build_view(r, day) for r in records)
