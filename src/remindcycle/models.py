# src/remindcycle/models.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Union

from .calendar_date import CalendarDate, Weekday
from .errors import ValidationError


def _check_day_of_month(value, field_name: str = 'day_of_month'):
    if value is None:
        raise ValidationError(field_name, ValidationError.MISSING_FIELD,
                              f"{field_name} ist erforderlich")
    if isinstance(value, bool) or not isinstance(value, int) or not (1 <= value <= 31):
        raise ValidationError(field_name, ValidationError.OUT_OF_RANGE,
                              f"{field_name} muss zwischen 1 und 31 liegen, erhalten: {value!r}")


# Frequenz-Regeln: je Variante nur die Felder, die sie wirklich braucht.
# Validiert wird ausschließlich beim Erzeugen.

@dataclass(frozen=True)
class Once:
    """Einmalige Erinnerung; das Datum kommt direkt vom Aufrufer."""


@dataclass(frozen=True)
class Daily:
    """Jeden Tag."""


@dataclass(frozen=True)
class EveryNDays:
    """Alle `interval` Tage, Phase ab dem ursprünglichen Termin."""
    interval: int

    def __post_init__(self):
        if self.interval is None:
            raise ValidationError('interval', ValidationError.MISSING_FIELD,
                                  "interval ist für EVERY_X_DAYS erforderlich")
        if isinstance(self.interval, bool) or not isinstance(self.interval, int) or self.interval < 1:
            raise ValidationError('interval', ValidationError.OUT_OF_RANGE,
                                  f"interval muss >= 1 sein, erhalten: {self.interval!r}")


@dataclass(frozen=True)
class Weekly:
    """An bestimmten Wochentagen (mindestens einer)."""
    weekdays: FrozenSet[Weekday]

    def __post_init__(self):
        raw = self.weekdays
        if raw is None or len(raw) == 0:
            raise ValidationError('weekdays', ValidationError.MISSING_FIELD,
                                  "weekdays ist für WEEKLY erforderlich")
        days = set()
        for wd in raw:
            if isinstance(wd, bool):
                raise ValidationError('weekdays', ValidationError.OUT_OF_RANGE,
                                      f"Ungültiger Wochentag: {wd!r}")
            try:
                days.add(Weekday[wd] if isinstance(wd, str) else Weekday(wd))
            except (KeyError, ValueError):
                raise ValidationError('weekdays', ValidationError.OUT_OF_RANGE,
                                      f"Ungültiger Wochentag: {wd!r}") from None
        # frozen: Normalisierung nur über object.__setattr__
        object.__setattr__(self, 'weekdays', frozenset(days))


@dataclass(frozen=True)
class Monthly:
    """Jeden Monat am Tag `day_of_month`; Monate ohne diesen Tag entfallen."""
    day_of_month: int

    def __post_init__(self):
        _check_day_of_month(self.day_of_month)


@dataclass(frozen=True)
class Yearly:
    """Jedes Jahr im Monat des Startdatums, am Tag `day_of_month` oder am Starttag."""
    day_of_month: Optional[int] = None

    def __post_init__(self):
        if self.day_of_month is not None:
            _check_day_of_month(self.day_of_month)


FrequencyRule = Union[Once, Daily, EveryNDays, Weekly, Monthly, Yearly]

FREQUENCY_NAMES = {
    Once: 'ONCE',
    Daily: 'DAILY',
    EveryNDays: 'EVERY_X_DAYS',
    Weekly: 'WEEKLY',
    Monthly: 'MONTHLY',
    Yearly: 'YEARLY',
}


def is_recurring(rule: FrequencyRule) -> bool:
    return not isinstance(rule, Once)


def frequency_name(rule: FrequencyRule) -> str:
    return FREQUENCY_NAMES[type(rule)]


def rule_from_fields(frequency: str, interval: Optional[int] = None,
                     weekdays: Optional[Iterable] = None,
                     day_of_month: Optional[int] = None) -> FrequencyRule:
    """Baut eine Regel aus der flachen Darstellung (DB-Spalten, CLI-Eingaben)."""
    freq = (frequency or '').upper()
    if not freq:
        raise ValidationError('frequency', ValidationError.MISSING_FIELD, "frequency ist erforderlich")
    if freq == 'ONCE':
        return Once()
    if freq == 'DAILY':
        return Daily()
    if freq == 'EVERY_X_DAYS':
        return EveryNDays(interval)
    if freq == 'WEEKLY':
        return Weekly(frozenset(weekdays) if weekdays else frozenset())
    if freq == 'MONTHLY':
        return Monthly(day_of_month)
    if freq == 'YEARLY':
        return Yearly(day_of_month)
    raise ValidationError('frequency', ValidationError.OUT_OF_RANGE, f"Unbekannte Frequenz: {frequency!r}")


def rule_to_fields(rule: FrequencyRule) -> dict:
    """Gegenstück zu rule_from_fields; Wochentage sortiert als Namen."""
    return {
        'frequency': frequency_name(rule),
        'interval': getattr(rule, 'interval', None),
        'weekdays': [wd.name for wd in sorted(rule.weekdays)] if isinstance(rule, Weekly) else None,
        'day_of_month': getattr(rule, 'day_of_month', None),
    }


class ReminderStatus(str, Enum):
    PENDING = 'PENDING'
    COMPLETED = 'COMPLETED'


@dataclass
class ReminderRecord:
    """Eine Erinnerung, so wie sie der Store liest und schreibt."""
    owner: int
    title: str
    rule: FrequencyRule
    next_trigger_date: CalendarDate
    id: Optional[int] = None                    # db-Primärschlüssel
    description: Optional[str] = None
    start_date: Optional[CalendarDate] = None
    last_completed_date: Optional[CalendarDate] = None
    status: ReminderStatus = ReminderStatus.PENDING
    deleted_at: Optional[datetime] = None
    version: int = 0                            # optimistische Sperre im Store
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class _Unset:
    def __repr__(self):
        return 'UNSET'

    def __bool__(self):
        return False


UNSET = _Unset()


@dataclass
class ReminderPatch:
    """Teiländerung; UNSET = Feld nicht übergeben, None = Feld leeren."""
    title: object = field(default=UNSET)
    description: object = field(default=UNSET)
    rule: object = field(default=UNSET)
    start_date: object = field(default=UNSET)
    next_trigger_date: object = field(default=UNSET)

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET
