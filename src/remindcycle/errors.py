# src/remindcycle/errors.py
from typing import Any, Dict, Optional


class ReminderError(Exception):
    """Basisklasse aller Fehler von remindcycle."""


class ValidationError(ReminderError):
    """Eingabe ist strukturell falsch (fehlendes Feld, Wert außerhalb des Bereichs, kaputtes Datum)."""

    MISSING_FIELD = 'missing_field'
    OUT_OF_RANGE = 'out_of_range'
    INVALID_FORMAT = 'invalid_format'
    INVALID_DATE = 'invalid_date'

    def __init__(self, field: str, reason: str, message: Optional[str] = None):
        self.field = field
        self.reason = reason
        super().__init__(message or f"{field}: {reason}")


class InvalidFormat(ValidationError):
    def __init__(self, value: str):
        self.value = value
        super().__init__('date', ValidationError.INVALID_FORMAT,
                         f"Erwartetes Format YYYY-MM-DD, erhalten: {value!r}")


class InvalidCalendarDate(ValidationError):
    def __init__(self, year: int, month: int, day: int):
        self.year, self.month, self.day = year, month, day
        super().__init__('date', ValidationError.INVALID_DATE,
                         f"{year:04d}-{month:02d}-{day:02d} ist kein gültiger Kalendertag")


class BusinessError(ReminderError):
    """Operation ist im aktuellen Zustand fachlich nicht erlaubt."""

    def __init__(self, code: str, message: Optional[str] = None,
                 data: Optional[Dict[str, Any]] = None):
        self.code = code
        self.data = data or {}
        super().__init__(message or code)


class NotFoundError(BusinessError):
    def __init__(self, reminder_id: Any):
        self.reminder_id = reminder_id
        super().__init__('common.notFound', f"Erinnerung {reminder_id} nicht gefunden",
                         {'id': reminder_id})


class ConcurrentModification(BusinessError):
    """Datensatz wurde zwischen Lesen und Schreiben von jemand anderem geändert."""

    def __init__(self, reminder_id: Any, expected_version: int):
        self.reminder_id = reminder_id
        self.expected_version = expected_version
        super().__init__('reminder.concurrentModification',
                         f"Erinnerung {reminder_id} wurde parallel geändert (Version {expected_version})",
                         {'id': reminder_id, 'version': expected_version})


class InvariantViolation(ReminderError):
    """Interne Voraussetzung verletzt - Programmierfehler, niemals still behandeln."""
