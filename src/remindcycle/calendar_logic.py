# src/remindcycle/calendar_logic.py
"""
Terminberechnung für wiederkehrende Erinnerungen.

Zwei reine Funktionen ohne Uhr und ohne I/O:
  - compute_initial: erster Termin ab einem Startdatum
  - compute_next:    nächster Termin nach einer (evtl. verspäteten) Erledigung

Nur EVERY_X_DAYS hat eine Phase, die nicht fest im Kalender liegt; deshalb
wird dort vom ursprünglichen Termin (anchor) aus weitergezählt. Wochentag und
Monatstag sind absolute Kalenderkoordinaten und werden ab dem Erledigungstag
gesucht.
"""
import calendar
import logging
from datetime import date
from typing import Optional

from dateutil.relativedelta import relativedelta

from .calendar_date import CalendarDate
from .errors import InvariantViolation, ValidationError
from .models import Daily, EveryNDays, FrequencyRule, Monthly, Once, Weekly, Yearly

# Obergrenzen der Suchschleifen. Wer sie reißt, hat kaputte Daten.
MAX_WEEK_SCAN_DAYS = 7
MAX_MONTH_SCAN = 24      # Tag 31 fehlt höchstens zwei Monate am Stück
MAX_YEAR_SCAN = 9        # 29.02.: 2096 -> 2104


def _invariant(msg: str) -> InvariantViolation:
    logging.error(f"[remindcycle] Invariante verletzt: {msg}")
    return InvariantViolation(msg)


def _scan_weekdays(rule: Weekly, cursor: CalendarDate, first_offset: int) -> CalendarDate:
    """Erster Tag ab cursor + first_offset, dessen Wochentag in der Regel liegt."""
    for offset in range(first_offset, first_offset + MAX_WEEK_SCAN_DAYS):
        candidate = cursor.add_days(offset)
        if candidate.weekday() in rule.weekdays:
            return candidate
    raise _invariant(f"Kein passender Wochentag in {MAX_WEEK_SCAN_DAYS} Tagen ab {cursor}: {sorted(rule.weekdays)}")


def _scan_months(day_of_month: int, bound: CalendarDate, inclusive: bool) -> CalendarDate:
    """
    Erster existierender Tag `day_of_month` ab dem Monat von `bound`, der nach
    `bound` liegt (bei inclusive auch gleich `bound`). Monate ohne diesen Tag
    werden übersprungen.
    """
    cursor = date(bound.year, bound.month, 1)
    for _ in range(MAX_MONTH_SCAN):
        if day_of_month <= calendar.monthrange(cursor.year, cursor.month)[1]:
            candidate = CalendarDate(cursor.year, cursor.month, day_of_month)
            if candidate > bound or (inclusive and candidate == bound):
                return candidate
        cursor += relativedelta(months=1)
    raise _invariant(f"Kein Monatstag {day_of_month} in {MAX_MONTH_SCAN} Monaten ab {bound}")


def _scan_years(month: int, day: int, bound: CalendarDate, inclusive: bool) -> CalendarDate:
    """Wie _scan_months, aber jahresweise auf festem (Monat, Tag)."""
    cursor = date(bound.year, month, 1)
    for _ in range(MAX_YEAR_SCAN):
        if day <= calendar.monthrange(cursor.year, month)[1]:
            candidate = CalendarDate(cursor.year, month, day)
            if candidate > bound or (inclusive and candidate == bound):
                return candidate
        cursor += relativedelta(years=1)
    raise _invariant(f"Kein Jahrestermin {month:02d}-{day:02d} in {MAX_YEAR_SCAN} Jahren ab {bound}")


def yearly_month_day(rule: Yearly, reference: CalendarDate) -> tuple:
    """
    (Monat, Tag) eines jährlichen Termins. Monat kommt immer aus `reference`
    (Startdatum), der Tag aus der Regel oder ebenfalls aus `reference`.
    Kombinationen, die es in keinem Jahr gibt (30.02., 31.04.), sind ein
    Eingabefehler.
    """
    month = reference.month
    day = rule.day_of_month if rule.day_of_month is not None else reference.day
    # 2000 ist Schaltjahr: längster möglicher Monat
    if day > calendar.monthrange(2000, month)[1]:
        raise ValidationError('day_of_month', ValidationError.OUT_OF_RANGE,
                              f"Tag {day} existiert im Monat {month} nie")
    return month, day


def compute_initial(rule: FrequencyRule, start_date: CalendarDate) -> CalendarDate:
    """Erster Termin, der ab `start_date` (inklusive) erreichbar ist."""
    if isinstance(rule, (Once, Daily, EveryNDays)):
        return start_date

    if isinstance(rule, Weekly):
        # Starttag zählt mit, deshalb Offset 0
        return _scan_weekdays(rule, start_date, 0)

    if isinstance(rule, Monthly):
        if start_date.day == rule.day_of_month:
            return start_date
        return _scan_months(rule.day_of_month, start_date, inclusive=True)

    if isinstance(rule, Yearly):
        if rule.day_of_month is None:
            return start_date
        month, day = yearly_month_day(rule, start_date)
        return _scan_years(month, day, start_date, inclusive=True)

    raise _invariant(f"Unbekannter Regeltyp: {type(rule).__name__}")


def compute_next(
    rule: FrequencyRule,
    anchor: CalendarDate,
    completed_date: CalendarDate,
    start_date: Optional[CalendarDate] = None,
) -> CalendarDate:
    """
    Nächster Termin echt nach `completed_date`.

    `anchor` ist der Termin, der bei der Erledigung aktiv war (das alte
    next_trigger_date). Das Ergebnis sieht so aus, als wäre die Erinnerung
    jedes Mal pünktlich ausgelöst worden, auch wenn Zyklen verpasst wurden.
    `start_date` liefert Monat (und ggf. Tag) für YEARLY; fehlt es, gilt der anchor.
    """
    if isinstance(rule, Once):
        raise _invariant("Einmalige Erinnerungen haben keinen Folgetermin")

    if isinstance(rule, Daily):
        return completed_date.add_days(1)

    if isinstance(rule, EveryNDays):
        # geschlossen: kleinstes k >= 1 mit anchor + k*interval > completed_date
        elapsed = anchor.days_until(completed_date)
        k = elapsed // rule.interval + 1 if elapsed >= 0 else 1
        return anchor.add_days(k * rule.interval)

    if isinstance(rule, Weekly):
        return _scan_weekdays(rule, completed_date, 1)

    if isinstance(rule, Monthly):
        return _scan_months(rule.day_of_month, completed_date, inclusive=False)

    if isinstance(rule, Yearly):
        month, day = yearly_month_day(rule, start_date or anchor)
        return _scan_years(month, day, completed_date, inclusive=False)

    raise _invariant(f"Unbekannter Regeltyp: {type(rule).__name__}")
