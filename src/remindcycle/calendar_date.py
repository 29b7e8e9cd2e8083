# src/remindcycle/calendar_date.py
"""
Ganztägiger Kalendertag ohne Uhrzeit und ohne Zeitzone.

Persistiert wird ein Tag ausschließlich als Mitternacht UTC dieses Tages.
Alles andere (lokale Mitternacht, Uhrzeiten != 0) ist ein Vertragsbruch und
wird beim Einlesen mit InvariantViolation abgelehnt.
"""
import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import IntEnum
from typing import Callable

from .errors import InvalidCalendarDate, InvalidFormat, InvariantViolation

_ISO_DAY = re.compile(r'([0-9]{4})-([0-9]{2})-([0-9]{2})')


class Weekday(IntEnum):
    """0=Montag … 6=Sonntag (wie date.weekday())."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


@dataclass(frozen=True, order=True)
class CalendarDate:
    year: int
    month: int
    day: int

    def __post_init__(self):
        if not (1 <= self.month <= 12) or not (1 <= self.year <= 9999):
            raise InvalidCalendarDate(self.year, self.month, self.day)
        if not (1 <= self.day <= calendar.monthrange(self.year, self.month)[1]):
            raise InvalidCalendarDate(self.year, self.month, self.day)

    # Konstruktion
    @classmethod
    def parse(cls, s: str) -> 'CalendarDate':
        # nur ASCII-Ziffern, kein abschließender Zeilenumbruch
        m = _ISO_DAY.fullmatch(s) if isinstance(s, str) else None
        if not m:
            raise InvalidFormat(s)
        return cls(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    @classmethod
    def from_date(cls, d: date) -> 'CalendarDate':
        if isinstance(d, datetime):
            raise InvariantViolation(f"datetime statt Kalendertag übergeben: {d.isoformat()}")
        return cls(d.year, d.month, d.day)

    @classmethod
    def today(cls, clock: Callable[[], datetime]) -> 'CalendarDate':
        """Heutiger Tag laut übergebener Uhr; aware-Zeitpunkte werden nach UTC umgerechnet."""
        now = clock()
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return cls(now.year, now.month, now.day)

    @classmethod
    def from_utc_datetime(cls, dt: datetime) -> 'CalendarDate':
        """Liest die persistierte Darstellung; nur exakt Mitternacht UTC ist erlaubt."""
        if dt.tzinfo is None or dt.utcoffset() != timedelta(0):
            raise InvariantViolation(f"Datum ist nicht in UTC gespeichert: {dt.isoformat()}")
        if dt.timetz().replace(tzinfo=None) != time(0, 0):
            raise InvariantViolation(f"Datum ist nicht Mitternacht UTC: {dt.isoformat()}")
        return cls(dt.year, dt.month, dt.day)

    # Umrechnung
    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    def to_utc_datetime(self) -> datetime:
        return datetime(self.year, self.month, self.day, tzinfo=timezone.utc)

    # Arithmetik
    def add_days(self, n: int) -> 'CalendarDate':
        return CalendarDate.from_date(self.to_date() + timedelta(days=n))

    def weekday(self) -> Weekday:
        return Weekday(self.to_date().weekday())

    def compare(self, other: 'CalendarDate') -> int:
        """-1 = früher, 0 = gleich, 1 = später."""
        if self < other:
            return -1
        if self > other:
            return 1
        return 0

    def days_until(self, other: 'CalendarDate') -> int:
        """Vorzeichenbehaftete Tage von self bis other (other - self)."""
        return (other.to_date() - self.to_date()).days

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    to_string = __str__
