# src/remindcycle/data.py
import json
import logging
import os
import sqlite3
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from remindcycle.calendar_date import CalendarDate
from remindcycle.clock import SystemClock
from remindcycle.errors import ConcurrentModification, InvariantViolation, NotFoundError
from remindcycle.models import ReminderRecord, ReminderStatus, rule_from_fields, rule_to_fields

_COLUMNS = (
    "id, owner, title, description, frequency, interval_days, weekdays, day_of_month, "
    "start_date, next_trigger_date, last_completed_date, status, deleted_at, version, "
    "created_at, updated_at"
)


def dump_date(d: Optional[CalendarDate]) -> Optional[str]:
    """Kalendertag -> ISO-Zeitstempel Mitternacht UTC (einzige erlaubte Speicherform)."""
    return d.to_utc_datetime().isoformat() if d is not None else None


def load_date(raw: Optional[str], field: str = 'date') -> Optional[CalendarDate]:
    if raw is None:
        return None
    try:
        return CalendarDate.from_utc_datetime(datetime.fromisoformat(raw))
    except (InvariantViolation, ValueError) as e:
        logging.error(f"[remindcycle] Gespeichertes Datum {field}={raw!r} verletzt UTC-Mitternacht: {e}")
        raise InvariantViolation(f"{field}={raw!r} ist kein Kalendertag in UTC-Mitternacht") from e


class Database:
    """sqlite-Store für Erinnerungen. Kennt nur CRUD, keine Terminlogik."""

    def __init__(self, db_path: str = None, clock=None):
        try:
            self.db_path = db_path or os.path.join(os.path.expanduser("~"), ".remindcycle", "remindcycle.db")
            if self.db_path != ':memory:':
                os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
            self.clock = clock or SystemClock()
            self.conn = sqlite3.connect(self.db_path)
            self.conn.row_factory = sqlite3.Row
            self._ensure_tables()
        except sqlite3.Error as e:
            logging.error(f"Database connection error: {e}")
            raise

    def _ensure_tables(self):
        cur = self.conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS reminders (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          owner INTEGER NOT NULL,
          title TEXT NOT NULL,
          description TEXT,
          frequency TEXT NOT NULL,
          interval_days INTEGER,
          weekdays TEXT,
          day_of_month INTEGER,
          start_date TEXT,
          next_trigger_date TEXT NOT NULL,
          last_completed_date TEXT,
          status TEXT NOT NULL,
          deleted_at TEXT,
          version INTEGER NOT NULL DEFAULT 0,
          created_at TEXT NOT NULL,
          updated_at TEXT NOT NULL
        )""")
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_reminders_owner_next "
            "ON reminders(owner, deleted_at, next_trigger_date)"
        )
        self.conn.commit()

    # Export/Import
    def export_to_sql(self, filename: str):
        """Dump aller Tabellen als SQL-Statements"""
        with open(filename, 'w', encoding='utf-8') as f:
            for line in self.conn.iterdump():
                f.write(f"{line}\n")

    def import_from_sql(self, filename: str):
        """Vorhandene Tabelle löschen, Dump einlesen und ausführen"""
        cur = self.conn.cursor()
        cur.execute("DROP TABLE IF EXISTS reminders")
        self.conn.commit()

        with open(filename, 'r', encoding='utf-8') as f:
            script = f.read()
        self.conn.executescript(script)
        self.conn.commit()
        self._ensure_tables()

    # Zeilen <-> Datensätze
    def _row_to_record(self, row) -> ReminderRecord:
        weekdays = json.loads(row['weekdays']) if row['weekdays'] else None
        rule = rule_from_fields(row['frequency'], row['interval_days'], weekdays, row['day_of_month'])
        return ReminderRecord(
            id=row['id'],
            owner=row['owner'],
            title=row['title'],
            description=row['description'],
            rule=rule,
            start_date=load_date(row['start_date'], 'start_date'),
            next_trigger_date=load_date(row['next_trigger_date'], 'next_trigger_date'),
            last_completed_date=load_date(row['last_completed_date'], 'last_completed_date'),
            status=ReminderStatus(row['status']),
            deleted_at=datetime.fromisoformat(row['deleted_at']) if row['deleted_at'] else None,
            version=row['version'],
            created_at=datetime.fromisoformat(row['created_at']),
            updated_at=datetime.fromisoformat(row['updated_at']),
        )

    @staticmethod
    def _record_params(rec: ReminderRecord) -> dict:
        fields = rule_to_fields(rec.rule)
        return {
            'owner': rec.owner,
            'title': rec.title,
            'description': rec.description,
            'frequency': fields['frequency'],
            'interval_days': fields['interval'],
            'weekdays': json.dumps(fields['weekdays']) if fields['weekdays'] else None,
            'day_of_month': fields['day_of_month'],
            'start_date': dump_date(rec.start_date),
            'next_trigger_date': dump_date(rec.next_trigger_date),
            'last_completed_date': dump_date(rec.last_completed_date),
            'status': ReminderStatus(rec.status).value,
            'deleted_at': rec.deleted_at.isoformat() if rec.deleted_at else None,
        }

    # Reminder-Methoden
    def insert(self, rec: ReminderRecord) -> ReminderRecord:
        now = self.clock()
        params = self._record_params(rec)
        params.update(created_at=now.isoformat(), updated_at=now.isoformat())
        cols = ', '.join(params)
        marks = ', '.join(f":{k}" for k in params)
        cur = self.conn.cursor()
        cur.execute(f"INSERT INTO reminders ({cols}, version) VALUES ({marks}, 0)", params)
        self.conn.commit()
        return replace(rec, id=cur.lastrowid, version=0, created_at=now, updated_at=now)

    def save(self, rec: ReminderRecord) -> ReminderRecord:
        """
        Schreibt einen geänderten Datensatz zurück. Die Versionsprüfung sorgt
        dafür, dass zwei parallele Erledigungen nicht denselben Anker lesen
        und sich gegenseitig überschreiben.
        """
        if rec.id is None:
            raise InvariantViolation("save() ohne id, insert() verwenden")
        now = self.clock()
        params = self._record_params(rec)
        params.update(updated_at=now.isoformat(), id=rec.id, version=rec.version)
        assignments = ', '.join(f"{k}=:{k}" for k in params if k not in ('id', 'version'))
        cur = self.conn.cursor()
        cur.execute(
            f"UPDATE reminders SET {assignments}, version=version+1 WHERE id=:id AND version=:version",
            params,
        )
        if cur.rowcount == 0:
            self.conn.rollback()
            exists = self.conn.execute("SELECT 1 FROM reminders WHERE id=?", (rec.id,)).fetchone()
            if exists is None:
                raise NotFoundError(rec.id)
            logging.error(f"[remindcycle] Versionskonflikt bei Erinnerung {rec.id} (Version {rec.version})")
            raise ConcurrentModification(rec.id, rec.version)
        self.conn.commit()
        return replace(rec, version=rec.version + 1, updated_at=now)

    def get(self, owner, reminder_id) -> Optional[ReminderRecord]:
        """Nur aktive (nicht gelöschte) Erinnerungen des Besitzers."""
        cur = self.conn.cursor()
        cur.execute(
            f"SELECT {_COLUMNS} FROM reminders WHERE id=? AND owner=? AND deleted_at IS NULL",
            (reminder_id, owner),
        )
        row = cur.fetchone()
        return self._row_to_record(row) if row else None

    @staticmethod
    def _owner_filter(owner, frequency=None, status=None, include_completed=False):
        where = ["owner=?", "deleted_at IS NULL"]
        params: list = [owner]
        if frequency:
            where.append("frequency=?")
            params.append(frequency.upper())
        if status:
            where.append("status=?")
            params.append(ReminderStatus(status).value)
        if not include_completed:
            # erledigte Einmal-Erinnerungen ausblenden
            where.append("(status='PENDING' OR frequency!='ONCE')")
        return ' AND '.join(where), params

    def list_for_owner(self, owner, offset: int = 0, limit: int = 20, frequency: str = None,
                       status=None, include_completed: bool = False) -> List[ReminderRecord]:
        where, params = self._owner_filter(owner, frequency, status, include_completed)
        cur = self.conn.cursor()
        cur.execute(
            f"SELECT {_COLUMNS} FROM reminders WHERE {where} "
            "ORDER BY next_trigger_date ASC, id ASC LIMIT ? OFFSET ?",
            params + [limit, offset],
        )
        return [self._row_to_record(row) for row in cur.fetchall()]

    def count_for_owner(self, owner, frequency: str = None, status=None,
                        include_completed: bool = False) -> int:
        where, params = self._owner_filter(owner, frequency, status, include_completed)
        cur = self.conn.cursor()
        cur.execute(f"SELECT COUNT(*) FROM reminders WHERE {where}", params)
        return cur.fetchone()[0]

    def close(self):
        """Schließe die Datenbankverbindung sauber"""
        if self.conn:
            self.conn.close()
            self.conn = None
