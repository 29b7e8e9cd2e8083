# src/remindcycle/main.py

import logging
from typing import Optional

from .calendar_date import CalendarDate
from .clock import make_clock
from .config import load_config
from .data import Database
from .errors import BusinessError, ValidationError
from .export_utils import STATUS_LABELS, format_reminder_line
from .lifecycle import ReminderLifecycle
from .models import rule_from_fields
from .statistics import count_by_display_status

FREQUENCIES = ['ONCE', 'DAILY', 'EVERY_X_DAYS', 'WEEKLY', 'MONTHLY', 'YEARLY']
WEEKDAY_NAMES = ['MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY', 'SATURDAY', 'SUNDAY']


def _optional_date(prompt: str) -> Optional[CalendarDate]:
    raw = input(prompt).strip()
    return CalendarDate.parse(raw) if raw else None


def input_rule():
    print("\n✏️  Neue Erinnerung - Rhythmus:")
    for i, name in enumerate(FREQUENCIES, 1):
        print(f"  [{i}] {name}")
    choice = input("  Auswahl: ").strip()
    frequency = FREQUENCIES[int(choice) - 1] if choice.isdigit() and 1 <= int(choice) <= len(FREQUENCIES) else choice
    interval = weekdays = day_of_month = None
    if frequency.upper() == 'EVERY_X_DAYS':
        raw = input("  Alle wie viele Tage? ").strip()
        interval = int(raw) if raw.isdigit() else None
    elif frequency.upper() == 'WEEKLY':
        days_str = input("  Wochentage (0=Mo … 6=So), kommasepariert: ")
        weekdays = [WEEKDAY_NAMES[int(x)] for x in days_str.split(",") if x.strip().isdigit() and int(x) < 7]
    elif frequency.upper() == 'MONTHLY':
        raw = input("  Tag im Monat (1-31): ").strip()
        day_of_month = int(raw) if raw.isdigit() else None
    elif frequency.upper() == 'YEARLY':
        raw = input("  Tag im Monat [leer=Tag des Startdatums]: ").strip()
        day_of_month = int(raw) if raw.isdigit() else None
    return rule_from_fields(frequency, interval, weekdays, day_of_month)


def input_reminder(lifecycle: ReminderLifecycle, owner):
    title = input("  Titel: ").strip()
    description = input("  Beschreibung [leer=keine]: ").strip() or None
    rule = input_rule()
    start = _optional_date("  Startdatum (YYYY-MM-DD) [leer=heute]: ")
    trigger = _optional_date("  Erster Termin (YYYY-MM-DD) [leer=automatisch]: ")
    return lifecycle.create(owner, title, rule, start_date=start, explicit_trigger=trigger,
                            description=description)


def print_overview(lifecycle: ReminderLifecycle, owner):
    views = lifecycle.overview(owner)
    if not views:
        print("\nKeine aktiven Erinnerungen.")
        return
    print(f"\n📋 {len(views)} Erinnerungen:")
    for v in views:
        print(" ", format_reminder_line(v))
    counts = count_by_display_status(views)
    print("  " + ", ".join(f"{STATUS_LABELS[st]}: {n}" for st, n in counts.items() if n))


def run_wizard(db_path: str = None):
    logging.basicConfig(level=logging.WARNING)
    cfg = load_config()
    clock = make_clock(cfg)
    db = Database(db_path or cfg.get('db_path'), clock=clock)
    lifecycle = ReminderLifecycle(db, clock)
    owner = cfg.get('owner', 1)

    print("⏰ Willkommen bei remindcycle ⏰")
    try:
        while True:
            print("\n[1] Übersicht  [2] Neue Erinnerung  [3] Erledigen  [4] Löschen  [q] Beenden")
            action = input("Aktion: ").strip().lower()
            if action == 'q':
                break
            try:
                if action == '1':
                    print_overview(lifecycle, owner)
                elif action == '2':
                    rec = input_reminder(lifecycle, owner)
                    print(f"✅ Angelegt: [{rec.id}] nächster Termin {rec.next_trigger_date}")
                elif action == '3':
                    rec = lifecycle.complete(owner, int(input("  ID: ")))
                    print(f"✅ Erledigt. Nächster Termin: {rec.next_trigger_date}"
                          if rec.status.value == 'PENDING' else "✅ Erledigt.")
                elif action == '4':
                    lifecycle.delete(owner, int(input("  ID: ")))
                    print("🗑️  Gelöscht.")
                else:
                    print("Unbekannte Aktion.")
            except (ValidationError, BusinessError) as e:
                print(f"❌ {e}")
            except ValueError:
                print("❌ Ungültige Eingabe.")
    finally:
        db.close()


if __name__ == "__main__":
    run_wizard()
