# tests/test_main.py

from datetime import datetime, timezone

from remindcycle import main
from remindcycle.clock import FixedClock
from remindcycle.data import Database

NOW = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)


def _feed(monkeypatch, answers):
    it = iter(answers)
    monkeypatch.setattr('builtins.input', lambda prompt='': next(it))


def test_wizard_create_list_complete(tmp_path, monkeypatch, capsys):
    db_path = str(tmp_path / 'cli.db')
    monkeypatch.setattr(main, 'load_config', lambda: {'clock': 'system', 'owner': 1})
    monkeypatch.setattr(main, 'make_clock', lambda cfg: FixedClock(NOW))
    _feed(monkeypatch, [
        '2', 'Blumen gießen', '', '3', '3', '2025-01-01', '',   # alle 3 Tage ab 01.01.
        '1',                                                 # Übersicht
        '3', '1',                                            # erledigen
        '3', '1',                                            # nochmal -> nicht fällig
        'x',
        'q',
    ])
    main.run_wizard(db_path)
    out = capsys.readouterr().out
    assert 'Angelegt: [1] nächster Termin 2025-01-01' in out
    assert 'Blumen gießen - alle 3 Tage' in out
    assert 'Überfällig' in out
    assert 'Nächster Termin: 2025-01-16' in out
    assert 'nicht fällig' in out
    assert 'Unbekannte Aktion.' in out

    db = Database(db_path)
    rec = db.list_for_owner(1)[0]
    assert str(rec.next_trigger_date) == '2025-01-16'
    db.close()


def test_wizard_reports_validation_errors(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(main, 'load_config', lambda: {'owner': 1})
    monkeypatch.setattr(main, 'make_clock', lambda cfg: FixedClock(NOW))
    _feed(monkeypatch, [
        '2', 'Sport', '', '4', '',           # WEEKLY ohne Wochentage
        '4', 'abc',                          # keine Zahl
        'q',
    ])
    main.run_wizard(str(tmp_path / 'cli.db'))
    out = capsys.readouterr().out
    assert 'weekdays ist für WEEKLY erforderlich' in out
    assert 'Ungültige Eingabe.' in out
