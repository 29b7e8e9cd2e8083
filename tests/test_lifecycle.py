# tests/test_lifecycle.py

from datetime import datetime, timezone
import pytest

from remindcycle.calendar_date import CalendarDate as D, Weekday
from remindcycle.clock import FixedClock
from remindcycle.data import Database
from remindcycle.errors import BusinessError, NotFoundError, ValidationError
from remindcycle.lifecycle import (
    ReminderLifecycle, apply_patch, complete_record, create_record,
)
from remindcycle.models import (
    Daily, EveryNDays, Monthly, Once, ReminderPatch, ReminderStatus, Weekly, Yearly,
)
from remindcycle.trigger_status import TriggerStatus, classify_record

TODAY = D(2025, 1, 15)
NOW = datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def lifecycle(tmp_path):
    clock = FixedClock(NOW)
    db = Database(str(tmp_path / 'reminders.db'), clock=clock)
    try:
        yield ReminderLifecycle(db, clock)
    finally:
        db.close()


# --- reine Funktionen -------------------------------------------------------

def test_create_recurring_defaults_start_to_today():
    rec = create_record(1, 'Wasser trinken', Daily(), TODAY)
    assert rec.start_date == TODAY
    assert rec.next_trigger_date == TODAY
    assert rec.status == ReminderStatus.PENDING


def test_create_weekly_computes_initial():
    rec = create_record(1, 'Sport', Weekly([Weekday.MONDAY]), TODAY, start_date=D(2025, 1, 1))
    assert rec.next_trigger_date == D(2025, 1, 6)


def test_create_explicit_trigger_wins():
    rec = create_record(1, 'Sport', Weekly([Weekday.MONDAY]), TODAY, start_date='2025-01-01',
                        explicit_trigger='2025-01-03')
    assert rec.next_trigger_date == D(2025, 1, 3)


def test_create_once_needs_a_date():
    with pytest.raises(ValidationError) as exc:
        create_record(1, 'Einkaufen', Once(), TODAY)
    assert exc.value.field == 'start_date'
    rec = create_record(1, 'Einkaufen', Once(), TODAY, explicit_trigger=D(2025, 12, 24))
    assert rec.next_trigger_date == D(2025, 12, 24)
    assert rec.start_date is None
    rec = create_record(1, 'Einkaufen', Once(), TODAY, start_date=D(2025, 12, 25))
    assert rec.next_trigger_date == D(2025, 12, 25)


def test_create_validates_title_rule_and_dates():
    with pytest.raises(ValidationError) as exc:
        create_record(1, '  ', Daily(), TODAY)
    assert exc.value.field == 'title'
    with pytest.raises(ValidationError) as exc:
        create_record(1, 'x', None, TODAY)
    assert exc.value.field == 'rule'
    with pytest.raises(ValidationError) as exc:
        create_record(1, 'x', Daily(), TODAY, start_date='2025-02-30')
    assert exc.value.field == 'start_date'
    with pytest.raises(ValidationError):
        create_record(1, 'x', Yearly(31), TODAY, start_date=D(2025, 2, 1), explicit_trigger=D(2025, 2, 1))


def test_patch_rule_change_recomputes():
    rec = create_record(1, 'Miete', Monthly(1), TODAY, start_date=D(2025, 1, 1))
    updated = apply_patch(rec, ReminderPatch(rule=Monthly(20)), TODAY)
    assert updated.next_trigger_date == D(2025, 1, 20)
    # Original bleibt unverändert
    assert rec.next_trigger_date == D(2025, 1, 1)


def test_patch_start_date_change_recomputes():
    rec = create_record(1, 'Sport', Weekly([Weekday.FRIDAY]), TODAY, start_date=D(2025, 1, 1))
    updated = apply_patch(rec, ReminderPatch(start_date=D(2025, 1, 4)), TODAY)
    assert updated.next_trigger_date == D(2025, 1, 10)


def test_patch_explicit_trigger_suppresses_recompute():
    rec = create_record(1, 'Miete', Monthly(1), TODAY, start_date=D(2025, 1, 1))
    updated = apply_patch(rec, ReminderPatch(rule=Monthly(20), next_trigger_date=D(2025, 3, 3)), TODAY)
    assert updated.next_trigger_date == D(2025, 3, 3)
    assert updated.rule == Monthly(20)


def test_patch_same_rule_or_title_only_keeps_trigger():
    rec = create_record(1, 'Miete', Monthly(1), TODAY, start_date=D(2025, 1, 1))
    rec.next_trigger_date = D(2025, 2, 1)
    assert apply_patch(rec, ReminderPatch(rule=Monthly(1)), TODAY).next_trigger_date == D(2025, 2, 1)
    updated = apply_patch(rec, ReminderPatch(title='Miete zahlen', description=None), TODAY)
    assert updated.next_trigger_date == D(2025, 2, 1)
    assert updated.title == 'Miete zahlen'


def test_patch_cleared_start_falls_back_to_today():
    rec = create_record(1, 'x', EveryNDays(2), TODAY, start_date=D(2025, 1, 1))
    updated = apply_patch(rec, ReminderPatch(start_date=None), TODAY)
    assert updated.start_date is None
    assert updated.next_trigger_date == TODAY


def test_patch_completed_once_to_recurring_is_pending_again():
    rec = create_record(1, 'x', Once(), TODAY, start_date=TODAY)
    done = complete_record(rec, TODAY)
    assert done.status == ReminderStatus.COMPLETED
    again = apply_patch(done, ReminderPatch(rule=Daily()), TODAY)
    assert again.status == ReminderStatus.PENDING


def test_patch_to_once_drops_start_date():
    rec = create_record(1, 'x', Daily(), TODAY, start_date=D(2025, 1, 1))
    once = apply_patch(rec, ReminderPatch(rule=Once(), start_date=D(2025, 2, 1)), TODAY)
    assert once.start_date is None
    assert once.next_trigger_date == D(2025, 2, 1)

    moved = apply_patch(once, ReminderPatch(start_date=D(2025, 3, 1)), TODAY)
    assert moved.start_date is None
    assert moved.next_trigger_date == D(2025, 3, 1)


def test_patch_rejects_empty_title_and_cleared_trigger():
    rec = create_record(1, 'x', Daily(), TODAY)
    with pytest.raises(ValidationError):
        apply_patch(rec, ReminderPatch(title=''), TODAY)
    with pytest.raises(ValidationError):
        apply_patch(rec, ReminderPatch(next_trigger_date=None), TODAY)


def test_complete_once():
    rec = create_record(1, 'x', Once(), TODAY, start_date=D(2025, 1, 10))
    done = complete_record(rec, TODAY)
    assert done.status == ReminderStatus.COMPLETED
    assert done.last_completed_date == TODAY
    assert done.next_trigger_date == D(2025, 1, 10)
    assert classify_record(done, TODAY) == TriggerStatus.COMPLETED


def test_complete_recurring_uses_old_trigger_as_anchor():
    rec = create_record(1, 'Blumen gießen', EveryNDays(3), TODAY, start_date=D(2025, 1, 1))
    done = complete_record(rec, D(2025, 1, 5))
    assert done.next_trigger_date == D(2025, 1, 7)
    assert done.last_completed_date == D(2025, 1, 5)
    assert done.status == ReminderStatus.PENDING


def test_complete_future_reminder_is_rejected():
    rec = create_record(1, 'x', Daily(), TODAY, start_date=D(2025, 1, 20))
    with pytest.raises(BusinessError) as exc:
        complete_record(rec, TODAY)
    assert exc.value.code == 'reminder.onlyTodayOrOverdueCanComplete'


def test_complete_twice_same_day_is_rejected():
    rec = create_record(1, 'x', Daily(), TODAY)
    done = complete_record(rec, TODAY)
    with pytest.raises(BusinessError):
        complete_record(done, TODAY)


# --- mit Store --------------------------------------------------------------

def test_lifecycle_create_get_complete(lifecycle):
    rec = lifecycle.create(1, 'Zähne', Daily())
    assert rec.id is not None
    assert rec.next_trigger_date == TODAY
    done = lifecycle.complete(1, rec.id)
    assert done.next_trigger_date == D(2025, 1, 16)
    loaded = lifecycle.get(1, rec.id)
    assert loaded.last_completed_date == TODAY
    assert loaded.version == 1


def test_lifecycle_monthly_overdue_completion(lifecycle):
    rec = lifecycle.create(1, 'Miete', Monthly(15), start_date=D(2024, 11, 1))
    assert rec.next_trigger_date == D(2024, 11, 15)
    done = lifecycle.complete(1, rec.id, today=D(2025, 1, 20))
    assert done.next_trigger_date == D(2025, 2, 15)


def test_lifecycle_update(lifecycle):
    rec = lifecycle.create(1, 'Sport', Weekly(['MONDAY']), start_date=D(2025, 1, 1))
    updated = lifecycle.update(1, rec.id, ReminderPatch(rule=Weekly(['FRIDAY'])))
    assert updated.next_trigger_date == D(2025, 1, 3)
    assert lifecycle.get(1, rec.id).rule == Weekly(['FRIDAY'])


def test_lifecycle_owner_isolation_and_not_found(lifecycle):
    rec = lifecycle.create(1, 'privat', Daily())
    with pytest.raises(NotFoundError):
        lifecycle.get(2, rec.id)
    with pytest.raises(NotFoundError):
        lifecycle.complete(1, 9999)


def test_lifecycle_soft_delete(lifecycle):
    rec = lifecycle.create(1, 'weg', Daily())
    deleted = lifecycle.delete(1, rec.id)
    assert deleted.deleted_at == NOW
    assert classify_record(deleted, TODAY) == TriggerStatus.DELETED
    with pytest.raises(NotFoundError):
        lifecycle.get(1, rec.id)
    assert lifecycle.list(1).total == 0


def test_lifecycle_list_paging_and_filters(lifecycle):
    for i in range(5):
        lifecycle.create(1, f'täglich {i}', Daily(), start_date=TODAY.add_days(i))
    once = lifecycle.create(1, 'einmal', Once(), start_date=TODAY)
    lifecycle.complete(1, once.id)

    page = lifecycle.list(1, page=2, limit=2)
    assert page.total == 5
    assert page.total_pages == 3
    assert [r.title for r in page.items] == ['täglich 2', 'täglich 3']

    assert lifecycle.list(1, include_completed=True).total == 6
    assert lifecycle.list(1, frequency='ONCE', include_completed=True).total == 1
    assert lifecycle.list(1, status=ReminderStatus.COMPLETED, include_completed=True).total == 1
    assert lifecycle.list(1, limit=1000).limit == 100


def test_lifecycle_overview_sorted(lifecycle):
    lifecycle.create(1, 'später', Daily(), start_date=D(2025, 2, 1))
    lifecycle.create(1, 'heute', Daily())
    lifecycle.create(1, 'überfällig', Daily(), start_date=D(2025, 1, 1))
    titles = [v.record.title for v in lifecycle.overview(1)]
    assert titles == ['heute', 'überfällig', 'später']
