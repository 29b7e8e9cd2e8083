# src/remindcycle/__init__.py
from .calendar_date import CalendarDate, Weekday
from .calendar_logic import compute_initial, compute_next
from .errors import (
    BusinessError, ConcurrentModification, InvalidCalendarDate, InvalidFormat,
    InvariantViolation, NotFoundError, ReminderError, ValidationError,
)
from .lifecycle import ReminderLifecycle
from .models import (
    Daily, EveryNDays, Monthly, Once, ReminderPatch, ReminderRecord, ReminderStatus,
    Weekly, Yearly,
)
from .trigger_status import DisplayStatus, TriggerStatus, classify

__version__ = "0.1.0"
