"""Session tracking and streak services."""

from .active_session import ActiveSessionPublisher, ActiveSessionSummary, SummaryStatus
from .debounce import DebouncedWriter
from .reconcile import RestoredState, build_write_payload, restore_timer_state
from .session_tracker import SessionTracker, TimerSnapshot
from .streak import StreakService, calculate_streak, grace_period_for
from .timer import RestPatch, SetStarted, TimerStateMachine
from .validation import validate_set_input

__all__ = [
    "ActiveSessionPublisher",
    "ActiveSessionSummary",
    "SummaryStatus",
    "DebouncedWriter",
    "RestoredState",
    "build_write_payload",
    "restore_timer_state",
    "SessionTracker",
    "TimerSnapshot",
    "StreakService",
    "calculate_streak",
    "grace_period_for",
    "RestPatch",
    "SetStarted",
    "TimerStateMachine",
    "validate_set_input",
]
