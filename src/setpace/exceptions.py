"""Exceptions raised by the session tracker."""


class SetpaceError(Exception):
    """Base class for setpace errors."""


class ActiveSessionExistsError(SetpaceError):
    """A workout is already in progress."""

    def __init__(self, session_id: int):
        self.session_id = session_id
        super().__init__(f"Session {session_id} is already in progress")


class SessionNotFoundError(SetpaceError):
    """No session matches the request."""


class SessionClosedError(SetpaceError):
    """The session was finished or cancelled."""


class UnknownExerciseError(SetpaceError):
    """The exercise is not part of the session's workout day."""


class PlanNotFoundError(SetpaceError):
    """The plan or plan day does not exist."""


class SetInputError(SetpaceError, ValueError):
    """Reps or weight failed validation; nothing was recorded."""


class ConfirmationRequired(SetpaceError):
    """Completing the exercise needs an explicit decision from the user."""

    def __init__(self, completed_sets: int, target_sets: int):
        self.completed_sets = completed_sets
        self.target_sets = target_sets
        super().__init__(
            f"Only {completed_sets}/{target_sets} sets completed; "
            "mark complete or incomplete explicitly"
        )
