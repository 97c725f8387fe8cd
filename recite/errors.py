"""Typed, recoverable errors raised by the recitation engine."""

from datetime import date
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from recite.validator import ValidationVerdict


class RecitationError(Exception):
    """Base class for every error the engine surfaces to callers."""


class PlanValidationError(RecitationError):
    """A candidate plan broke a business rule. Carries the failing verdict."""

    def __init__(self, verdict: 'ValidationVerdict'):
        super().__init__(verdict.message)
        self.verdict = verdict

    @property
    def message(self) -> str:
        return self.verdict.message


class InvalidDateError(PlanValidationError):
    """Target date yields fewer than one scheduling day."""


class EmptyRangeError(PlanValidationError):
    """Range is malformed or expands to no passages."""


class ExcessiveLoadError(PlanValidationError):
    """Average passages per day exceeds the configured ceiling."""


class PassageNotFoundError(RecitationError, KeyError):
    """Repository lookup miss."""

    def __init__(self, passage_id: str):
        super().__init__(passage_id)
        self.passage_id = passage_id

    def __str__(self) -> str:
        return f"Passage not found: {self.passage_id}"


class PlanNotFoundError(RecitationError, KeyError):
    """No plan with the given id exists in the store."""

    def __init__(self, plan_id: str):
        super().__init__(plan_id)
        self.plan_id = plan_id

    def __str__(self) -> str:
        return f"Plan not found: {self.plan_id}"


class DayNotScheduledError(RecitationError, KeyError):
    """The plan has no allocation dated on the requested day."""

    def __init__(self, plan_id: str, day: date):
        super().__init__(plan_id, day)
        self.plan_id = plan_id
        self.day = day

    def __str__(self) -> str:
        return f"Plan {self.plan_id} has no allocation on {self.day.isoformat()}"


class NoActiveSessionError(RecitationError):
    """Scoring was requested before a test session was started."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No active test session. Start a test first.")
