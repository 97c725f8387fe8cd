"""Enumerations shared by the recitation engine."""

from enum import Enum


class DiffKind(str, Enum):
    """Classification of one aligned token."""
    CORRECT = "correct"
    MISSING = "missing"   # in the reference, absent from the attempt
    EXTRA = "extra"       # in the attempt, absent from the reference
    WRONG = "wrong"       # a missing token replaced by an extra one (merge only)


class TokenMode(str, Enum):
    """Granularity used when splitting text into comparable units."""
    WORD = "word"
    CHAR = "char"


class RecitationScope(str, Enum):
    """Which passages of a plan a recitation test covers."""
    DAILY = "daily"
    CUMULATIVE = "cumulative"

    @property
    def display_name(self) -> str:
        return {
            RecitationScope.DAILY: "Today's portion",
            RecitationScope.CUMULATIVE: "Cumulative test",
        }[self]


class VerdictKind(str, Enum):
    """Outcome of plan validation."""
    VALID = "valid"
    INVALID_DATE = "invalid_date"
    INVALID_RANGE = "invalid_range"
    EMPTY_RANGE = "invalid_range"  # alias of INVALID_RANGE
    EXCESSIVE_LOAD = "excessive_load"
