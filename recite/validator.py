"""Business-rule validation for a candidate recitation plan."""

from dataclasses import dataclass, field
from typing import List

from recite.errors import (
    EmptyRangeError,
    ExcessiveLoadError,
    InvalidDateError,
    PlanValidationError,
)
from recite.kinds import VerdictKind
from recite.models import Passage, PassageRange
from recite.repository import PassageRepository
from recite.scheduler import DateLike, day_count

# Ceiling on the average number of passages per day
MAX_DAILY_LOAD = 10.0


@dataclass
class ValidationVerdict:
    """
    Result of validate_plan.

    passages / day_count / average_per_day are filled in as far as the
    checks got before failing.
    """
    kind: VerdictKind
    message: str = ''
    passages: List[Passage] = field(default_factory=list)
    day_count: int = 0
    average_per_day: float = 0.0

    @property
    def is_valid(self) -> bool:
        return self.kind is VerdictKind.VALID

    @property
    def error_message(self):
        return None if self.is_valid else self.message

    def to_error(self) -> PlanValidationError:
        """The typed exception matching this verdict. Invalid verdicts only."""
        error_cls = {
            VerdictKind.INVALID_DATE: InvalidDateError,
            VerdictKind.INVALID_RANGE: EmptyRangeError,
            VerdictKind.EXCESSIVE_LOAD: ExcessiveLoadError,
        }.get(self.kind)
        if error_cls is None:
            raise ValueError("A valid verdict has no error")
        return error_cls(self)

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.value,
            'valid': self.is_valid,
            'message': self.message,
            'passage_count': len(self.passages),
            'day_count': self.day_count,
            'average_per_day': round(self.average_per_day, 3),
        }

    @classmethod
    def invalid_date(cls, n_days: int) -> 'ValidationVerdict':
        return cls(
            kind=VerdictKind.INVALID_DATE,
            message="The target date must be on or after the start date.",
            day_count=n_days,
        )


def validate_plan(
    passage_range: PassageRange,
    start_date: DateLike,
    target_date: DateLike,
    repository: PassageRepository,
    max_daily_load: float = MAX_DAILY_LOAD,
) -> ValidationVerdict:
    """
    Check a candidate plan before it is scheduled.

    Rules, in order:
        1. the inclusive day count must be at least 1       -> INVALID_DATE
        2. the range must be well formed and non-empty       -> INVALID_RANGE
        3. passages / days must not exceed max_daily_load    -> EXCESSIVE_LOAD

    A VALID verdict guarantees schedule() succeeds on verdict.passages.
    """
    n_days = day_count(start_date, target_date)
    if n_days < 1:
        return ValidationVerdict.invalid_date(n_days)

    if not passage_range.is_well_formed:
        return ValidationVerdict(
            kind=VerdictKind.INVALID_RANGE,
            message="The range must start before it ends and stay within one version.",
            day_count=n_days,
        )

    passages = repository.expand_range(
        passage_range.start, passage_range.end, passage_range.version_code,
    )
    if not passages:
        return ValidationVerdict(
            kind=VerdictKind.EMPTY_RANGE,
            message="The selected range contains no passages.",
            day_count=n_days,
        )

    average = len(passages) / n_days
    if average > max_daily_load:
        return ValidationVerdict(
            kind=VerdictKind.EXCESSIVE_LOAD,
            message=(
                f"Too many passages per day ({average:.1f} > {max_daily_load:g}). "
                "Extend the target date or shorten the range."
            ),
            passages=passages,
            day_count=n_days,
            average_per_day=average,
        )

    return ValidationVerdict(
        kind=VerdictKind.VALID,
        passages=passages,
        day_count=n_days,
        average_per_day=average,
    )
