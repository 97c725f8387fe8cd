"""Daily quota scheduler -- spreads a passage range evenly across calendar days."""

from datetime import date, datetime, timedelta
from typing import List, Sequence, Union

from recite.models import DailyAllocation, Passage

DateLike = Union[date, datetime]


def as_day(value: DateLike) -> date:
    """Truncate a datetime to its calendar day; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def whole_days_between(start: DateLike, target: DateLike) -> int:
    """Calendar days from start to target (negative when target is earlier)."""
    return (as_day(target) - as_day(start)).days


def day_count(start: DateLike, target: DateLike) -> int:
    """Number of scheduling days, counting both endpoints."""
    return whole_days_between(start, target) + 1


def daily_quotas(n_passages: int, n_days: int) -> List[int]:
    """
    Quota per day: the first (n % d) days get one extra passage.

    Trailing zero-quota days are dropped, so fewer than n_days entries come
    back when n_passages < n_days.

    Example: daily_quotas(10, 3) -> [4, 3, 3]
    """
    if n_days < 1:
        raise ValueError(f"n_days must be >= 1, got {n_days}")
    if n_passages < 0:
        raise ValueError(f"n_passages must be >= 0, got {n_passages}")

    base, remainder = divmod(n_passages, n_days)
    quotas = []
    assigned = 0
    for d in range(n_days):
        if assigned >= n_passages:
            break
        quota = base + 1 if d < remainder else base
        quotas.append(quota)
        assigned += quota
    return quotas


def schedule(
    passages: Sequence[Passage],
    start_date: DateLike,
    target_date: DateLike,
    plan_id: str = '',
) -> List[DailyAllocation]:
    """
    Partition passages into contiguous daily allocations.

    Args:
        passages:    the expanded range, in range order
        start_date:  first day of the plan (time of day ignored)
        target_date: last day of the plan, inclusive
        plan_id:     owning plan identifier stamped on each allocation

    Returns:
        One DailyAllocation per non-empty day, in date order. Passage counts
        sum to len(passages); no passage appears twice.

    Raises:
        InvalidDateError: target_date is before start_date.
    """
    n_days = day_count(start_date, target_date)
    if n_days < 1:
        from recite.validator import ValidationVerdict
        raise ValidationVerdict.invalid_date(n_days).to_error()

    first_day = as_day(start_date)
    allocations: List[DailyAllocation] = []
    cursor = 0
    for day_index, quota in enumerate(daily_quotas(len(passages), n_days)):
        chunk = passages[cursor:cursor + quota]
        allocations.append(DailyAllocation(
            plan_id=plan_id,
            day_index=day_index,
            date=first_day + timedelta(days=day_index),
            passage_ids=tuple(p.passage_id for p in chunk),
        ))
        cursor += quota
    return allocations
