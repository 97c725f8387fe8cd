"""Recitation plan lifecycle -- create, inspect progress, find today's portion."""

import logging
from datetime import date
from typing import Dict, List, Optional

from recite.models import (
    DailyAllocation,
    Passage,
    PassageKey,
    PassageRange,
    RecitationPlan,
    new_id,
)
from recite.repository import PassageRepository, require_passage, resolve_passages
from recite.scheduler import DateLike, as_day, schedule
from recite.storage import PlanStore
from recite.validator import MAX_DAILY_LOAD, ValidationVerdict, validate_plan

logger = logging.getLogger("recite.plan")


def resolve_range(
    repository: PassageRepository,
    start_key: PassageKey,
    end_key: PassageKey,
) -> PassageRange:
    """Look up both endpoints. The range takes the start passage's version."""
    start = require_passage(repository, start_key.container_code, start_key.sub_unit,
                            start_key.unit, start_key.version_code)
    end = require_passage(repository, end_key.container_code, end_key.sub_unit,
                          end_key.unit, end_key.version_code)
    return PassageRange(start=start, end=end, version_code=start.version_code)


def check_plan(
    repository: PassageRepository,
    start_key: PassageKey,
    end_key: PassageKey,
    target_date: DateLike,
    start_date: Optional[DateLike] = None,
    max_daily_load: float = MAX_DAILY_LOAD,
) -> ValidationVerdict:
    """Resolve the endpoints and validate. Raises PassageNotFoundError on a lookup miss."""
    passage_range = resolve_range(repository, start_key, end_key)
    return validate_plan(
        passage_range,
        start_date if start_date is not None else date.today(),
        target_date,
        repository,
        max_daily_load=max_daily_load,
    )


def create_plan(
    store: PlanStore,
    repository: PassageRepository,
    title: str,
    start_key: PassageKey,
    end_key: PassageKey,
    target_date: DateLike,
    start_date: Optional[DateLike] = None,
    max_daily_load: float = MAX_DAILY_LOAD,
) -> RecitationPlan:
    """
    Validate, schedule and persist a new plan.

    Allocations are generated exactly once here and never regenerated.

    Raises:
        PassageNotFoundError: an endpoint is not in the repository
        InvalidDateError / EmptyRangeError / ExcessiveLoadError: the plan
            failed validation (the exception carries the verdict)
    """
    start_day = as_day(start_date if start_date is not None else date.today())
    target_day = as_day(target_date)

    verdict = check_plan(repository, start_key, end_key, target_day,
                         start_date=start_day, max_daily_load=max_daily_load)
    if not verdict.is_valid:
        logger.warning("Rejected plan %r: %s", title, verdict.message)
        raise verdict.to_error()

    plan = RecitationPlan(
        plan_id=new_id(),
        title=title,
        start_key=start_key,
        end_key=end_key,
        version_code=start_key.version_code,
        start_date=start_day,
        target_date=target_day,
    )
    allocations = schedule(verdict.passages, start_day, target_day, plan_id=plan.plan_id)
    store.add_plan(plan, allocations)

    logger.info(
        "Created plan %s (%r): %d passage(s) over %d day(s)",
        plan.plan_id, title, len(verdict.passages), len(allocations),
    )
    return plan


def plan_range(repository: PassageRepository, plan: RecitationPlan) -> PassageRange:
    """The plan's range, rebuilt from its structured endpoint keys."""
    return resolve_range(repository, plan.start_key, plan.end_key)


def plan_progress(store: PlanStore, plan_id: str) -> float:
    """Fraction of allocated days marked complete (0.0 for a plan with no days)."""
    total = len(store.allocations(plan_id))
    if total == 0:
        return 0.0
    return store.completed_count(plan_id) / total


def overall_progress(store: PlanStore) -> float:
    """Mean progress across all plans."""
    plans = store.all_plans()
    if not plans:
        return 0.0
    return sum(plan_progress(store, p.plan_id) for p in plans) / len(plans)


def days_remaining(plan: RecitationPlan, today: Optional[date] = None) -> int:
    """Calendar days left until the target date, never negative."""
    today = today or date.today()
    return max(0, (plan.target_date - as_day(today)).days)


def todays_allocations(store: PlanStore, today: Optional[date] = None) -> List[DailyAllocation]:
    """Today's allocation from every plan that has one, newest plan first."""
    today = today or date.today()
    found = []
    for plan in store.all_plans():
        a = store.allocation_for_day(plan.plan_id, today)
        if a is not None:
            found.append(a)
    return found


def allocation_passages(repository: PassageRepository, allocation: DailyAllocation) -> List[Passage]:
    return resolve_passages(repository, allocation.passage_ids)


def allocation_reference(repository: PassageRepository, allocation: DailyAllocation) -> str:
    """'Name 1:1' or 'Name 1:1 - Name 1:4'."""
    passages = allocation_passages(repository, allocation)
    if not passages:
        return ''
    if len(passages) == 1:
        return passages[0].reference
    return f"{passages[0].reference} - {passages[-1].reference}"


def plan_summary(
    store: PlanStore,
    repository: PassageRepository,
    plan_id: str,
    today: Optional[date] = None,
) -> Dict:
    """
    JSON-friendly overview of one plan.

    Returns:
        {plan_id, title, range, version_code, start_date, target_date,
         created_at, progress, days_remaining, passage_count,
         allocations: [{day_index, date, reference, passage_ids, completed}]}
    """
    plan = store.require_plan(plan_id)
    allocations = store.allocations(plan_id)
    today = today or date.today()
    return {
        'plan_id': plan.plan_id,
        'title': plan.title,
        'range': plan_range(repository, plan).display_name,
        'version_code': plan.version_code,
        'start_date': plan.start_date.isoformat(),
        'target_date': plan.target_date.isoformat(),
        'created_at': plan.created_at,
        'progress': round(plan_progress(store, plan_id), 4),
        'days_remaining': days_remaining(plan, today),
        'passage_count': sum(len(a.passage_ids) for a in allocations),
        'allocations': [
            {
                'day_index': a.day_index,
                'date': a.date.isoformat(),
                'reference': allocation_reference(repository, a),
                'passage_ids': list(a.passage_ids),
                'completed': store.is_day_completed(plan_id, a.date),
            }
            for a in allocations
        ],
    }
