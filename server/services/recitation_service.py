"""Recitation engine service wrappers -- all return JSON-serializable dicts."""

import sys
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from recite.analytics import plan_statistics, weakest_passages
from recite.errors import PassageNotFoundError
from recite.kinds import RecitationScope
from recite.models import Passage, PassageKey
from recite.plan import (
    allocation_passages,
    allocation_reference,
    check_plan,
    create_plan,
    days_remaining,
    overall_progress,
    plan_progress,
    plan_summary,
    todays_allocations,
)
from recite.repository import PassageRepository, resolve_passages
from recite.scorer import score
from recite.session import RecitationTester
from recite.storage import PlanStore


def passage_to_dict(passage: Passage) -> Dict:
    """Convert a Passage to a JSON-safe dict (adds the display reference)."""
    return {**passage.to_dict(), 'reference': passage.reference}


def list_versions(repository: PassageRepository) -> Dict:
    return {'versions': [v.to_dict() for v in repository.list_versions()]}


def list_containers(repository: PassageRepository, version_code: str) -> Dict:
    return {
        'version_code': version_code,
        'containers': [c.to_dict() for c in repository.list_containers(version_code)],
    }


def get_passage(repository: PassageRepository, passage_id: str) -> Dict:
    passage = repository.get_passage(passage_id)
    if passage is None:
        raise PassageNotFoundError(passage_id)
    return passage_to_dict(passage)


def validate(
    repository: PassageRepository,
    start_key: PassageKey,
    end_key: PassageKey,
    target_date: date,
    start_date: Optional[date] = None,
    max_daily_load: float = 10.0,
) -> Dict:
    """Validate a candidate plan; business-rule failures come back as a verdict dict."""
    verdict = check_plan(repository, start_key, end_key, target_date,
                         start_date=start_date, max_daily_load=max_daily_load)
    return verdict.to_dict()


def create(
    store: PlanStore,
    repository: PassageRepository,
    title: str,
    start_key: PassageKey,
    end_key: PassageKey,
    target_date: date,
    start_date: Optional[date] = None,
    max_daily_load: float = 10.0,
    today: Optional[date] = None,
) -> Dict:
    """Create a plan and return its summary. Raises PlanValidationError when rejected."""
    plan = create_plan(store, repository, title, start_key, end_key, target_date,
                       start_date=start_date, max_daily_load=max_daily_load)
    return plan_summary(store, repository, plan.plan_id, today=today)


def get_plan(store: PlanStore, repository: PassageRepository, plan_id: str, today: Optional[date] = None) -> Dict:
    return plan_summary(store, repository, plan_id, today=today)


def list_plans(store: PlanStore, today: Optional[date] = None) -> Dict:
    plans = []
    for p in store.all_plans():
        plans.append({
            'plan_id': p.plan_id,
            'title': p.title,
            'version_code': p.version_code,
            'start_date': p.start_date.isoformat(),
            'target_date': p.target_date.isoformat(),
            'progress': round(plan_progress(store, p.plan_id), 4),
            'days_remaining': days_remaining(p, today),
        })
    return {'plans': plans, 'overall_progress': round(overall_progress(store), 4)}


def set_day_completion(store: PlanStore, plan_id: str, day: date, completed: bool) -> Dict:
    if completed:
        store.mark_day_completed(plan_id, day)
    else:
        store.mark_day_incomplete(plan_id, day)
    return {
        'plan_id': plan_id,
        'date': day.isoformat(),
        'completed': store.is_day_completed(plan_id, day),
        'progress': round(plan_progress(store, plan_id), 4),
    }


def today_overview(
    store: PlanStore,
    repository: PassageRepository,
    today: Optional[date] = None,
) -> Dict:
    """Today's allocation from every plan, with passage texts."""
    today = today or date.today()
    items = []
    for a in todays_allocations(store, today):
        plan = store.require_plan(a.plan_id)
        items.append({
            'plan_id': plan.plan_id,
            'title': plan.title,
            'day_index': a.day_index,
            'date': a.date.isoformat(),
            'reference': allocation_reference(repository, a),
            'completed': store.is_day_completed(plan.plan_id, a.date),
            'passages': [passage_to_dict(p) for p in allocation_passages(repository, a)],
        })
    return {'date': today.isoformat(), 'items': items}


def score_passages(
    repository: PassageRepository,
    passage_ids: List[str],
    attempt: str,
    mode: str = 'char',
) -> Dict:
    """Stateless scoring of an attempt against the given passages, in order."""
    duplicates = sorted({pid for pid in passage_ids if passage_ids.count(pid) > 1})
    if duplicates:
        raise ValueError(f"Duplicate passage id(s): {', '.join(duplicates)}")
    passages = resolve_passages(repository, passage_ids)
    return score({p.passage_id: p.text for p in passages}, attempt, mode).to_dict()


def start_recitation(
    tester: RecitationTester,
    plan_id: str,
    scope: str = 'daily',
    today: Optional[date] = None,
) -> Dict:
    tester.store.require_plan(plan_id)
    session = tester.start_test(plan_id, RecitationScope(scope), today=today)
    return {
        'plan_id': plan_id,
        'scope': session.scope.value,
        'passage_count': len(session.passages),
        'passages': [passage_to_dict(p) for p in session.passages],
    }


def submit_recitation(
    tester: RecitationTester,
    user_input: Optional[str] = None,
    end_session: bool = False,
) -> Dict:
    """Score the active session. Raises NoActiveSessionError if none was started."""
    result = tester.submit(user_input)
    if end_session:
        tester.end_test()
    return result.to_dict()


def get_plan_stats(store: PlanStore, plan_id: str) -> Dict:
    store.require_plan(plan_id)
    results = store.results_for_plan(plan_id)
    stats = plan_statistics(results)
    stats['plan_id'] = plan_id
    stats['weakest_passages'] = [
        {'passage_id': pid, 'misses': n} for pid, n in weakest_passages(results)
    ]
    return stats
