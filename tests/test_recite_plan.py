"""Tests for recite/plan.py -- plan creation and progress."""

import sys
import tempfile
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from recite.errors import EmptyRangeError, ExcessiveLoadError, InvalidDateError, PassageNotFoundError
from recite.kinds import VerdictKind
from recite.models import Passage, PassageKey
from recite.plan import (
    allocation_reference,
    check_plan,
    create_plan,
    days_remaining,
    overall_progress,
    plan_progress,
    plan_summary,
    todays_allocations,
)
from recite.repository import InMemoryPassageRepository
from recite.storage import PlanStore


def _repo():
    return InMemoryPassageRepository(
        [Passage('PSA', 'Psalms', 19, 23, u, f'psalm 23 verse {u}', 'KRV') for u in range(1, 7)]
        + [Passage('PSA', 'Psalms', 19, 119, u, f'psalm 119 verse {u}', 'KRV') for u in range(1, 61)]
    )


def _key(sub_unit, unit):
    return PassageKey('PSA', sub_unit, unit, 'KRV')


def test_create_plan_persists_allocations():
    with tempfile.TemporaryDirectory() as tmp:
        store = PlanStore(Path(tmp) / 'plans.jsonl')
        repo = _repo()
        plan = create_plan(store, repo, 'Psalm 23', _key(23, 1), _key(23, 6),
                           target_date=date(2025, 1, 3), start_date=date(2025, 1, 1))

        assert store.get_plan(plan.plan_id) is plan
        assert plan.start_key == _key(23, 1)
        allocations = store.allocations(plan.plan_id)
        assert [len(a.passage_ids) for a in allocations] == [2, 2, 2]
        assert allocation_reference(repo, allocations[0]) == 'Psalms 23:1 - Psalms 23:2'


def test_create_plan_rejects_bad_dates():
    with tempfile.TemporaryDirectory() as tmp:
        store = PlanStore(Path(tmp) / 'plans.jsonl')
        with pytest.raises(InvalidDateError):
            create_plan(store, _repo(), 'x', _key(23, 1), _key(23, 6),
                        target_date=date(2024, 12, 1), start_date=date(2025, 1, 1))
        assert store.count() == 0


def test_create_plan_rejects_reversed_range():
    with tempfile.TemporaryDirectory() as tmp:
        store = PlanStore(Path(tmp) / 'plans.jsonl')
        with pytest.raises(EmptyRangeError) as exc:
            create_plan(store, _repo(), 'x', _key(23, 6), _key(23, 1),
                        target_date=date(2025, 1, 3), start_date=date(2025, 1, 1))
        assert exc.value.verdict.kind is VerdictKind.INVALID_RANGE


def test_create_plan_rejects_heavy_load():
    with tempfile.TemporaryDirectory() as tmp:
        store = PlanStore(Path(tmp) / 'plans.jsonl')
        with pytest.raises(ExcessiveLoadError):
            create_plan(store, _repo(), 'x', _key(119, 1), _key(119, 60),
                        target_date=date(2025, 1, 5), start_date=date(2025, 1, 1))


def test_unknown_endpoint_raises_not_found():
    with pytest.raises(PassageNotFoundError):
        check_plan(_repo(), _key(23, 1), _key(23, 99), date(2025, 1, 3), start_date=date(2025, 1, 1))


def test_progress_and_days_remaining():
    with tempfile.TemporaryDirectory() as tmp:
        store = PlanStore(Path(tmp) / 'plans.jsonl')
        plan = create_plan(store, _repo(), 'Psalm 23', _key(23, 1), _key(23, 6),
                           target_date=date(2025, 1, 3), start_date=date(2025, 1, 1))
        assert plan_progress(store, plan.plan_id) == 0.0

        store.mark_day_completed(plan.plan_id, date(2025, 1, 1))
        assert plan_progress(store, plan.plan_id) == pytest.approx(1 / 3)
        assert overall_progress(store) == pytest.approx(1 / 3)

        assert days_remaining(plan, date(2025, 1, 1)) == 2
        assert days_remaining(plan, date(2025, 2, 1)) == 0


def test_overall_progress_without_plans():
    with tempfile.TemporaryDirectory() as tmp:
        assert overall_progress(PlanStore(Path(tmp) / 'plans.jsonl')) == 0.0


def test_todays_allocations():
    with tempfile.TemporaryDirectory() as tmp:
        store = PlanStore(Path(tmp) / 'plans.jsonl')
        plan = create_plan(store, _repo(), 'Psalm 23', _key(23, 1), _key(23, 6),
                           target_date=date(2025, 1, 3), start_date=date(2025, 1, 1))
        found = todays_allocations(store, date(2025, 1, 2))
        assert len(found) == 1
        assert found[0].plan_id == plan.plan_id
        assert found[0].passage_ids == ('PSA_23_3_KRV', 'PSA_23_4_KRV')
        assert todays_allocations(store, date(2025, 1, 9)) == []


def test_plan_summary():
    with tempfile.TemporaryDirectory() as tmp:
        store = PlanStore(Path(tmp) / 'plans.jsonl')
        repo = _repo()
        plan = create_plan(store, repo, 'Psalm 23', _key(23, 1), _key(23, 6),
                           target_date=date(2025, 1, 3), start_date=date(2025, 1, 1))
        store.mark_day_completed(plan.plan_id, date(2025, 1, 1))

        summary = plan_summary(store, repo, plan.plan_id, today=date(2025, 1, 2))
        assert summary['range'] == 'Psalms 23:1-6'
        assert summary['passage_count'] == 6
        assert summary['days_remaining'] == 1
        assert [a['completed'] for a in summary['allocations']] == [True, False, False]
        assert summary['allocations'][2]['date'] == '2025-01-03'
