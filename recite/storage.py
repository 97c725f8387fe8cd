"""JSONL-backed storage for recitation plans, daily allocations and test results."""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from recite.errors import DayNotScheduledError, PlanNotFoundError
from recite.models import DailyAllocation, RecitationPlan, RecitationResult

logger = logging.getLogger("recite.storage")


class PlanStore:
    """
    JSONL-backed plan storage.

    Plans, allocations and completion marks live in one file (one line per
    plan); results are appended to a sibling file. Both are loaded into
    memory on init. Allocations are kept in a table keyed by plan_id rather
    than on the plan object, and completion marks in a separate
    (plan_id, date) table, so allocations themselves never change.
    """

    def __init__(self, db_path, results_path=None):
        self.db_path = Path(db_path)
        if results_path is None:
            results_path = self.db_path.with_name(self.db_path.stem + '_results.jsonl')
        self.results_path = Path(results_path)

        self._plans: Dict[str, RecitationPlan] = {}
        self._allocations: Dict[str, List[DailyAllocation]] = {}
        self._completed: Dict[str, Dict[str, str]] = {}  # plan_id -> {iso date: completed_at}
        self._results: List[RecitationResult] = []
        self._load()

    def _load(self) -> None:
        if self.db_path.exists():
            with open(self.db_path, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    data = json.loads(line)
                    plan = RecitationPlan.from_dict(data['plan'])
                    self._plans[plan.plan_id] = plan
                    self._allocations[plan.plan_id] = [
                        DailyAllocation.from_dict(a) for a in data.get('allocations', [])
                    ]
                    self._completed[plan.plan_id] = dict(data.get('completed', {}))
        if self.results_path.exists():
            with open(self.results_path, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if line:
                        self._results.append(RecitationResult.from_dict(json.loads(line)))

    def _save(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.db_path, 'w', encoding='utf-8') as f:
            for plan_id, plan in self._plans.items():
                record = {
                    'plan': plan.to_dict(),
                    'allocations': [a.to_dict() for a in self._allocations.get(plan_id, [])],
                    'completed': self._completed.get(plan_id, {}),
                }
                f.write(json.dumps(record, ensure_ascii=False) + '\n')

    def _save_results(self) -> None:
        self.results_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.results_path, 'w', encoding='utf-8') as f:
            for result in self._results:
                f.write(json.dumps(result.to_dict(), ensure_ascii=False) + '\n')

    # ---- Plans ----

    def add_plan(self, plan: RecitationPlan, allocations: Sequence[DailyAllocation]) -> None:
        """Store a plan with its allocations. Allocations are fixed from here on."""
        for a in allocations:
            if a.plan_id != plan.plan_id:
                raise ValueError(f"Allocation belongs to plan {a.plan_id}, not {plan.plan_id}")
        self._plans[plan.plan_id] = plan
        self._allocations[plan.plan_id] = sorted(allocations, key=lambda a: a.day_index)
        self._completed.setdefault(plan.plan_id, {})
        self._save()

    def get_plan(self, plan_id: str) -> Optional[RecitationPlan]:
        return self._plans.get(plan_id)

    def require_plan(self, plan_id: str) -> RecitationPlan:
        plan = self._plans.get(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        return plan

    def all_plans(self) -> List[RecitationPlan]:
        """All plans, newest first."""
        return sorted(self._plans.values(), key=lambda p: p.created_at, reverse=True)

    def delete_plan(self, plan_id: str) -> None:
        """Remove a plan with its allocations, completion marks and results."""
        self.require_plan(plan_id)
        del self._plans[plan_id]
        self._allocations.pop(plan_id, None)
        self._completed.pop(plan_id, None)
        self._save()
        before = len(self._results)
        self._results = [r for r in self._results if r.plan_id != plan_id]
        if len(self._results) != before:
            self._save_results()
        logger.info("Deleted plan %s", plan_id)

    def count(self) -> int:
        return len(self._plans)

    # ---- Allocations ----

    def allocations(self, plan_id: str) -> List[DailyAllocation]:
        self.require_plan(plan_id)
        return list(self._allocations.get(plan_id, []))

    def allocation_for_day(self, plan_id: str, day: date) -> Optional[DailyAllocation]:
        for a in self.allocations(plan_id):
            if a.date == day:
                return a
        return None

    # ---- Completion bookkeeping ----

    def mark_day_completed(self, plan_id: str, day: date, completed_at: Optional[str] = None) -> None:
        if self.allocation_for_day(plan_id, day) is None:
            raise DayNotScheduledError(plan_id, day)
        self._completed.setdefault(plan_id, {})[day.isoformat()] = (
            completed_at or datetime.now().isoformat()
        )
        self._save()

    def mark_day_incomplete(self, plan_id: str, day: date) -> None:
        self.require_plan(plan_id)
        self._completed.get(plan_id, {}).pop(day.isoformat(), None)
        self._save()

    def completed_at(self, plan_id: str, day: date) -> Optional[str]:
        return self._completed.get(plan_id, {}).get(day.isoformat())

    def is_day_completed(self, plan_id: str, day: date) -> bool:
        return self.completed_at(plan_id, day) is not None

    def completed_count(self, plan_id: str) -> int:
        days = {a.date.isoformat() for a in self.allocations(plan_id)}
        return sum(1 for d in self._completed.get(plan_id, {}) if d in days)

    # ---- Results ----

    def add_result(self, result: RecitationResult) -> None:
        """Append one test result."""
        self._results.append(result)
        self.results_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.results_path, 'a', encoding='utf-8') as f:
            f.write(json.dumps(result.to_dict(), ensure_ascii=False) + '\n')

    def results_for_plan(self, plan_id: str) -> List[RecitationResult]:
        return [r for r in self._results if r.plan_id == plan_id]

    def all_results(self) -> List[RecitationResult]:
        return list(self._results)
