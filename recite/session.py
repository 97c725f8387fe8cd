"""Recitation test sessions: passage selection, cursor, submission and an interactive runner."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence

from recite.errors import NoActiveSessionError
from recite.kinds import DiffKind, RecitationScope
from recite.models import DiffUnit, Passage, RecitationResult, new_id
from recite.repository import PassageRepository, resolve_passages
from recite.scorer import score
from recite.storage import PlanStore

logger = logging.getLogger("recite.session")


@dataclass
class RecitationSession:
    """
    One in-progress test: the passages to recite and what the user typed.

    Mutated only by the single caller driving it.
    """
    plan_id: str
    scope: RecitationScope
    passages: List[Passage]
    cursor: int = 0
    inputs: List[str] = field(default_factory=list)
    is_completed: bool = False

    def __post_init__(self):
        if len(self.inputs) < len(self.passages):
            self.inputs = list(self.inputs) + [''] * (len(self.passages) - len(self.inputs))

    @property
    def current_passage(self) -> Optional[Passage]:
        if 0 <= self.cursor < len(self.passages):
            return self.passages[self.cursor]
        return None

    @property
    def current_input(self) -> str:
        if 0 <= self.cursor < len(self.inputs):
            return self.inputs[self.cursor]
        return ''

    @current_input.setter
    def current_input(self, value: str) -> None:
        if 0 <= self.cursor < len(self.inputs):
            self.inputs[self.cursor] = value

    @property
    def progress(self) -> float:
        if not self.passages:
            return 0.0
        return self.cursor / len(self.passages)

    @property
    def is_last(self) -> bool:
        return self.cursor == len(self.passages) - 1

    def next(self) -> None:
        """Advance the cursor; stepping past the last passage completes the session."""
        if self.cursor < len(self.passages) - 1:
            self.cursor += 1
        else:
            self.is_completed = True

    def previous(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def full_text(self) -> str:
        """All inputs joined one per line, in passage order."""
        return '\n'.join(self.inputs)

    def canonical_texts(self) -> Dict[str, str]:
        return {p.passage_id: p.text for p in self.passages}

    def expected_text(self) -> str:
        return '\n'.join(p.text for p in self.passages)


class RecitationTester:
    """
    Starts sessions for a plan and scores submissions against them.

    Both collaborators are injected; the tester holds at most one active
    session.
    """

    def __init__(self, store: PlanStore, repository: PassageRepository):
        self.store = store
        self.repository = repository
        self.active: Optional[RecitationSession] = None

    def passages_for(
        self,
        plan_id: str,
        scope: RecitationScope,
        today: Optional[date] = None,
    ) -> List[Passage]:
        """
        daily:      passages of the allocation dated today (none if no allocation)
        cumulative: passages of every allocation dated on or before today
        """
        today = today or date.today()
        scope = RecitationScope(scope)
        allocations = self.store.allocations(plan_id)
        if scope is RecitationScope.DAILY:
            ids = [pid for a in allocations if a.date == today for pid in a.passage_ids]
        else:
            ids = [pid for a in allocations if a.date <= today for pid in a.passage_ids]
        return resolve_passages(self.repository, ids)

    def start_test(
        self,
        plan_id: str,
        scope: RecitationScope = RecitationScope.DAILY,
        today: Optional[date] = None,
    ) -> RecitationSession:
        """Open a new session, replacing any active one."""
        scope = RecitationScope(scope)
        passages = self.passages_for(plan_id, scope, today=today)
        self.active = RecitationSession(plan_id=plan_id, scope=scope, passages=passages)
        logger.info("Started %s test for plan %s (%d passage(s))",
                    scope.value, plan_id, len(passages))
        return self.active

    def end_test(self) -> None:
        self.active = None

    def require_session(self) -> RecitationSession:
        if self.active is None:
            raise NoActiveSessionError()
        return self.active

    def submit(self, user_input: Optional[str] = None) -> RecitationResult:
        """
        Score the active session and persist the result.

        Args:
            user_input: full attempt, one line per passage. Defaults to the
                        session's collected inputs.

        Raises:
            NoActiveSessionError: no session was started.
        """
        session = self.require_session()
        if user_input is None:
            user_input = session.full_text()

        outcome = score(session.canonical_texts(), user_input)
        result = RecitationResult(
            result_id=new_id(),
            plan_id=session.plan_id,
            scope=session.scope,
            accuracy=outcome.accuracy,
            total_units=outcome.total_units,
            correct_units=outcome.correct_units,
            total_passages=len(session.passages),
            correct_passages=outcome.correct_passage_count,
            incorrect_passage_ids=outcome.incorrect_passage_ids,
            user_input=user_input,
            expected_text=session.expected_text(),
            diff_by_passage=outcome.diff_by_passage,
        )
        self.store.add_result(result)
        logger.info("Submitted %s test for plan %s: accuracy=%.3f (%d/%d passages)",
                    session.scope.value, session.plan_id, result.accuracy,
                    result.correct_passages, result.total_passages)
        return result


# Markers used when rendering a diff as plain text
_MARKERS = {
    DiffKind.CORRECT: '{}',
    DiffKind.MISSING: '[-{}]',
    DiffKind.EXTRA: '[+{}]',
    DiffKind.WRONG: '[~{}]',
}


def render_diff(units: Sequence[DiffUnit]) -> str:
    """Plain-text rendering: correct text as-is, [-missing], [+extra], [~wrong]."""
    return ''.join(_MARKERS[u.kind].format(u.text) for u in units)


def run_recitation_session(
    tester: RecitationTester,
    plan_id: str,
    scope: RecitationScope = RecitationScope.DAILY,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
    today: Optional[date] = None,
) -> Optional[RecitationResult]:
    """
    Run an interactive recitation test.

    IO is injectable for testability. One line is read per passage;
    'q' abandons the test, 'b' steps back to the previous passage.

    Returns:
        The persisted RecitationResult, or None if the test was abandoned
        or had no passages.
    """
    scope = RecitationScope(scope)
    session = tester.start_test(plan_id, scope, today=today)
    if not session.passages:
        output_fn("Nothing to recite for this plan today.")
        tester.end_test()
        return None

    output_fn(f"\n{'='*60}")
    output_fn(f"RECITATION TEST -- {scope.display_name} ({len(session.passages)} passage(s))")
    output_fn(f"{'='*60}")
    output_fn("Type each passage from memory. 'q' quits, 'b' goes back.\n")

    while not session.is_completed:
        passage = session.current_passage
        output_fn(f"\n--- {session.cursor + 1}/{len(session.passages)}: {passage.reference} ---")
        try:
            line = input_fn("> ")
        except (EOFError, KeyboardInterrupt):
            output_fn("\nTest ended.")
            tester.end_test()
            return None

        command = line.strip().lower()
        if command == 'q':
            output_fn("Test abandoned.")
            tester.end_test()
            return None
        if command == 'b':
            session.previous()
            continue

        session.current_input = line
        session.next()

    result = tester.submit()
    tester.end_test()

    output_fn(f"\n{'='*60}")
    output_fn("RESULT")
    output_fn(f"  Accuracy: {result.accuracy * 100:.1f}%  "
              f"Passages correct: {result.correct_passages}/{result.total_passages}")
    for passage in session.passages:
        if passage.passage_id in result.incorrect_passage_ids:
            output_fn(f"  {passage.reference}: {render_diff(result.diff_by_passage[passage.passage_id])}")
    output_fn(f"{'='*60}")
    return result
