"""Data models for the recitation engine: passages, plans, diffs and results."""

import uuid
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from recite.kinds import DiffKind, RecitationScope


@dataclass(frozen=True)
class PassageKey:
    """Structured identity of a passage: (container, sub-unit, unit, version)."""
    container_code: str
    sub_unit: int
    unit: int
    version_code: str

    @property
    def passage_id(self) -> str:
        return make_passage_id(self.container_code, self.sub_unit, self.unit, self.version_code)

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'PassageKey':
        return cls(
            container_code=data['container_code'],
            sub_unit=int(data['sub_unit']),
            unit=int(data['unit']),
            version_code=data['version_code'],
        )

    @classmethod
    def parse(cls, passage_id: str) -> 'PassageKey':
        """Inverse of make_passage_id. Container codes may not contain '_'."""
        parts = passage_id.split('_')
        if len(parts) != 4:
            raise ValueError(f"Malformed passage id: {passage_id!r}")
        code, sub_unit, unit, version = parts
        return cls(code, int(sub_unit), int(unit), version)


def make_passage_id(container_code: str, sub_unit: int, unit: int, version_code: str) -> str:
    """Stable passage id derived from the identity tuple."""
    return f"{container_code}_{sub_unit}_{unit}_{version_code}"


@dataclass(frozen=True)
class Passage:
    """
    One addressable unit of text (book/chapter/verse) in one version.

    passage_id is always derived from the identity tuple; pass it only when
    round-tripping stored data.
    """
    container_code: str
    container_name: str
    container_order: int
    sub_unit: int
    unit: int
    text: str
    version_code: str
    passage_id: str = ''

    def __post_init__(self):
        derived = make_passage_id(self.container_code, self.sub_unit, self.unit, self.version_code)
        object.__setattr__(self, 'passage_id', derived)

    @property
    def key(self) -> PassageKey:
        return PassageKey(self.container_code, self.sub_unit, self.unit, self.version_code)

    @property
    def sort_key(self) -> Tuple[int, int, int]:
        return (self.container_order, self.sub_unit, self.unit)

    @property
    def reference(self) -> str:
        return f"{self.container_name} {self.sub_unit}:{self.unit}"

    @property
    def full_reference(self) -> str:
        return f"{self.reference} ({self.version_code})"

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Passage':
        return cls(
            container_code=data['container_code'],
            container_name=data.get('container_name', data['container_code']),
            container_order=int(data.get('container_order', 0)),
            sub_unit=int(data['sub_unit']),
            unit=int(data['unit']),
            text=data.get('text', ''),
            version_code=data['version_code'],
        )


@dataclass(frozen=True)
class PassageRange:
    """Inclusive span of passages within one version."""
    start: Passage
    end: Passage
    version_code: str

    @property
    def is_well_formed(self) -> bool:
        if self.start.version_code != self.version_code:
            return False
        if self.end.version_code != self.version_code:
            return False
        return self.start.sort_key <= self.end.sort_key

    @property
    def display_name(self) -> str:
        s, e = self.start, self.end
        if s.container_code == e.container_code:
            if s.sub_unit == e.sub_unit:
                return f"{s.container_name} {s.sub_unit}:{s.unit}-{e.unit}"
            return f"{s.container_name} {s.sub_unit}:{s.unit}-{e.sub_unit}:{e.unit}"
        return f"{s.reference} - {e.reference}"


@dataclass(frozen=True)
class Container:
    """A top-level grouping of passages (e.g. a book)."""
    code: str
    name: str
    order: int
    sub_units: int = 0

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class Version:
    """A translation / edition of the passage catalog."""
    code: str
    name: str
    language: str = ''

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class DailyAllocation:
    """Passages assigned to one calendar day of a plan."""
    plan_id: str
    day_index: int
    date: date
    passage_ids: Tuple[str, ...]

    def to_dict(self) -> Dict:
        return {
            'plan_id': self.plan_id,
            'day_index': self.day_index,
            'date': self.date.isoformat(),
            'passage_ids': list(self.passage_ids),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'DailyAllocation':
        return cls(
            plan_id=data['plan_id'],
            day_index=int(data['day_index']),
            date=date.fromisoformat(data['date']),
            passage_ids=tuple(data.get('passage_ids', [])),
        )


@dataclass(frozen=True)
class Token:
    """A comparable unit. `text` is normalized; `surface` is what the user typed."""
    text: str
    surface: str = ''


@dataclass(frozen=True)
class DiffUnit:
    """
    One classified alignment result.

    index is the reference position for CORRECT/MISSING/WRONG and the
    attempt position for EXTRA.
    """
    kind: DiffKind
    text: str
    index: int

    def to_dict(self) -> Dict:
        return {'kind': self.kind.value, 'text': self.text, 'index': self.index}

    @classmethod
    def from_dict(cls, data: Dict) -> 'DiffUnit':
        return cls(kind=DiffKind(data['kind']), text=data['text'], index=int(data['index']))


@dataclass
class ScoreResult:
    """Aggregate outcome of scoring one attempt across its passages."""
    total_units: int
    correct_units: int
    accuracy: float
    passage_correct: Dict[str, bool] = field(default_factory=dict)
    diff_by_passage: Dict[str, List[DiffUnit]] = field(default_factory=dict)

    @property
    def incorrect_passage_ids(self) -> List[str]:
        return [pid for pid, ok in self.passage_correct.items() if not ok]

    @property
    def correct_passage_count(self) -> int:
        return sum(1 for ok in self.passage_correct.values() if ok)

    def to_dict(self) -> Dict:
        return {
            'total_units': self.total_units,
            'correct_units': self.correct_units,
            'accuracy': self.accuracy,
            'passage_correct': dict(self.passage_correct),
            'incorrect_passage_ids': self.incorrect_passage_ids,
            'diff_by_passage': {
                pid: [u.to_dict() for u in units]
                for pid, units in self.diff_by_passage.items()
            },
        }


@dataclass
class RecitationPlan:
    """
    A titled passage range scheduled between start_date and target_date.

    The plan refers to its endpoints by structured key. Its daily
    allocations live in the store, indexed by plan_id.
    """
    plan_id: str
    title: str
    start_key: PassageKey
    end_key: PassageKey
    version_code: str
    start_date: date
    target_date: date
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict:
        return {
            'plan_id': self.plan_id,
            'title': self.title,
            'start_key': self.start_key.to_dict(),
            'end_key': self.end_key.to_dict(),
            'version_code': self.version_code,
            'start_date': self.start_date.isoformat(),
            'target_date': self.target_date.isoformat(),
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'RecitationPlan':
        return cls(
            plan_id=data['plan_id'],
            title=data.get('title', ''),
            start_key=PassageKey.from_dict(data['start_key']),
            end_key=PassageKey.from_dict(data['end_key']),
            version_code=data['version_code'],
            start_date=date.fromisoformat(data['start_date']),
            target_date=date.fromisoformat(data['target_date']),
            created_at=data.get('created_at', ''),
        )


@dataclass
class RecitationResult:
    """Persisted record of one scored recitation test."""
    result_id: str
    plan_id: str
    scope: RecitationScope
    accuracy: float
    total_units: int
    correct_units: int
    total_passages: int
    correct_passages: int
    incorrect_passage_ids: List[str] = field(default_factory=list)
    user_input: str = ''
    expected_text: str = ''
    diff_by_passage: Dict[str, List[DiffUnit]] = field(default_factory=dict)
    tested_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict:
        return {
            'result_id': self.result_id,
            'plan_id': self.plan_id,
            'scope': self.scope.value,
            'accuracy': self.accuracy,
            'total_units': self.total_units,
            'correct_units': self.correct_units,
            'total_passages': self.total_passages,
            'correct_passages': self.correct_passages,
            'incorrect_passage_ids': list(self.incorrect_passage_ids),
            'user_input': self.user_input,
            'expected_text': self.expected_text,
            'diff_by_passage': {
                pid: [u.to_dict() for u in units]
                for pid, units in self.diff_by_passage.items()
            },
            'tested_at': self.tested_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'RecitationResult':
        return cls(
            result_id=data['result_id'],
            plan_id=data['plan_id'],
            scope=RecitationScope(data.get('scope', RecitationScope.DAILY.value)),
            accuracy=float(data.get('accuracy', 0.0)),
            total_units=int(data.get('total_units', 0)),
            correct_units=int(data.get('correct_units', 0)),
            total_passages=int(data.get('total_passages', 0)),
            correct_passages=int(data.get('correct_passages', 0)),
            incorrect_passage_ids=list(data.get('incorrect_passage_ids', [])),
            user_input=data.get('user_input', ''),
            expected_text=data.get('expected_text', ''),
            diff_by_passage={
                pid: [DiffUnit.from_dict(u) for u in units]
                for pid, units in (data.get('diff_by_passage') or {}).items()
            },
            tested_at=data.get('tested_at', ''),
        )


def new_id() -> str:
    """Random 32-hex identifier for plans and results."""
    return uuid.uuid4().hex
