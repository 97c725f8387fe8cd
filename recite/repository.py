"""
Passage repository interface and an in-memory implementation.

The engine never reaches for a global catalog: every call site that needs
passages takes a PassageRepository argument. InMemoryPassageRepository is
used by the CLI (loaded from a JSONL catalog) and by tests; the server
provides a SQLAlchemy-backed implementation of the same protocol.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from recite.errors import PassageNotFoundError
from recite.models import Container, Passage, Version, make_passage_id

logger = logging.getLogger("recite.repository")


class PassageRepository(Protocol):
    """Capabilities the engine needs from a passage catalog."""

    def lookup_passage(
        self, container_code: str, sub_unit: int, unit: int, version_code: str,
    ) -> Optional[Passage]: ...

    def get_passage(self, passage_id: str) -> Optional[Passage]: ...

    def expand_range(self, start: Passage, end: Passage, version_code: str) -> List[Passage]: ...

    def list_containers(self, version_code: str) -> List[Container]: ...

    def list_versions(self) -> List[Version]: ...

    def sub_unit_count(self, container_code: str, version_code: str) -> int: ...

    def unit_count(self, container_code: str, sub_unit: int, version_code: str) -> int: ...

    def search(self, keyword: str, version_code: str, limit: int = 50) -> List[Passage]: ...


def expansion_allowed(start: Passage, end: Passage, span_sub_units: bool) -> bool:
    """
    Whether a range can expand to anything at all.

    Without span_sub_units only ranges inside one container and one
    sub-unit expand; wider ranges come back empty.
    """
    if span_sub_units:
        return start.sort_key <= end.sort_key
    return (start.container_code == end.container_code
            and start.sub_unit == end.sub_unit
            and start.unit <= end.unit)


def require_passage(
    repository: PassageRepository,
    container_code: str,
    sub_unit: int,
    unit: int,
    version_code: str,
) -> Passage:
    """lookup_passage that raises PassageNotFoundError on a miss."""
    passage = repository.lookup_passage(container_code, sub_unit, unit, version_code)
    if passage is None:
        raise PassageNotFoundError(make_passage_id(container_code, sub_unit, unit, version_code))
    return passage


def resolve_passages(repository: PassageRepository, passage_ids: Iterable[str]) -> List[Passage]:
    """Fetch passages by id, in the given order. Raises on the first miss."""
    passages = []
    for pid in passage_ids:
        p = repository.get_passage(pid)
        if p is None:
            raise PassageNotFoundError(pid)
        passages.append(p)
    return passages


class InMemoryPassageRepository:
    """
    Dict-backed passage catalog.

    Fine for a single translation of a full book collection (tens of
    thousands of passages); everything is indexed once at construction.
    """

    def __init__(
        self,
        passages: Iterable[Passage] = (),
        versions: Optional[Iterable[Version]] = None,
        span_sub_units: bool = False,
    ):
        self.span_sub_units = span_sub_units
        self._by_id: Dict[str, Passage] = {}
        self._versions: Dict[str, Version] = {}
        for p in passages:
            self._by_id[p.passage_id] = p
        for v in versions or []:
            self._versions[v.code] = v
        self._ordered = sorted(self._by_id.values(), key=lambda p: (p.version_code, p.sort_key))

    @classmethod
    def from_jsonl(cls, path, span_sub_units: bool = False) -> 'InMemoryPassageRepository':
        passages, versions = load_catalog_jsonl(Path(path))
        return cls(passages, versions, span_sub_units=span_sub_units)

    def _in_version(self, version_code: str) -> List[Passage]:
        return [p for p in self._ordered if p.version_code == version_code]

    def lookup_passage(self, container_code, sub_unit, unit, version_code):
        return self._by_id.get(make_passage_id(container_code, sub_unit, unit, version_code))

    def get_passage(self, passage_id):
        return self._by_id.get(passage_id)

    def expand_range(self, start, end, version_code):
        if not expansion_allowed(start, end, self.span_sub_units):
            return []
        if not self.span_sub_units:
            return [
                p for p in self._in_version(version_code)
                if p.container_code == start.container_code
                and p.sub_unit == start.sub_unit
                and start.unit <= p.unit <= end.unit
            ]
        lo, hi = start.sort_key, end.sort_key
        return [p for p in self._in_version(version_code) if lo <= p.sort_key <= hi]

    def list_containers(self, version_code):
        containers: Dict[str, Container] = {}
        for p in self._in_version(version_code):
            c = containers.get(p.container_code)
            sub_units = max(p.sub_unit, c.sub_units) if c else p.sub_unit
            containers[p.container_code] = Container(
                code=p.container_code,
                name=p.container_name,
                order=p.container_order,
                sub_units=sub_units,
            )
        return sorted(containers.values(), key=lambda c: c.order)

    def list_versions(self):
        versions = dict(self._versions)
        for p in self._ordered:
            if p.version_code not in versions:
                versions[p.version_code] = Version(code=p.version_code, name=p.version_code)
        return sorted(versions.values(), key=lambda v: v.code)

    def sub_unit_count(self, container_code, version_code):
        subs = [p.sub_unit for p in self._in_version(version_code) if p.container_code == container_code]
        return max(subs) if subs else 0

    def unit_count(self, container_code, sub_unit, version_code):
        units = [
            p.unit for p in self._in_version(version_code)
            if p.container_code == container_code and p.sub_unit == sub_unit
        ]
        return max(units) if units else 0

    def search(self, keyword, version_code, limit=50):
        needle = keyword.lower()
        hits = [p for p in self._in_version(version_code) if needle in p.text.lower()]
        return hits[:limit]

    def count(self) -> int:
        return len(self._by_id)


def load_catalog_jsonl(path: Path):
    """
    Read a passage catalog from JSONL.

    Each line is a passage record; lines with "record": "version" describe
    a version (code, name, language). Returns (passages, versions).
    """
    passages: List[Passage] = []
    versions: List[Version] = []
    if not path.exists():
        logger.warning("Passage catalog not found: %s", path)
        return passages, versions
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            data = json.loads(line)
            if data.get('record') == 'version':
                versions.append(Version(
                    code=data['code'],
                    name=data.get('name', data['code']),
                    language=data.get('language', ''),
                ))
            else:
                passages.append(Passage.from_dict(data))
    return passages, versions


def write_catalog_jsonl(path: Path, passages: Iterable[Passage], versions: Iterable[Version] = ()) -> int:
    """Write versions then passages to JSONL. Returns the passage count."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, 'w', encoding='utf-8') as f:
        for v in versions:
            f.write(json.dumps({'record': 'version', **v.to_dict()}, ensure_ascii=False) + '\n')
        for p in passages:
            f.write(json.dumps(p.to_dict(), ensure_ascii=False) + '\n')
            count += 1
    return count
