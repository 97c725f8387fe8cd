"""Tests for recite/repository.py -- in-memory catalog and JSONL loading."""

import json
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from recite.errors import PassageNotFoundError
from recite.models import Passage, PassageKey, Version
from recite.repository import (
    InMemoryPassageRepository,
    load_catalog_jsonl,
    require_passage,
    resolve_passages,
    write_catalog_jsonl,
)


def _passages():
    out = []
    for sub_unit, n in ((1, 5), (2, 3)):
        for unit in range(1, n + 1):
            out.append(Passage('JHN', 'John', 43, sub_unit, unit, f'john {sub_unit}:{unit}', 'KRV'))
    out.append(Passage('ROM', 'Romans', 45, 1, 1, 'paul a servant', 'KRV'))
    out.append(Passage('JHN', 'John', 43, 1, 1, 'in the beginning was the word', 'KJV'))
    return out


def test_passage_id_is_derived_from_identity():
    p = Passage('JHN', 'John', 43, 3, 16, 'for god so loved', 'KRV', passage_id='ignored')
    assert p.passage_id == 'JHN_3_16_KRV'
    assert PassageKey.parse(p.passage_id) == p.key
    assert p.reference == 'John 3:16'
    assert p.full_reference == 'John 3:16 (KRV)'


def test_passage_key_parse_rejects_garbage():
    with pytest.raises(ValueError):
        PassageKey.parse('JHN-3-16')


def test_lookup_and_get():
    repo = InMemoryPassageRepository(_passages())
    p = repo.lookup_passage('JHN', 1, 3, 'KRV')
    assert p.text == 'john 1:3'
    assert repo.get_passage('JHN_1_3_KRV') == p
    assert repo.lookup_passage('JHN', 9, 9, 'KRV') is None


def test_expand_range_within_sub_unit():
    repo = InMemoryPassageRepository(_passages())
    s = repo.lookup_passage('JHN', 1, 2, 'KRV')
    e = repo.lookup_passage('JHN', 1, 4, 'KRV')
    assert [p.unit for p in repo.expand_range(s, e, 'KRV')] == [2, 3, 4]


def test_expand_range_across_sub_units_is_empty_by_default():
    repo = InMemoryPassageRepository(_passages())
    s = repo.lookup_passage('JHN', 1, 4, 'KRV')
    e = repo.lookup_passage('JHN', 2, 2, 'KRV')
    assert repo.expand_range(s, e, 'KRV') == []


def test_expand_range_across_containers_when_spanning():
    repo = InMemoryPassageRepository(_passages(), span_sub_units=True)
    s = repo.lookup_passage('JHN', 2, 3, 'KRV')
    e = repo.lookup_passage('ROM', 1, 1, 'KRV')
    assert [p.passage_id for p in repo.expand_range(s, e, 'KRV')] == ['JHN_2_3_KRV', 'ROM_1_1_KRV']


def test_expand_range_stays_in_version():
    repo = InMemoryPassageRepository(_passages())
    s = repo.lookup_passage('JHN', 1, 1, 'KRV')
    e = repo.lookup_passage('JHN', 1, 5, 'KRV')
    assert all(p.version_code == 'KRV' for p in repo.expand_range(s, e, 'KRV'))


def test_containers_and_counts():
    repo = InMemoryPassageRepository(_passages())
    containers = repo.list_containers('KRV')
    assert [(c.code, c.sub_units) for c in containers] == [('JHN', 2), ('ROM', 1)]
    assert repo.sub_unit_count('JHN', 'KRV') == 2
    assert repo.unit_count('JHN', 1, 'KRV') == 5
    assert repo.unit_count('JHN', 7, 'KRV') == 0


def test_versions_fall_back_to_codes():
    repo = InMemoryPassageRepository(_passages(), versions=[Version('KRV', 'Korean Revised', 'ko')])
    versions = repo.list_versions()
    assert [v.code for v in versions] == ['KJV', 'KRV']
    assert versions[1].name == 'Korean Revised'
    assert versions[0].name == 'KJV'


def test_search_is_case_insensitive_and_limited():
    repo = InMemoryPassageRepository(_passages())
    assert [p.passage_id for p in repo.search('JOHN 1', 'KRV', limit=2)] == ['JHN_1_1_KRV', 'JHN_1_2_KRV']
    assert repo.search('servant', 'KJV') == []


def test_require_and_resolve_raise_on_miss():
    repo = InMemoryPassageRepository(_passages())
    with pytest.raises(PassageNotFoundError) as exc:
        require_passage(repo, 'JHN', 9, 1, 'KRV')
    assert exc.value.passage_id == 'JHN_9_1_KRV'
    with pytest.raises(KeyError):
        resolve_passages(repo, ['JHN_1_1_KRV', 'NOPE_1_1_KRV'])


def test_catalog_jsonl_round_trip():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / 'catalog' / 'passages.jsonl'
        written = write_catalog_jsonl(path, _passages(), [Version('KRV', 'Korean Revised', 'ko')])
        assert written == len(_passages())

        first = json.loads(path.read_text(encoding='utf-8').splitlines()[0])
        assert first['record'] == 'version'

        repo = InMemoryPassageRepository.from_jsonl(path)
        assert repo.count() == len(_passages())
        assert repo.list_versions()[1].language == 'ko'


def test_missing_catalog_loads_empty():
    with tempfile.TemporaryDirectory() as tmp:
        passages, versions = load_catalog_jsonl(Path(tmp) / 'absent.jsonl')
        assert passages == [] and versions == []
