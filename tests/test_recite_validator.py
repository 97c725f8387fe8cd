"""Tests for recite/validator.py -- plan business rules."""

import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from recite.errors import EmptyRangeError, ExcessiveLoadError, InvalidDateError
from recite.kinds import VerdictKind
from recite.models import Passage, PassageRange
from recite.repository import InMemoryPassageRepository
from recite.validator import validate_plan


def _repo():
    passages = [Passage('GEN', 'Genesis', 1, 1, u, f'gen 1:{u}', 'KRV') for u in range(1, 51)]
    passages += [Passage('GEN', 'Genesis', 1, 2, u, f'gen 2:{u}', 'KRV') for u in range(1, 26)]
    passages += [Passage('GEN', 'Genesis', 1, 1, u, f'gen 1:{u} (en)', 'KJV') for u in range(1, 4)]
    return InMemoryPassageRepository(passages)


def _range(repo, start, end, version='KRV'):
    s = repo.lookup_passage('GEN', start[0], start[1], version)
    e = repo.lookup_passage('GEN', end[0], end[1], version)
    return PassageRange(s, e, version)


START = date(2025, 1, 1)


def test_valid_plan():
    repo = _repo()
    verdict = validate_plan(_range(repo, (1, 1), (1, 10)), START, date(2025, 1, 5), repo)
    assert verdict.kind is VerdictKind.VALID
    assert verdict.is_valid
    assert verdict.error_message is None
    assert len(verdict.passages) == 10
    assert verdict.day_count == 5
    assert verdict.average_per_day == 2.0


def test_target_before_start_is_invalid_date():
    repo = _repo()
    verdict = validate_plan(_range(repo, (1, 1), (1, 10)), START, date(2024, 12, 31), repo)
    assert verdict.kind is VerdictKind.INVALID_DATE
    assert verdict.error_message


def test_date_checked_before_range():
    """A bad date wins even when the range is also bad."""
    repo = _repo()
    verdict = validate_plan(_range(repo, (1, 10), (1, 1)), START, date(2024, 12, 1), repo)
    assert verdict.kind is VerdictKind.INVALID_DATE


def test_reversed_range_is_invalid_range():
    repo = _repo()
    verdict = validate_plan(_range(repo, (1, 10), (1, 1)), START, date(2025, 1, 5), repo)
    assert verdict.kind is VerdictKind.INVALID_RANGE


def test_cross_sub_unit_range_is_empty_by_default():
    repo = _repo()
    verdict = validate_plan(_range(repo, (1, 40), (2, 5)), START, date(2025, 1, 10), repo)
    assert verdict.kind is VerdictKind.EMPTY_RANGE
    assert VerdictKind.EMPTY_RANGE is VerdictKind.INVALID_RANGE


def test_cross_sub_unit_range_allowed_when_spanning():
    repo = _repo()
    repo.span_sub_units = True
    verdict = validate_plan(_range(repo, (1, 40), (2, 5)), START, date(2025, 1, 10), repo)
    assert verdict.is_valid
    assert len(verdict.passages) == 16


def test_mixed_versions_is_invalid_range():
    repo = _repo()
    s = repo.lookup_passage('GEN', 1, 1, 'KRV')
    e = repo.lookup_passage('GEN', 1, 3, 'KJV')
    verdict = validate_plan(PassageRange(s, e, 'KRV'), START, date(2025, 1, 5), repo)
    assert verdict.kind is VerdictKind.INVALID_RANGE


def test_fifty_passages_in_two_days_is_excessive():
    repo = _repo()
    verdict = validate_plan(_range(repo, (1, 1), (1, 50)), START, date(2025, 1, 2), repo)
    assert verdict.kind is VerdictKind.EXCESSIVE_LOAD
    assert verdict.average_per_day == 25.0
    assert 'per day' in verdict.message


def test_exactly_ten_per_day_is_allowed():
    repo = _repo()
    verdict = validate_plan(_range(repo, (1, 1), (1, 20)), START, date(2025, 1, 2), repo)
    assert verdict.is_valid


def test_custom_threshold():
    repo = _repo()
    verdict = validate_plan(_range(repo, (1, 1), (1, 20)), START, date(2025, 1, 2), repo,
                            max_daily_load=5)
    assert verdict.kind is VerdictKind.EXCESSIVE_LOAD


def test_to_error_maps_each_kind():
    repo = _repo()
    bad_date = validate_plan(_range(repo, (1, 1), (1, 5)), START, date(2024, 1, 1), repo)
    empty = validate_plan(_range(repo, (1, 5), (1, 1)), START, date(2025, 1, 5), repo)
    heavy = validate_plan(_range(repo, (1, 1), (1, 50)), START, START, repo)
    assert isinstance(bad_date.to_error(), InvalidDateError)
    assert isinstance(empty.to_error(), EmptyRangeError)
    err = heavy.to_error()
    assert isinstance(err, ExcessiveLoadError)
    assert err.verdict is heavy
    assert err.message == heavy.message


def test_valid_verdict_has_no_error():
    repo = _repo()
    verdict = validate_plan(_range(repo, (1, 1), (1, 2)), START, START, repo)
    with pytest.raises(ValueError):
        verdict.to_error()


def test_to_dict():
    repo = _repo()
    data = validate_plan(_range(repo, (1, 1), (1, 3)), START, date(2025, 1, 2), repo).to_dict()
    assert data == {
        'kind': 'valid',
        'valid': True,
        'message': '',
        'passage_count': 3,
        'day_count': 2,
        'average_per_day': 1.5,
    }
