"""Tests for the recitation API endpoints."""

import sys
import tempfile
from datetime import date, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient
from recite.models import Passage, Version
from recite.repository import write_catalog_jsonl
from server.app import app
from server.config import Settings
from server.dependencies import get_settings


# ============================================================================
# Helpers
# ============================================================================

def _make_settings(tmp_dir: Path) -> Settings:
    passages = [Passage('PSA', 'Psalms', 19, 23, u, f'psalm twenty three verse {u}', 'KRV')
                for u in range(1, 7)]
    passages += [Passage('PSA', 'Psalms', 19, 119, u, f'psalm 119 verse {u}', 'KRV')
                 for u in range(1, 41)]
    write_catalog_jsonl(tmp_dir / 'passages.jsonl', passages, [Version('KRV', 'Korean Revised', 'ko')])
    return Settings(
        data_root=tmp_dir,
        passages_path=tmp_dir / 'passages.jsonl',
        plan_db_path=tmp_dir / 'plans.jsonl',
        results_path=tmp_dir / 'results.jsonl',
        database_url='sqlite://',
    )


def _key(sub_unit, unit):
    return {'container_code': 'PSA', 'sub_unit': sub_unit, 'unit': unit}


def _plan_body(start=(23, 1), end=(23, 6), days=3, title='Psalm 23'):
    today = date.today()
    return {
        'title': title,
        'start': _key(*start),
        'end': _key(*end),
        'start_date': today.isoformat(),
        'target_date': (today + timedelta(days=days - 1)).isoformat(),
    }


def _client(settings: Settings) -> TestClient:
    app.dependency_overrides[get_settings] = lambda: settings
    return TestClient(app)


# ============================================================================
# Tests: catalog
# ============================================================================

def test_versions_and_containers():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            resp = client.get('/versions')
            assert resp.status_code == 200
            assert resp.json()['versions'] == [{'code': 'KRV', 'name': 'Korean Revised', 'language': 'ko'}]

            resp = client.get('/versions/KRV/containers')
            assert resp.json()['containers'][0]['sub_units'] == 119
        finally:
            app.dependency_overrides.clear()


def test_passage_lookup_and_404():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            resp = client.get('/passages/PSA_23_1_KRV')
            assert resp.status_code == 200
            assert resp.json()['reference'] == 'Psalms 23:1'

            resp = client.get('/passages/PSA_99_1_KRV')
            assert resp.status_code == 404
            assert 'PSA_99_1_KRV' in resp.json()['detail']
        finally:
            app.dependency_overrides.clear()


# ============================================================================
# Tests: plans
# ============================================================================

def test_validate_endpoint_returns_verdict():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            resp = client.post('/plans/validate', json=_plan_body(start=(119, 1), end=(119, 40), days=2))
            assert resp.status_code == 200
            body = resp.json()
            assert body['valid'] is False
            assert body['kind'] == 'excessive_load'
            assert body['average_per_day'] == 20.0
        finally:
            app.dependency_overrides.clear()


def test_create_list_get_delete_plan():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            resp = client.post('/plans', json=_plan_body())
            assert resp.status_code == 201
            plan = resp.json()
            assert plan['range'] == 'Psalms 23:1-6'
            assert [len(a['passage_ids']) for a in plan['allocations']] == [2, 2, 2]

            listed = client.get('/plans').json()
            assert [p['plan_id'] for p in listed['plans']] == [plan['plan_id']]

            resp = client.get(f"/plans/{plan['plan_id']}")
            assert resp.status_code == 200
            assert resp.json()['passage_count'] == 6

            assert client.delete(f"/plans/{plan['plan_id']}").status_code == 200
            assert client.get(f"/plans/{plan['plan_id']}").status_code == 404
        finally:
            app.dependency_overrides.clear()


def test_create_invalid_plan_is_422():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            resp = client.post('/plans', json=_plan_body(start=(23, 6), end=(23, 1)))
            assert resp.status_code == 422
            assert resp.json()['detail']['kind'] == 'invalid_range'
            assert client.get('/plans').json()['plans'] == []
        finally:
            app.dependency_overrides.clear()


def test_create_with_unknown_passage_is_404():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            resp = client.post('/plans', json=_plan_body(end=(23, 60)))
            assert resp.status_code == 404
        finally:
            app.dependency_overrides.clear()


def test_day_completion_and_today():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            plan_id = client.post('/plans', json=_plan_body()).json()['plan_id']
            today = date.today().isoformat()

            today_body = client.get('/today').json()
            assert today_body['items'][0]['plan_id'] == plan_id
            assert today_body['items'][0]['completed'] is False
            assert len(today_body['items'][0]['passages']) == 2

            resp = client.post(f'/plans/{plan_id}/days/{today}/complete')
            assert resp.status_code == 200
            assert resp.json()['completed'] is True
            assert resp.json()['progress'] == round(1 / 3, 4)

            resp = client.post(f'/plans/{plan_id}/days/{today}/incomplete')
            assert resp.json()['completed'] is False

            resp = client.post(f'/plans/{plan_id}/days/2000-01-01/complete')
            assert resp.status_code == 404
            assert resp.json()['detail'] == f'Plan {plan_id} has no allocation on 2000-01-01'
        finally:
            app.dependency_overrides.clear()


# ============================================================================
# Tests: scoring and recitation tests
# ============================================================================

def test_stateless_score():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            resp = client.post('/score', json={
                'passage_ids': ['PSA_23_1_KRV', 'PSA_23_2_KRV'],
                'attempt': 'psalm twenty three verse 1\npsalm twenty three verse 3',
            })
            assert resp.status_code == 200
            body = resp.json()
            assert body['passage_correct'] == {'PSA_23_1_KRV': True, 'PSA_23_2_KRV': False}
            assert body['diff_by_passage']['PSA_23_2_KRV'][-1]['kind'] == 'wrong'

            resp = client.post('/score', json={'passage_ids': ['NOPE_1_1_KRV'], 'attempt': ''})
            assert resp.status_code == 404
        finally:
            app.dependency_overrides.clear()


def test_submit_without_session_is_409():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            resp = client.post('/tests/submit', json={'user_input': 'anything'})
            assert resp.status_code == 409
            assert 'Start a test first' in resp.json()['detail']
        finally:
            app.dependency_overrides.clear()


def test_recitation_flow_and_stats():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            plan_id = client.post('/plans', json=_plan_body()).json()['plan_id']

            resp = client.post('/tests/start', json={'plan_id': plan_id, 'scope': 'daily'})
            assert resp.status_code == 200
            started = resp.json()
            assert started['passage_count'] == 2
            texts = [p['text'] for p in started['passages']]

            resp = client.post('/tests/submit', json={'user_input': '\n'.join(texts)})
            assert resp.status_code == 200
            result = resp.json()
            assert result['accuracy'] == 1.0
            assert result['correct_passages'] == 2

            resp = client.post('/tests/submit', json={'user_input': texts[0], 'end_session': True})
            assert resp.json()['incorrect_passage_ids'] == [started['passages'][1]['passage_id']]
            assert client.post('/tests/submit', json={}).status_code == 409

            stats = client.get(f'/plans/{plan_id}/stats').json()
            assert stats['total_tests'] == 2
            assert stats['daily_tests'] == 2
            assert stats['best_accuracy'] == 1.0
            assert stats['weakest_passages'][0]['misses'] == 1
        finally:
            app.dependency_overrides.clear()


def test_start_unknown_plan_is_404():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            resp = client.post('/tests/start', json={'plan_id': 'missing'})
            assert resp.status_code == 404
            assert client.get('/plans/missing/stats').status_code == 404
        finally:
            app.dependency_overrides.clear()


def test_score_rejects_repeated_passage_ids():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _make_settings(Path(tmp))
        try:
            client = _client(settings)
            resp = client.post('/score', json={
                'passage_ids': ['PSA_23_1_KRV', 'PSA_23_1_KRV'],
                'attempt': 'psalm twenty three verse 1\nzz',
            })
            assert resp.status_code == 422
            assert 'PSA_23_1_KRV' in resp.json()['detail']
        finally:
            app.dependency_overrides.clear()
