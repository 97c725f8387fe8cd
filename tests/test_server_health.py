"""Tests for /health and app wiring."""

import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient
from sqlalchemy import inspect
from server.app import app
from server.config import Settings
from server.db.session import get_engine, reset_engine
from server.dependencies import get_settings


client = TestClient(app)


def _settings(tmp: Path, use_sql_catalog: bool) -> Settings:
    return Settings(
        data_root=tmp,
        database_url=f"sqlite:///{tmp / 'catalog.db'}",
        use_sql_catalog=use_sql_catalog,
    )


def test_health_returns_200():
    resp = client.get("/health")
    assert resp.status_code == 200


def test_health_body():
    resp = client.get("/health")
    assert resp.json() == {"ok": True}


def test_recitation_routes_registered():
    paths = set(client.get("/openapi.json").json()["paths"])
    for path in ("/plans", "/plans/validate", "/score", "/tests/start", "/tests/submit", "/today"):
        assert path in paths


def test_startup_skips_database_without_sql_catalog():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _settings(Path(tmp), use_sql_catalog=False)
        app.dependency_overrides[get_settings] = lambda: settings
        try:
            with TestClient(app) as c:
                assert c.get("/health").status_code == 200
            assert not (Path(tmp) / "catalog.db").exists()
        finally:
            app.dependency_overrides.clear()


def test_startup_creates_catalog_tables_from_overridden_settings():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _settings(Path(tmp), use_sql_catalog=True)
        app.dependency_overrides[get_settings] = lambda: settings
        try:
            with TestClient(app):
                tables = set(inspect(get_engine(settings)).get_table_names())
            assert {"versions", "containers", "passages"} <= tables
        finally:
            app.dependency_overrides.clear()
            reset_engine()
