"""FastAPI dependency factories."""

import sys
from functools import lru_cache
from pathlib import Path

_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import Depends

from recite.repository import PassageRepository
from recite.session import RecitationTester
from recite.storage import PlanStore
from server.config import Settings
from server.runtime import Runtime, runtime_from_settings

# Process-wide Runtime cache (keyed by settings identity for override support)
_runtime: Runtime | None = None
_runtime_settings_id: object | None = None


@lru_cache()
def get_settings() -> Settings:
    """Singleton Settings -- override via app.dependency_overrides in tests."""
    return Settings()


def get_runtime(settings: Settings = Depends(get_settings)) -> Runtime:
    """Process-wide Runtime cache for the repository, plan store and tester."""
    global _runtime, _runtime_settings_id
    # Recreate if settings were overridden (e.g. in tests)
    if _runtime is None or _runtime_settings_id is not settings:
        _runtime = runtime_from_settings(settings)
        _runtime_settings_id = settings
    return _runtime


def get_repository(runtime: Runtime = Depends(get_runtime)) -> PassageRepository:
    return runtime.get_repository()


def get_plan_store(runtime: Runtime = Depends(get_runtime)) -> PlanStore:
    return runtime.get_store()


def get_tester(runtime: Runtime = Depends(get_runtime)) -> RecitationTester:
    """Cached tester; holds the one active recitation session."""
    return runtime.get_tester()
