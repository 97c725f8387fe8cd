from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from recite.repository import InMemoryPassageRepository, PassageRepository
from recite.session import RecitationTester
from recite.storage import PlanStore

if TYPE_CHECKING:
    from server.config import Settings


@dataclass
class RuntimePaths:
   passages_path: Path
   plan_db_path: Path
   results_path: Path


class Runtime:
   """
   Process-wide runtime cache for the objects the routes share.

   - Passage repository: JSONL catalog parsed once, or the SQL catalog
   - Plan store: cached (loads its JSONL files on first use)
   - Tester: cached, so the active test session survives between requests
   """

   def __init__(self, paths: RuntimePaths, span_sub_units: bool = False,
                repository_factory=None):
      self.paths = paths
      self.span_sub_units = span_sub_units
      self._repository_factory = repository_factory

      self._repository_lock = threading.Lock()
      self._store_lock = threading.Lock()
      self._tester_lock = threading.Lock()

      self._repository: Optional[PassageRepository] = None
      self._store: Optional[PlanStore] = None
      self._tester: Optional[RecitationTester] = None

   # ----------------------------
   # Repository
   # ----------------------------
   def get_repository(self) -> PassageRepository:
      if self._repository is not None:
         return self._repository
      with self._repository_lock:
         if self._repository is None:
            if self._repository_factory is not None:
               self._repository = self._repository_factory()
            else:
               self._repository = InMemoryPassageRepository.from_jsonl(
                  self.paths.passages_path, span_sub_units=self.span_sub_units,
               )
      return self._repository

   # ----------------------------
   # Store
   # ----------------------------
   def get_store(self) -> PlanStore:
      if self._store is not None:
         return self._store
      with self._store_lock:
         if self._store is None:
            self._store = PlanStore(self.paths.plan_db_path, self.paths.results_path)
      return self._store

   # ----------------------------
   # Tester
   # ----------------------------
   def get_tester(self) -> RecitationTester:
      if self._tester is not None:
         return self._tester
      repository = self.get_repository()
      store = self.get_store()
      with self._tester_lock:
         if self._tester is None:
            self._tester = RecitationTester(store, repository)
      return self._tester


# -------------------------------------------------------------------
# Runtime factory (for FastAPI dependency injection)
# -------------------------------------------------------------------
def runtime_from_settings(settings: "Settings") -> Runtime:
    """Build Runtime from Settings. Used by get_runtime dependency."""
    paths = RuntimePaths(
        passages_path=Path(settings.passages_path),
        plan_db_path=Path(settings.plan_db_path),
        results_path=Path(settings.results_path),
    )
    repository_factory = None
    if settings.use_sql_catalog:
        from server.db.session import get_session_factory
        from server.passages import SqlPassageRepository

        def repository_factory():
            return SqlPassageRepository(get_session_factory(settings),
                                        span_sub_units=settings.span_sub_units)

    return Runtime(paths, span_sub_units=settings.span_sub_units,
                   repository_factory=repository_factory)
