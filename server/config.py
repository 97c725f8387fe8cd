"""Configuration for the Recite API server."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class Settings:
    """
    Paths and knobs the server needs.

    Defaults resolve relative to the project root.
    Every field is overridable at construction for testing.
    """
    data_root: Optional[Path] = None
    passages_path: Optional[Path] = None
    plan_db_path: Optional[Path] = None
    results_path: Optional[Path] = None
    database_url: Optional[str] = None
    max_daily_load: float = 10.0
    span_sub_units: bool = False
    default_version: str = "KRV"
    # Serve passages from the SQL catalog instead of the JSONL file
    use_sql_catalog: bool = False

    def __post_init__(self):
        project_root = Path(__file__).resolve().parent.parent

        if self.data_root is None:
            env_root = os.environ.get("RECITE_DATA_ROOT")
            self.data_root = Path(env_root) if env_root else project_root / "recite_data"
        self.data_root = Path(self.data_root)

        if self.passages_path is None:
            env_passages = os.environ.get("PASSAGES_PATH")
            self.passages_path = Path(env_passages) if env_passages else self.data_root / "passages.jsonl"
        self.passages_path = Path(self.passages_path)

        if self.plan_db_path is None:
            self.plan_db_path = self.data_root / "recite_plans.jsonl"
        self.plan_db_path = Path(self.plan_db_path)

        if self.results_path is None:
            self.results_path = self.data_root / "recite_results.jsonl"
        self.results_path = Path(self.results_path)

        if self.database_url is None:
            self.database_url = os.environ.get("DATABASE_URL", "sqlite:///./recite.db")

        env_load = os.environ.get("RECITE_MAX_DAILY_LOAD")
        if env_load is not None:
            try:
                self.max_daily_load = float(env_load)
            except ValueError:
                pass

        if os.environ.get("RECITE_SPAN_SUB_UNITS", "").lower() in ("1", "true", "yes"):
            self.span_sub_units = True
        if os.environ.get("RECITE_SQL_CATALOG", "").lower() in ("1", "true", "yes"):
            self.use_sql_catalog = True
        if os.environ.get("RECITE_DEFAULT_VERSION"):
            self.default_version = os.environ["RECITE_DEFAULT_VERSION"]
