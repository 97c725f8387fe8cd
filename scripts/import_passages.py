#!/usr/bin/env python3
"""
Load a passage catalog JSONL into the SQL catalog tables.

Usage:
    python scripts/import_passages.py passages.jsonl
    DATABASE_URL=postgresql://... python scripts/import_passages.py passages.jsonl
"""

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from recite.repository import load_catalog_jsonl
from server.config import Settings
from server.db.session import get_db, init_db
from server.passages import import_catalog


def main():
    parser = argparse.ArgumentParser(description="Import a passage catalog into the database")
    parser.add_argument('path', help="Passage catalog JSONL")
    parser.add_argument('--database-url', default=None, help="Overrides DATABASE_URL")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    path = Path(args.path)
    if not path.exists():
        print(f"Catalog not found: {path}")
        sys.exit(1)

    settings = Settings(database_url=args.database_url)
    init_db(settings)
    passages, versions = load_catalog_jsonl(path)
    if not passages:
        print(f"No passages in {path}")
        sys.exit(1)

    with get_db(settings) as db:
        count = import_catalog(db, passages, versions)
    print(f"Imported {count} passage(s) into {settings.database_url}")


if __name__ == "__main__":
    main()
