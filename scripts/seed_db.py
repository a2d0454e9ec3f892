"""Load the demo employees and projects from database/seed.sql.

Usage: APP_ENV=development python scripts/seed_db.py
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.site_progress.site_progress.database.bootstrap import apply_seed_sql
from src.site_progress.site_progress.database.connection import DBConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    added = apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")

    print(f"OK: seeded {DBConfig.from_mapping(db_config).describe()} ({added} method progress rows added)")


if __name__ == "__main__":
    main()
