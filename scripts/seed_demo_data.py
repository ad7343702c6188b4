from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from wolf_marketer.db.base import SessionLocal, init_db  # noqa: E402
from wolf_marketer.storage.database import DatabaseStorage  # noqa: E402
from wolf_marketer.storage.seed import seed_demo_data  # noqa: E402


def main(create_schema: bool) -> None:
    if create_schema:
        init_db()
    session = SessionLocal()
    try:
        storage = DatabaseStorage(session)
        if storage.get_user_by_username("demo"):
            print("Demo data already present; nothing to do.")
            return
        seeded = seed_demo_data(storage)
        print(
            f"Seeded demo user {seeded['user'].username} with {len(seeded['platforms'])} platforms "
            f"and {len(seeded['workflows'])} workflows."
        )
    finally:
        session.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load the demo account, platforms and workflows into DATABASE_URL.")
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create tables with SQLAlchemy metadata first (local SQLite; use alembic for Postgres).",
    )
    args = parser.parse_args()
    main(create_schema=args.create_schema)
