#!/usr/bin/env python
"""
Database seeding script for demo data.

Imports the CSV files of a seed directory through the regular CSV import, in
dependency order (lookups, chains, regions, postal codes, ingredients, dishes,
dish ingredients, offers). It will:

1. Wait for PostgreSQL to be available
2. Create the tables if they don't exist
3. Skip seeding if dishes already exist (unless SEED_SKIP_IF_EXISTS=false)
4. Import every <table>.csv found in the seed directory

Run with: python scripts/seed_database.py

Environment Variables:
    SEED_DATA_DIR: Directory with <table>.csv files (default: data/seed)
    SEED_SKIP_IF_EXISTS: Skip seeding if dishes exist (default: true)
    DATABASE_URL: PostgreSQL connection string
"""

import os
import sys
import time
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from mealdeal.database import Base, sync_engine
from mealdeal.ingest import TABLES, import_csv
from mealdeal.logging_config import configure_logging, get_logger
from mealdeal.models import Dish

configure_logging(log_level=os.getenv("LOG_LEVEL", "INFO"))
logger = get_logger(__name__)

DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data" / "seed"
SEED_DATA_DIR = Path(os.getenv("SEED_DATA_DIR", str(DEFAULT_DATA_DIR)))
SEED_SKIP_IF_EXISTS = os.getenv("SEED_SKIP_IF_EXISTS", "true").lower() == "true"


def wait_for_postgres(max_retries: int = 30, retry_delay: int = 2) -> bool:
    """Wait for PostgreSQL to be available."""
    logger.info("Waiting for PostgreSQL to be ready...")

    for attempt in range(max_retries):
        try:
            with sync_engine.connect() as conn:
                conn.execute(select(1))
            logger.info("PostgreSQL is ready")
            return True
        except Exception as e:
            logger.debug(f"PostgreSQL not ready (attempt {attempt + 1}/{max_retries}): {e}")
            time.sleep(retry_delay)

    logger.error("PostgreSQL did not become ready in time")
    return False


def count_dishes() -> int:
    with Session(sync_engine) as session:
        return session.execute(select(func.count(Dish.dish_id))).scalar() or 0


def seed_database(data_dir: Path) -> dict:
    """
    Import all seed files found in data_dir.

    Returns:
        Dictionary with seeding results.
    """
    results: dict = {"status": "unknown", "tables": {}, "skipped": False}

    if not wait_for_postgres():
        results["status"] = "failed"
        results["error"] = "PostgreSQL not available"
        return results

    Base.metadata.create_all(sync_engine)

    existing = count_dishes()
    if SEED_SKIP_IF_EXISTS and existing:
        logger.info(f"Database already has {existing} dishes, skipping seed")
        results["status"] = "skipped"
        results["skipped"] = True
        return results

    failed = False
    for table in TABLES:
        path = data_dir / f"{table}.csv"
        if not path.exists():
            logger.info(f"No seed file for {table}, skipping")
            continue

        result = import_csv(table, path.read_text(encoding="utf-8-sig"), dry_run=False)
        results["tables"][table] = result.imported
        for error in result.errors:
            logger.warning(f"{table}: {error}")
        if result.errors:
            failed = True

    results["status"] = "partial" if failed else "completed"
    return results


def main():
    """Entry point for the seed script."""
    logger.info(f"Seeding from {SEED_DATA_DIR}")

    try:
        results = seed_database(SEED_DATA_DIR)

        logger.info("Seeding Results:")
        for key, value in results.items():
            logger.info(f"  {key}: {value}")

        sys.exit(0 if results["status"] in ("completed", "skipped") else 1)

    except KeyboardInterrupt:
        logger.info("Seeding interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.exception(f"Seeding failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
