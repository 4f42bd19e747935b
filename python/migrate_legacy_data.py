#!/usr/bin/env python3
"""
Legacy Jurisdiction Data Migration

Copies legacy regulations into laws and legacy compliance requirements into
obligations. Already-copied rows are skipped, so the script can be re-run.

Usage:
    python migrate_legacy_data.py [--dry-run]
"""

import sys
import argparse
import logging
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent))

from sqlalchemy.exc import SQLAlchemyError

from database.connection import init_db, close_db
from database.legacy_migration import migrate_legacy_data

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Copy legacy jurisdiction rows into the enhanced tables")
    parser.add_argument("--dry-run", action="store_true", help="Report what would be copied, then roll back")
    args = parser.parse_args(argv)

    try:
        db = init_db()
        session = db.session_factory()
        try:
            result = migrate_legacy_data(session)
            if args.dry_run:
                session.rollback()
                logger.info("Dry run, nothing written")
            else:
                session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()

        counts = result.to_dict()
        logger.info("Laws: %d created, %d already migrated", counts['laws_created'], counts['laws_skipped'])
        logger.info("Obligations: %d created, %d already migrated",
                    counts['obligations_created'], counts['obligations_skipped'])
        return 0
    except SQLAlchemyError as e:
        logger.error("Migration failed: %s", e)
        return 1
    finally:
        close_db()


if __name__ == "__main__":
    sys.exit(main())
