# scripts/init_db.py
"""
Create the store schema (customers, invoices and the report source tables).

Usage:
    python -m scripts.init_db            # drop and recreate everything
    python -m scripts.init_db --keep     # only create missing tables
"""

import argparse
import logging
import sys

from quarry_erp.db.engine import get_engine
from quarry_erp.db.schema import metadata

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create the Quarry ERP schema")
    parser.add_argument(
        "--keep",
        action="store_true",
        help="Keep existing tables and data; only create what is missing",
    )
    args = parser.parse_args(argv)

    engine = get_engine()
    if not args.keep:
        logger.warning("Dropping all tables in %s", engine.url)
        metadata.drop_all(engine)
    metadata.create_all(engine)
    logger.info("Schema ready: %s", ", ".join(sorted(metadata.tables)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
