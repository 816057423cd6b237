# scripts/ingest.py
"""
Load report-source records (accounts, production stock, quarry operations,
dispatches) from CSV exports into the store.

Usage:
    python -m scripts.ingest dispatch_list data/dispatch_list.csv [--replace]
"""

import argparse
import csv
import logging
import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation

from quarry_erp.db.engine import get_engine
from quarry_erp.db.schema import metadata

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")


# ---- Helpers ----

def parse_decimal(value: str) -> Decimal:
    value = (value or "").strip().replace(",", "").replace("₹", "")
    if value == "":
        return Decimal("0")
    try:
        return Decimal(value)
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}")


def parse_int(value: str) -> int:
    value = (value or "").strip()
    return int(value) if value else 0


def parse_date(value: str):
    value = (value or "").strip()
    if not value:
        raise ValueError("date is required")
    value = value.split()[0]
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised date: {value!r}")


def parse_key(value: str) -> str:
    """'Crushed Stone 20mm' -> 'crushed_stone_20mm'"""
    value = (value or "").strip()
    if not value:
        raise ValueError("value is required")
    return "_".join(value.lower().split())


def parse_text(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("value is required")
    return value


def parse_optional_text(value: str):
    value = (value or "").strip()
    return value or None


def parse_transaction_type(value: str) -> str:
    value = parse_key(value)
    if value not in ("income", "expense"):
        raise ValueError(f"transaction_type must be income or expense, got {value!r}")
    return value


# column name -> parser, per table
COLUMNS = {
    "accounts": {
        "transaction_date": parse_date,
        "transaction_type": parse_transaction_type,
        "category": parse_key,
        "payment_method": parse_key,
        "amount": parse_decimal,
        "description": parse_optional_text,
    },
    "production_stock": {
        "stock_date": parse_date,
        "material_type": parse_key,
        "quantity": parse_decimal,
        "unit": parse_optional_text,
        "location": parse_optional_text,
        "quality_grade": parse_optional_text,
    },
    "drilling": {
        "date": parse_date,
        "holes_drilled": parse_int,
        "depth": parse_decimal,
    },
    "blasting": {"date": parse_date, "quantity": parse_decimal},
    "loading": {"date": parse_date, "quantity": parse_decimal},
    "transport": {"date": parse_date, "quantity": parse_decimal},
    "dispatch_list": {
        "dispatch_date": parse_date,
        "material_type": parse_key,
        "quantity_dispatched": parse_decimal,
        "customer_name": parse_text,
        "delivery_status": parse_key,
    },
}


def parse_report_csv(table_name: str, file_path: str):
    if table_name not in COLUMNS:
        raise ValueError(f"Unknown table {table_name!r}; expected one of {sorted(COLUMNS)}")
    parsers = COLUMNS[table_name]

    records = []
    n_rows = 0
    n_errors = 0
    error_examples = []

    with open(file_path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)

        missing = [c for c in parsers if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{file_path} is missing columns: {', '.join(missing)}")

        for row in reader:
            n_rows += 1
            try:
                records.append(
                    {column: parse(row[column]) for column, parse in parsers.items()}
                )
            except ValueError as e:
                n_errors += 1
                if len(error_examples) < 5:
                    error_examples.append(
                        {
                            "row_number": n_rows,
                            "row": dict(row),
                            "error": str(e),
                        }
                    )

    stats = {
        "n_rows": n_rows,
        "n_records": len(records),
        "n_errors": n_errors,
        "error_examples": error_examples,
    }
    return records, stats


def load_into_db(table_name: str, records, replace: bool = False, engine=None):
    engine = engine or get_engine()
    table = metadata.tables[table_name]
    with engine.begin() as conn:
        if replace:
            conn.execute(table.delete())
        if records:
            conn.execute(table.insert(), records)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Load report-source records from CSV")
    parser.add_argument("table", choices=sorted(COLUMNS))
    parser.add_argument("csv_path")
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Delete existing rows of the table before loading",
    )
    args = parser.parse_args(argv)

    records, stats = parse_report_csv(args.table, args.csv_path)
    load_into_db(args.table, records, replace=args.replace)

    logger.info("Table:               %s", args.table)
    logger.info("Total CSV rows read: %s", stats["n_rows"])
    logger.info("Records loaded:      %s", stats["n_records"])
    logger.info("Rows with errors:    %s", stats["n_errors"])

    if stats["error_examples"]:
        logger.warning("Example errors:")
        for ex in stats["error_examples"]:
            logger.warning("Row %s: %s", ex["row_number"], ex["error"])

    return 0


if __name__ == "__main__":
    sys.exit(main())
