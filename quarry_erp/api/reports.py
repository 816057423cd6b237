# quarry_erp/api/reports.py

import asyncio
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import Table, select
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from quarry_erp.core.config import settings
from quarry_erp.db.engine import get_engine
from quarry_erp.db.errors import StoreTimeoutError, store_errors
from quarry_erp.db.schema import (
    accounts,
    blasting,
    dispatch_list,
    drilling,
    loading,
    production_stock,
    transport,
)
from quarry_erp.models.reports import (
    AccountingReport,
    ProductionReport,
    QuarryReport,
    SalesReport,
)
from quarry_erp.services.reports import (
    build_accounting_report,
    build_production_report,
    build_quarry_report,
    build_sales_report,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])

START_DATE = Query(default=None, description="Inclusive, YYYY-MM-DD")
END_DATE = Query(default=None, description="Inclusive, YYYY-MM-DD")


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")


def _fetch_dated(
    engine: Engine,
    table: Table,
    date_column: str,
    start_date: Optional[date],
    end_date: Optional[date],
):
    column = table.c[date_column]
    stmt = select(table).order_by(column.desc())
    if start_date:
        stmt = stmt.where(column >= start_date)
    if end_date:
        stmt = stmt.where(column <= end_date)

    with store_errors(f"load {table.name} records"):
        with engine.connect() as conn:
            return conn.execute(stmt).mappings().all()


@router.get("/accounting", response_model=AccountingReport)
def accounting_report(
    start_date: Optional[date] = START_DATE,
    end_date: Optional[date] = END_DATE,
    engine: Engine = Depends(get_engine),
) -> AccountingReport:
    """
    Income vs expense, breakdowns by category and payment method, top expenses.
    """
    _check_range(start_date, end_date)
    rows = _fetch_dated(engine, accounts, "transaction_date", start_date, end_date)
    return build_accounting_report(rows, settings.REPORT_TOP_N, start_date, end_date)


@router.get("/production", response_model=ProductionReport)
def production_report(
    start_date: Optional[date] = START_DATE,
    end_date: Optional[date] = END_DATE,
    engine: Engine = Depends(get_engine),
) -> ProductionReport:
    """
    Produced quantity per material and its share of total production.
    """
    _check_range(start_date, end_date)
    rows = _fetch_dated(engine, production_stock, "stock_date", start_date, end_date)
    return build_production_report(rows, settings.REPORT_TOP_N, start_date, end_date)


@router.get("/quarry", response_model=QuarryReport)
async def quarry_report(
    start_date: Optional[date] = START_DATE,
    end_date: Optional[date] = END_DATE,
    engine: Engine = Depends(get_engine),
) -> QuarryReport:
    """
    Drilling, blasting, loading and transport totals. The four tables are read
    concurrently; if any read fails the whole report fails.
    """
    _check_range(start_date, end_date)

    reads = [
        run_in_threadpool(_fetch_dated, engine, table, "date", start_date, end_date)
        for table in (drilling, blasting, loading, transport)
    ]
    try:
        drilling_rows, blasting_rows, loading_rows, transport_rows = await asyncio.wait_for(
            asyncio.gather(*reads),
            timeout=settings.STORE_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as exc:
        logger.warning("Quarry report reads exceeded %ss", settings.STORE_TIMEOUT_SECONDS)
        raise StoreTimeoutError(
            "load quarry data", "the data store did not respond in time"
        ) from exc

    return build_quarry_report(
        drilling_rows, blasting_rows, loading_rows, transport_rows, start_date, end_date
    )


@router.get("/sales", response_model=SalesReport)
def sales_report(
    start_date: Optional[date] = START_DATE,
    end_date: Optional[date] = END_DATE,
    engine: Engine = Depends(get_engine),
) -> SalesReport:
    """
    Dispatched quantity per material and customer, delivery rate, top buyers.
    """
    _check_range(start_date, end_date)
    rows = _fetch_dated(engine, dispatch_list, "dispatch_date", start_date, end_date)
    return build_sales_report(rows, settings.REPORT_TOP_N, start_date, end_date)
