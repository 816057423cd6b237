# quarry_erp/api/customers.py

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import Engine

from quarry_erp.core.config import settings
from quarry_erp.db.engine import get_engine
from quarry_erp.db.errors import store_errors
from quarry_erp.db.schema import customers, invoices
from quarry_erp.models.customers import (
    CustomerIn,
    CustomerInvoice,
    CustomerInvoicesResponse,
    CustomerOut,
    CustomerPage,
)
from quarry_erp.services.billing import ZERO, balance_due, business_now
from quarry_erp.services.directory import paginate, search_customers

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])


def _load_customer(engine: Engine, customer_id: str):
    with store_errors("load customer"):
        with engine.connect() as conn:
            row = conn.execute(
                select(customers).where(customers.c.id == customer_id)
            ).mappings().first()

    if row is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return row


@router.get("/", response_model=CustomerPage)
def list_customers(
    search: str = Query("", description="Matches company, contact person, email or phone"),
    page: int = Query(1, ge=1),
    engine: Engine = Depends(get_engine),
) -> CustomerPage:
    """
    Customers ordered by company name, filtered and paged in memory.
    """
    with store_errors("load customers"):
        with engine.connect() as conn:
            rows = conn.execute(
                select(customers).order_by(customers.c.company_name)
            ).mappings().all()

    matching = search_customers(rows, search)
    page_size = settings.CUSTOMER_PAGE_SIZE
    page_rows, total_pages = paginate(matching, page, page_size)

    return CustomerPage(
        items=[CustomerOut.model_validate(dict(row)) for row in page_rows],
        total=len(matching),
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.post("/", response_model=CustomerOut, status_code=201)
def create_customer(payload: CustomerIn, engine: Engine = Depends(get_engine)) -> CustomerOut:
    with store_errors("save customer"):
        with engine.begin() as conn:
            result = conn.execute(customers.insert().values(**payload.model_dump()))
            customer_id = result.inserted_primary_key[0]

    logger.info("Created customer %s (%s)", payload.company_name, customer_id)
    return CustomerOut.model_validate(dict(_load_customer(engine, customer_id)))


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: str, engine: Engine = Depends(get_engine)) -> CustomerOut:
    """
    Return a single customer by ID.
    """
    return CustomerOut.model_validate(dict(_load_customer(engine, customer_id)))


@router.put("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: str,
    payload: CustomerIn,
    engine: Engine = Depends(get_engine),
) -> CustomerOut:
    with store_errors("save customer"):
        with engine.begin() as conn:
            result = conn.execute(
                update(customers)
                .where(customers.c.id == customer_id)
                .values(**payload.model_dump())
            )

    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Customer not found")

    logger.info("Updated customer %s", customer_id)
    return CustomerOut.model_validate(dict(_load_customer(engine, customer_id)))


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: str,
    confirm: bool = Query(False, description="Must be true; deletion cannot be undone"),
    engine: Engine = Depends(get_engine),
) -> dict:
    if not confirm:
        raise HTTPException(
            status_code=400,
            detail="Deleting a customer is permanent; repeat the request with confirm=true",
        )

    with store_errors("delete customer"):
        with engine.begin() as conn:
            result = conn.execute(delete(customers).where(customers.c.id == customer_id))

    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Customer not found")

    logger.info("Deleted customer %s", customer_id)
    return {"status": "deleted", "id": customer_id}


@router.get("/{customer_id}/invoices", response_model=CustomerInvoicesResponse)
def recent_customer_invoices(
    customer_id: str,
    engine: Engine = Depends(get_engine),
) -> CustomerInvoicesResponse:
    """
    Invoices billed to this customer in the trailing window, with the
    outstanding balance across them. Invoices carry the customer's name as
    text, so they are matched on company name.
    """
    customer = _load_customer(engine, customer_id)
    since = business_now().date() - timedelta(days=settings.CUSTOMER_INVOICE_WINDOW_DAYS)

    stmt = (
        select(
            invoices.c.invoice_number,
            invoices.c.invoice_date,
            invoices.c.due_date,
            invoices.c.total_amount,
            invoices.c.amount_paid,
            invoices.c.status,
        )
        .where(
            func.lower(invoices.c.customer_name) == func.lower(customer["company_name"]),
            invoices.c.invoice_date >= since,
        )
        .order_by(invoices.c.invoice_date.desc())
    )

    with store_errors("load customer invoices"):
        with engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

    items = [
        CustomerInvoice(
            invoice_number=row["invoice_number"],
            invoice_date=row["invoice_date"],
            due_date=row["due_date"],
            total_amount=row["total_amount"],
            amount_paid=row["amount_paid"],
            balance=balance_due(row["total_amount"], row["amount_paid"] or ZERO),
            status=row["status"],
        )
        for row in rows
    ]

    return CustomerInvoicesResponse(
        customer_id=customer_id,
        company_name=customer["company_name"],
        since=since,
        invoices=items,
        total_balance=sum((item.balance for item in items), ZERO),
    )
