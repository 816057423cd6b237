# quarry_erp/api/invoices.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse
from sqlalchemy import case, func, or_, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from quarry_erp.db.engine import get_engine
from quarry_erp.db.errors import store_errors
from quarry_erp.db.schema import invoices
from quarry_erp.models.invoices import (
    InvoiceCreate,
    InvoiceItem,
    InvoiceOut,
    InvoiceStatsOut,
    InvoiceStatus,
    NextInvoiceNumberOut,
    PaymentIn,
)
from quarry_erp.services.billing import (
    INITIAL_PAYMENT_NOTE,
    InvoiceConflictError,
    apply_payment,
    balance_due,
    business_now,
    compute_totals,
    derive_status,
    invoice_number_prefix,
    line_amount,
    next_invoice_number,
    payment_entry,
    resolve_net_weight,
)
from quarry_erp.services.rendering import Layout, render_invoice

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _row_to_invoice(row) -> InvoiceOut:
    return InvoiceOut(
        id=row["id"],
        invoice_number=row["invoice_number"],
        customer_name=row["customer_name"],
        invoice_date=row["invoice_date"],
        due_date=row["due_date"],
        empty_weight=row["empty_weight"],
        gross_weight=row["gross_weight"],
        net_weight=row["net_weight"],
        items=row["items"] or [],
        subtotal=row["subtotal"],
        tax_rate=row["tax_rate"],
        tax_amount=row["tax_amount"],
        total_amount=row["total_amount"],
        status=row["status"],
        amount_paid=row["amount_paid"],
        balance=balance_due(row["total_amount"], row["amount_paid"]),
        payment_mode=row["payment_mode"],
        payment_date=row["payment_date"],
        payment_history=row["payment_history"] or [],
        notes=row["notes"],
        terms_conditions=row["terms_conditions"],
        version=row["version"],
        created_at=row["created_at"],
    )


def _last_invoice_number(conn: Connection, year: int) -> Optional[str]:
    stmt = (
        select(invoices.c.invoice_number)
        .where(invoices.c.invoice_number.like(f"{invoice_number_prefix(year)}%"))
        .order_by(
            invoices.c.created_at.desc(),
            func.length(invoices.c.invoice_number).desc(),
            invoices.c.invoice_number.desc(),
        )
        .limit(1)
    )
    return conn.execute(stmt).scalar()


def _generate_invoice_number(conn: Connection, year: int) -> str:
    last = _last_invoice_number(conn, year)
    try:
        return next_invoice_number(year, last)
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc))


def _fetch_invoice(conn: Connection, invoice_number: str):
    stmt = select(invoices).where(invoices.c.invoice_number == invoice_number)
    return conn.execute(stmt).mappings().first()


def _get_invoice_or_404(engine: Engine, invoice_number: str) -> InvoiceOut:
    with store_errors("load invoice"):
        with engine.connect() as conn:
            row = _fetch_invoice(conn, invoice_number)

    if row is None:
        raise HTTPException(status_code=404, detail="Invoice not found")

    return _row_to_invoice(row)


@router.get("/", response_model=List[InvoiceOut])
def list_invoices(
    status: Optional[InvoiceStatus] = Query(default=None),
    search: Optional[str] = Query(
        default=None,
        description="Case-insensitive match on invoice number or customer name",
    ),
    engine: Engine = Depends(get_engine),
) -> List[InvoiceOut]:
    """
    Return invoices newest first, optionally filtered by status and search term.
    """
    stmt = select(invoices).order_by(invoices.c.invoice_date.desc(), invoices.c.created_at.desc())

    if status is not None:
        stmt = stmt.where(invoices.c.status == status)

    if search and search.strip():
        term = search.strip().lower()
        stmt = stmt.where(
            or_(
                func.lower(invoices.c.invoice_number).contains(term, autoescape=True),
                func.lower(invoices.c.customer_name).contains(term, autoescape=True),
            )
        )

    with store_errors("load invoices"):
        with engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

    return [_row_to_invoice(row) for row in rows]


@router.get("/stats", response_model=InvoiceStatsOut)
def invoice_stats(engine: Engine = Depends(get_engine)) -> InvoiceStatsOut:
    """
    Totals across all invoices: billed, collected, pending, and counts per status.
    """
    def status_count(value: str):
        return func.coalesce(func.sum(case((invoices.c.status == value, 1), else_=0)), 0)

    stmt = select(
        func.count().label("total_invoices"),
        func.coalesce(func.sum(invoices.c.total_amount), 0).label("total_amount"),
        func.coalesce(func.sum(invoices.c.amount_paid), 0).label("total_paid"),
        status_count("paid").label("paid_count"),
        status_count("partial").label("partial_count"),
        status_count("unpaid").label("unpaid_count"),
    ).select_from(invoices)

    with store_errors("load invoice statistics"):
        with engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()

    total_amount = row["total_amount"]
    total_paid = row["total_paid"]

    return InvoiceStatsOut(
        total_invoices=row["total_invoices"],
        total_amount=total_amount,
        total_paid=total_paid,
        total_pending=balance_due(total_amount, total_paid),
        paid_count=row["paid_count"],
        partial_count=row["partial_count"],
        unpaid_count=row["unpaid_count"],
    )


@router.get("/next-number", response_model=NextInvoiceNumberOut)
def preview_next_invoice_number(engine: Engine = Depends(get_engine)) -> NextInvoiceNumberOut:
    """
    The number the next invoice would get. Not reserved.
    """
    year = business_now().year
    with store_errors("generate invoice number"):
        with engine.connect() as conn:
            invoice_number = _generate_invoice_number(conn, year)
    return NextInvoiceNumberOut(invoice_number=invoice_number)


@router.post("/", response_model=InvoiceOut, status_code=201)
def create_invoice(payload: InvoiceCreate, engine: Engine = Depends(get_engine)) -> InvoiceOut:
    """
    Create an invoice from line items. Totals, tax and status are derived here;
    an initial payment, if any, becomes the first payment history entry.
    """
    now = business_now()

    net_weight = resolve_net_weight(payload.empty_weight, payload.gross_weight, payload.net_weight)
    lines = [item.model_dump() for item in payload.items]
    if net_weight is not None:
        # weighbridge net weight is what gets billed on the first line
        lines[0]["quantity"] = net_weight

    items = [
        InvoiceItem(**line, amount=line_amount(line["quantity"], line["rate"]))
        for line in lines
    ]
    totals = compute_totals([item.amount for item in items], payload.tax_rate)

    amount_paid = payload.amount_paid
    history = []
    if amount_paid > 0:
        history.append(
            payment_entry(amount_paid, payload.payment_mode, payload.payment_date, INITIAL_PAYMENT_NOTE)
        )

    row = {
        "customer_name": payload.customer_name,
        "invoice_date": payload.invoice_date or now.date(),
        "due_date": payload.due_date,
        "empty_weight": payload.empty_weight,
        "gross_weight": payload.gross_weight,
        "net_weight": net_weight,
        "items": [item.model_dump(mode="json") for item in items],
        "subtotal": totals.subtotal,
        "tax_rate": payload.tax_rate,
        "tax_amount": totals.tax_amount,
        "total_amount": totals.total,
        "status": derive_status(totals.total, amount_paid),
        "amount_paid": amount_paid,
        "payment_mode": payload.payment_mode or None,
        "payment_date": payload.payment_date,
        "payment_history": history,
        "notes": payload.notes or None,
        "terms_conditions": payload.terms_conditions or None,
        "version": 1,
    }

    with store_errors("create invoice"):
        try:
            with engine.begin() as conn:
                invoice_number = payload.invoice_number or _generate_invoice_number(conn, now.year)
                conn.execute(invoices.insert().values(invoice_number=invoice_number, **row))
                created = _fetch_invoice(conn, invoice_number)
        except IntegrityError as exc:
            logger.warning("Invoice number collision on create: %s", exc.orig)
            raise InvoiceConflictError(
                "Invoice number is already taken; generate a new number and retry"
            ) from exc

    logger.info(
        "Created invoice %s for %s: total=%s status=%s",
        invoice_number, payload.customer_name, totals.total, row["status"],
    )
    return _row_to_invoice(created)


@router.get("/{invoice_number}", response_model=InvoiceOut)
def get_invoice(invoice_number: str, engine: Engine = Depends(get_engine)) -> InvoiceOut:
    """
    Look up a single invoice by its invoice_number.
    """
    return _get_invoice_or_404(engine, invoice_number)


@router.post("/{invoice_number}/payments", response_model=InvoiceOut)
def record_payment(
    invoice_number: str,
    payload: PaymentIn,
    engine: Engine = Depends(get_engine),
) -> InvoiceOut:
    """
    Apply a payment. The write is conditional on the version that was read, so
    two concurrent payments cannot overwrite each other; the loser gets 409.
    """
    with store_errors("record payment"):
        with engine.begin() as conn:
            current = _fetch_invoice(conn, invoice_number)
            if current is None:
                raise HTTPException(status_code=404, detail="Invoice not found")

            if (
                payload.expected_amount_paid is not None
                and payload.expected_amount_paid != current["amount_paid"]
            ):
                raise InvoiceConflictError(
                    "Invoice was paid by someone else since it was loaded; reload and retry"
                )

            amount = payload.amount
            if amount is None:
                amount = balance_due(current["total_amount"], current["amount_paid"])
                if amount <= 0:
                    raise HTTPException(
                        status_code=400,
                        detail="Invoice has no outstanding balance; specify an amount",
                    )

            payment_date = payload.payment_date or business_now().date()
            outcome = apply_payment(
                current["total_amount"],
                current["amount_paid"],
                current["payment_history"],
                payment_entry(amount, payload.payment_mode, payment_date, payload.notes),
            )

            result = conn.execute(
                update(invoices)
                .where(
                    invoices.c.id == current["id"],
                    invoices.c.version == current["version"],
                )
                .values(
                    amount_paid=outcome.amount_paid,
                    status=outcome.status,
                    payment_mode=payload.payment_mode,
                    payment_date=payment_date,
                    payment_history=outcome.payment_history,
                    version=current["version"] + 1,
                )
            )
            if result.rowcount != 1:
                logger.warning("Stale payment on invoice %s (version %s)", invoice_number, current["version"])
                raise InvoiceConflictError(
                    "Invoice was modified concurrently; reload and retry"
                )

            updated = _fetch_invoice(conn, invoice_number)

    logger.info(
        "Recorded payment of %s on %s: amount_paid=%s status=%s",
        amount, invoice_number, outcome.amount_paid, outcome.status,
    )
    return _row_to_invoice(updated)


@router.get("/{invoice_number}/print", response_class=HTMLResponse)
def print_invoice(
    invoice_number: str,
    layout: Layout = Query("a4", description="a4 | 80mm | 58mm"),
    show_company_name: bool = Query(True),
    engine: Engine = Depends(get_engine),
) -> HTMLResponse:
    """
    Printable HTML document; opens the print dialog when loaded.
    """
    invoice = _get_invoice_or_404(engine, invoice_number)
    return HTMLResponse(render_invoice(invoice, layout, show_company_name))
