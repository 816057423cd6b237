# quarry_erp/services/billing.py
"""
Invoice arithmetic and the payment lifecycle.

Rates on invoice lines already include tax, so the tax component is
extracted from the total instead of being added on top of a subtotal.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

from quarry_erp.core.config import settings

CENT = Decimal("0.01")
ZERO = Decimal("0")

INITIAL_PAYMENT_NOTE = "Initial payment on invoice creation"


class InvoiceConflictError(Exception):
    """The invoice changed (or the number was taken) between read and write."""

    retryable = True


@dataclass(slots=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


@dataclass(slots=True)
class PaymentOutcome:
    amount_paid: Decimal
    status: str
    payment_history: List[dict]


def business_now() -> datetime:
    return datetime.now(ZoneInfo(settings.TIMEZONE))


# ---- Invoice numbers ----

def invoice_number_prefix(year: int) -> str:
    return f"INV-{year}-"


def parse_invoice_sequence(invoice_number: str) -> int:
    parts = invoice_number.split("-")
    if len(parts) != 3 or not parts[2].isdigit():
        raise ValueError(f"Unrecognised invoice number {invoice_number!r}")
    return int(parts[2])


def next_invoice_number(year: int, last_invoice_number: Optional[str]) -> str:
    """
    Next number in the year's sequence, e.g. INV-2025-007 -> INV-2025-008.

    The counter is zero padded to three digits and simply widens past 999.
    """
    next_seq = 1
    if last_invoice_number:
        next_seq = parse_invoice_sequence(last_invoice_number) + 1
    return f"{invoice_number_prefix(year)}{next_seq:03d}"


# ---- Line items and totals ----

def line_amount(quantity: Decimal, rate: Decimal) -> Decimal:
    # exact product; only the subtotal is rounded to paise
    return Decimal(quantity) * Decimal(rate)


def resolve_net_weight(
    empty_weight: Optional[Decimal],
    gross_weight: Optional[Decimal],
    net_weight: Optional[Decimal],
) -> Optional[Decimal]:
    if empty_weight is not None and gross_weight is not None:
        return Decimal(gross_weight) - Decimal(empty_weight)
    return net_weight


def compute_totals(amounts: Sequence[Decimal], tax_rate: Decimal) -> InvoiceTotals:
    total = sum((Decimal(a) for a in amounts), ZERO)
    divisor = 1 + Decimal(tax_rate) / 100
    subtotal = (total / divisor).quantize(CENT, rounding=ROUND_HALF_UP)
    return InvoiceTotals(subtotal=subtotal, tax_amount=total - subtotal, total=total)


# ---- Status and payments ----

def balance_due(total_amount: Decimal, amount_paid: Decimal) -> Decimal:
    return Decimal(total_amount) - Decimal(amount_paid)


def derive_status(total_amount: Decimal, amount_paid: Decimal) -> str:
    if balance_due(total_amount, amount_paid) <= 0:
        return "paid"
    if amount_paid > 0:
        return "partial"
    return "unpaid"


def payment_entry(
    amount: Decimal,
    payment_mode: Optional[str],
    payment_date: Optional[date],
    notes: Optional[str],
    recorded_at: Optional[datetime] = None,
) -> dict:
    recorded_at = recorded_at or datetime.now(timezone.utc)
    return {
        "amount": str(amount),
        "payment_mode": payment_mode,
        "payment_date": payment_date.isoformat() if payment_date else None,
        "notes": notes,
        "recorded_at": recorded_at.isoformat(),
    }


def apply_payment(
    total_amount: Decimal,
    amount_paid: Decimal,
    payment_history: Optional[List[dict]],
    entry: dict,
) -> PaymentOutcome:
    new_amount_paid = Decimal(amount_paid) + Decimal(entry["amount"])
    # history is append-only; never mutate the caller's list
    history = list(payment_history or [])
    history.append(entry)
    return PaymentOutcome(
        amount_paid=new_amount_paid,
        status=derive_status(total_amount, new_amount_paid),
        payment_history=history,
    )
