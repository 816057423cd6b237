# quarry_erp/services/rendering.py

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Literal, Optional

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup, escape

from quarry_erp.core.config import settings
from quarry_erp.models.invoices import InvoiceOut
from quarry_erp.services.billing import business_now

Layout = Literal["a4", "80mm", "58mm"]

TEMPLATES = {
    "a4": "invoice_a4.html",
    "80mm": "invoice_80mm.html",
    "58mm": "invoice_58mm.html",
}

CENT = Decimal("0.01")


# ---- Template filters ----

def group_indian(digits: str) -> str:
    """12345678 -> 1,23,45,678"""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_inr(value, symbol: str = "₹") -> str:
    try:
        amount = Decimal(value if value is not None else 0).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        return str(value)
    sign = "-" if amount < 0 else ""
    whole, frac = f"{abs(amount):.2f}".split(".")
    return f"{sign}{symbol}{group_indian(whole)}.{frac}"


def format_quantity(value) -> str:
    if value is None:
        return "0"
    return format(Decimal(value).normalize(), "f")


def format_date(value: Optional[date], short_year: bool = False) -> str:
    if value is None:
        return "-"
    return value.strftime("%d/%m/%y" if short_year else "%d/%m/%Y")


def pad_line(left: str, right: str, width: int) -> str:
    """Left and right text on one fixed-width line, at least one space apart."""
    spaces = width - len(left) - len(right)
    return left + " " * max(1, spaces) + right


def nl2br(text: Optional[str]) -> Markup:
    if not text:
        return Markup("")
    return Markup("<br/>").join(escape(line) for line in text.split("\n"))


_env = Environment(
    loader=PackageLoader("quarry_erp", "templates"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["inr"] = format_inr
_env.filters["qty"] = format_quantity
_env.filters["dmy"] = format_date
_env.filters["nl2br"] = nl2br
_env.globals["pad_line"] = pad_line


def render_invoice(
    invoice: InvoiceOut,
    layout: Layout = "a4",
    show_company_name: bool = True,
    printed_at: Optional[datetime] = None,
) -> str:
    """
    Printable HTML for an invoice. All layouts carry the same content and
    differ only in page size, typography and truncation of long fields.
    """
    if layout not in TEMPLATES:
        raise ValueError(f"Unknown print layout {layout!r}")
    template = _env.get_template(TEMPLATES[layout])
    return template.render(
        invoice=invoice,
        company_name=settings.COMPANY_NAME if show_company_name else None,
        printed_at=printed_at or business_now(),
    )
