# quarry_erp/db/schema.py

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    MetaData, Table, Column, Integer, String,
    Numeric, Date, DateTime, CheckConstraint, Text, JSON
)

metadata = MetaData()


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


customers = Table(
    "customers",
    metadata,
    Column("id", String(36), primary_key=True, default=_new_id),
    Column("company_name", String, nullable=False),
    Column("contact_person", String, nullable=False),
    Column("email", String),
    Column("phone", String, nullable=False),
    Column("address", Text),
    Column("city", String),
    Column("state", String),
    Column("postal_code", String),
    Column("country", String),
    Column("tax_id", String),
    Column("customer_type", String, nullable=False),
    Column("payment_terms", String, nullable=False),
    Column("credit_limit", Numeric(18, 2), nullable=False, default=0),
    Column("notes", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow),
    CheckConstraint("credit_limit >= 0", name="ck_customers_credit_limit_nonneg"),
)

invoices = Table(
    "invoices",
    metadata,
    Column("id", String(36), primary_key=True, default=_new_id),
    Column("invoice_number", Text, unique=True, nullable=False),
    # plain text on purpose: an invoice keeps the name it was issued under
    Column("customer_name", Text, nullable=False),
    Column("invoice_date", Date, nullable=False),
    Column("due_date", Date),
    Column("empty_weight", Numeric(12, 3)),
    Column("gross_weight", Numeric(12, 3)),
    Column("net_weight", Numeric(12, 3)),
    Column("items", JSON, nullable=False),
    Column("subtotal", Numeric(18, 2), nullable=False),
    Column("tax_rate", Numeric(5, 2), nullable=False),
    # quantity (3 dp) x rate (2 dp) is kept exact, so these carry 5 dp
    Column("tax_amount", Numeric(20, 5), nullable=False),
    Column("total_amount", Numeric(20, 5), nullable=False),
    Column("status", String(16), nullable=False),
    Column("amount_paid", Numeric(20, 5), nullable=False, default=0),
    Column("payment_mode", String),
    Column("payment_date", Date),
    Column("payment_history", JSON, nullable=False, default=list),
    Column("notes", Text),
    Column("terms_conditions", Text),
    Column("version", Integer, nullable=False, default=1),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
    CheckConstraint("total_amount >= 0", name="ck_invoices_total_amount_nonneg"),
    CheckConstraint("amount_paid >= 0", name="ck_invoices_amount_paid_nonneg"),
    CheckConstraint("status IN ('unpaid', 'partial', 'paid')", name="ck_invoices_status"),
)

# ---- Report sources (read-only for the API) ----

accounts = Table(
    "accounts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("transaction_date", Date, nullable=False),
    Column("transaction_type", String(16), nullable=False),
    Column("category", String, nullable=False),
    Column("payment_method", String, nullable=False),
    Column("amount", Numeric(18, 2), nullable=False),
    Column("description", Text),
)

production_stock = Table(
    "production_stock",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("stock_date", Date, nullable=False),
    Column("material_type", String, nullable=False),
    Column("quantity", Numeric(14, 3), nullable=False),
    Column("unit", String),
    Column("location", String),
    Column("quality_grade", String),
)

drilling = Table(
    "drilling",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("date", Date, nullable=False),
    Column("holes_drilled", Integer, nullable=False, default=0),
    Column("depth", Numeric(10, 2), nullable=False, default=0),
)

blasting = Table(
    "blasting",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("date", Date, nullable=False),
    Column("quantity", Numeric(14, 3), nullable=False, default=0),
)

loading = Table(
    "loading",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("date", Date, nullable=False),
    Column("quantity", Numeric(14, 3), nullable=False, default=0),
)

transport = Table(
    "transport",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("date", Date, nullable=False),
    Column("quantity", Numeric(14, 3), nullable=False, default=0),
)

dispatch_list = Table(
    "dispatch_list",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("dispatch_date", Date, nullable=False),
    Column("material_type", String, nullable=False),
    Column("quantity_dispatched", Numeric(14, 3), nullable=False),
    Column("customer_name", String, nullable=False),
    Column("delivery_status", String(32), nullable=False),
)
