# quarry_erp/models/invoices.py

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from quarry_erp.core.config import settings

InvoiceStatus = Literal["unpaid", "partial", "paid"]


class InvoiceItemIn(BaseModel):
    material: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., ge=0, decimal_places=3)
    rate: Decimal = Field(..., ge=0, decimal_places=2, description="Per-unit rate, tax included")


class InvoiceItem(InvoiceItemIn):
    amount: Decimal


class PaymentEvent(BaseModel):
    amount: Decimal
    payment_mode: Optional[str] = None
    payment_date: Optional[date] = None
    notes: Optional[str] = None
    recorded_at: datetime


class InvoiceCreate(BaseModel):
    invoice_number: Optional[str] = Field(
        default=None,
        pattern=r"^INV-\d{4}-\d{3,}$",
        description="Leave empty to take the next number in this year's sequence",
    )
    customer_name: str = Field(..., min_length=1)
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    empty_weight: Optional[Decimal] = Field(default=None, ge=0, decimal_places=3)
    gross_weight: Optional[Decimal] = Field(default=None, ge=0, decimal_places=3)
    net_weight: Optional[Decimal] = Field(default=None, ge=0, decimal_places=3)
    items: List[InvoiceItemIn] = Field(..., min_length=1)
    tax_rate: Decimal = Field(default=settings.DEFAULT_TAX_RATE, ge=0, decimal_places=2)
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    payment_mode: Optional[str] = None
    payment_date: Optional[date] = None
    notes: Optional[str] = None
    terms_conditions: Optional[str] = settings.DEFAULT_TERMS

    @field_validator("customer_name")
    @classmethod
    def _strip_customer_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("customer_name must not be blank")
        return value

    @model_validator(mode="after")
    def _check_weighbridge_readings(self) -> "InvoiceCreate":
        if (
            self.empty_weight is not None
            and self.gross_weight is not None
            and self.gross_weight < self.empty_weight
        ):
            raise ValueError("gross_weight must not be less than empty_weight")
        return self


class PaymentIn(BaseModel):
    amount: Optional[Decimal] = Field(
        default=None,
        gt=0,
        decimal_places=2,
        description="Defaults to the outstanding balance",
    )
    payment_mode: str = "cash"
    payment_date: Optional[date] = None
    notes: Optional[str] = None
    expected_amount_paid: Optional[Decimal] = Field(
        default=None,
        description="amount_paid as last read by the caller; rejected with 409 if it changed",
    )


class InvoiceOut(BaseModel):
    id: str
    invoice_number: str
    customer_name: str
    invoice_date: date
    due_date: Optional[date] = None
    empty_weight: Optional[Decimal] = None
    gross_weight: Optional[Decimal] = None
    net_weight: Optional[Decimal] = None
    items: List[InvoiceItem]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: InvoiceStatus
    amount_paid: Decimal
    balance: Decimal
    payment_mode: Optional[str] = None
    payment_date: Optional[date] = None
    payment_history: List[PaymentEvent] = []
    notes: Optional[str] = None
    terms_conditions: Optional[str] = None
    version: int
    created_at: datetime

    class Config:
        from_attributes = True


class InvoiceStatsOut(BaseModel):
    total_invoices: int
    total_amount: Decimal
    total_paid: Decimal
    total_pending: Decimal
    paid_count: int
    partial_count: int
    unpaid_count: int


class NextInvoiceNumberOut(BaseModel):
    invoice_number: str
