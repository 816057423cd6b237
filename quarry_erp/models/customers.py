# quarry_erp/models/customers.py

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from quarry_erp.models.invoices import InvoiceStatus

CustomerType = Literal[
    "Retail",
    "Wholesale",
    "Contractor",
    "Government",
    "Reseller",
    "Other",
]

PaymentTerms = Literal[
    "Net 7",
    "Net 15",
    "Net 30",
    "Net 60",
    "Due on Receipt",
    "Custom",
]


class CustomerBase(BaseModel):
    company_name: str
    contact_person: str
    email: Optional[EmailStr] = None
    phone: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = "India"
    tax_id: Optional[str] = None
    customer_type: CustomerType = "Retail"
    payment_terms: PaymentTerms = "Net 30"
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None


class CustomerIn(CustomerBase):
    @field_validator("company_name", "contact_person", "phone")
    @classmethod
    def _required(cls, value: str, info) -> str:
        value = value.strip()
        if not value:
            raise ValueError(f"{info.field_name} is required")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CustomerOut(CustomerBase):
    id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomerPage(BaseModel):
    items: List[CustomerOut]
    total: int
    page: int
    page_size: int
    total_pages: int


class CustomerInvoice(BaseModel):
    invoice_number: str
    invoice_date: date
    due_date: Optional[date] = None
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: InvoiceStatus


class CustomerInvoicesResponse(BaseModel):
    customer_id: str
    company_name: str
    since: date
    invoices: List[CustomerInvoice]
    total_balance: Decimal
