# quarry_erp/models/reports.py

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class BreakdownEntry(BaseModel):
    key: str
    label: str
    value: Decimal
    percentage: float


class ReportWindow(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class AccountingReport(ReportWindow):
    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal
    transaction_count: int
    income_count: int
    expense_count: int
    average_income: Decimal
    average_expense: Decimal
    category_count: int
    category_breakdown: List[BreakdownEntry]
    payment_method_breakdown: List[BreakdownEntry]
    top_expenses: List[BreakdownEntry]


class ProductionReport(ReportWindow):
    total_quantity: Decimal
    record_count: int
    materials: List[BreakdownEntry]
    top_materials: List[BreakdownEntry]


class QuarryReport(ReportWindow):
    total_holes_drilled: int
    total_depth_drilled: Decimal
    total_blasted: Decimal
    total_loaded: Decimal
    total_transported: Decimal
    drilling_count: int
    blasting_count: int
    loading_count: int
    transport_count: int
    average_holes_per_drilling: Decimal
    average_blasted: Decimal
    average_loaded: Decimal
    average_transported: Decimal


class SalesReport(ReportWindow):
    total_dispatched: Decimal
    total_delivered: Decimal
    total_pending: Decimal
    dispatch_count: int
    delivered_count: int
    unique_customers: int
    delivery_rate: float
    average_per_dispatch: Decimal
    material_sales: List[BreakdownEntry]
    customer_sales: List[BreakdownEntry]
    top_materials: List[BreakdownEntry]
    top_customers: List[BreakdownEntry]
