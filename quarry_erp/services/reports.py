# quarry_erp/services/reports.py
"""
Summaries for the four business reports. Every builder is a pure function of
rows that were already fetched from the store.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional, Sequence

from quarry_erp.models.reports import (
    AccountingReport,
    BreakdownEntry,
    ProductionReport,
    QuarryReport,
    SalesReport,
)
from quarry_erp.services.aggregation import (
    as_decimal,
    count_where,
    format_label,
    grouped_sum,
    percentage_of_total,
    safe_average,
    top_n,
    total_of,
)

CENT = Decimal("0.01")

Rows = Sequence[Mapping]


def _round(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _entries(pairs, total) -> list:
    return [
        BreakdownEntry(
            key=key,
            label=format_label(key),
            value=value,
            percentage=round(percentage_of_total(value, total), 2),
        )
        for key, value in pairs
    ]


def _is_income(row) -> bool:
    return row["transaction_type"] == "income"


def build_accounting_report(
    rows: Rows,
    top: int = 5,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> AccountingReport:
    income_rows = [r for r in rows if _is_income(r)]
    expense_rows = [r for r in rows if not _is_income(r)]

    total_income = total_of(income_rows, "amount")
    total_expense = total_of(expense_rows, "amount")

    by_category = grouped_sum(rows, "category", "amount")
    by_method = grouped_sum(rows, "payment_method", "amount")
    expense_by_category = grouped_sum(expense_rows, "category", "amount")

    volume = total_income + total_expense

    return AccountingReport(
        start_date=start_date,
        end_date=end_date,
        total_income=total_income,
        total_expense=total_expense,
        net_balance=total_income - total_expense,
        transaction_count=len(rows),
        income_count=len(income_rows),
        expense_count=len(expense_rows),
        average_income=_round(safe_average(total_income, len(income_rows))),
        average_expense=_round(safe_average(total_expense, len(expense_rows))),
        category_count=len(by_category),
        category_breakdown=_entries(by_category.items(), volume),
        payment_method_breakdown=_entries(by_method.items(), volume),
        top_expenses=_entries(top_n(expense_by_category, top), total_expense),
    )


def build_production_report(
    rows: Rows,
    top: int = 5,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> ProductionReport:
    by_material = grouped_sum(rows, "material_type", "quantity")
    total_quantity = total_of(rows, "quantity")

    return ProductionReport(
        start_date=start_date,
        end_date=end_date,
        total_quantity=total_quantity,
        record_count=len(rows),
        materials=_entries(by_material.items(), total_quantity),
        top_materials=_entries(top_n(by_material, top), total_quantity),
    )


def build_quarry_report(
    drilling_rows: Rows,
    blasting_rows: Rows,
    loading_rows: Rows,
    transport_rows: Rows,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> QuarryReport:
    total_holes = sum(int(r["holes_drilled"] or 0) for r in drilling_rows)
    # depth is recorded per hole
    total_depth = total_of(
        drilling_rows,
        lambda r: as_decimal(r["depth"]) * int(r["holes_drilled"] or 0),
    )
    total_blasted = total_of(blasting_rows, "quantity")
    total_loaded = total_of(loading_rows, "quantity")
    total_transported = total_of(transport_rows, "quantity")

    return QuarryReport(
        start_date=start_date,
        end_date=end_date,
        total_holes_drilled=total_holes,
        total_depth_drilled=total_depth,
        total_blasted=total_blasted,
        total_loaded=total_loaded,
        total_transported=total_transported,
        drilling_count=len(drilling_rows),
        blasting_count=len(blasting_rows),
        loading_count=len(loading_rows),
        transport_count=len(transport_rows),
        average_holes_per_drilling=_round(safe_average(total_holes, len(drilling_rows))),
        average_blasted=_round(safe_average(total_blasted, len(blasting_rows))),
        average_loaded=_round(safe_average(total_loaded, len(loading_rows))),
        average_transported=_round(safe_average(total_transported, len(transport_rows))),
    )


def build_sales_report(
    rows: Rows,
    top: int = 5,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> SalesReport:
    by_material = grouped_sum(rows, "material_type", "quantity_dispatched")
    by_customer = grouped_sum(rows, "customer_name", "quantity_dispatched")

    total_dispatched = total_of(rows, "quantity_dispatched")
    total_delivered = total_of(
        [r for r in rows if r["delivery_status"] == "delivered"],
        "quantity_dispatched",
    )
    delivered_count = count_where(rows, lambda r: r["delivery_status"] == "delivered")

    return SalesReport(
        start_date=start_date,
        end_date=end_date,
        total_dispatched=total_dispatched,
        total_delivered=total_delivered,
        total_pending=total_dispatched - total_delivered,
        dispatch_count=len(rows),
        delivered_count=delivered_count,
        unique_customers=len(by_customer),
        delivery_rate=round(percentage_of_total(total_delivered, total_dispatched), 2),
        average_per_dispatch=_round(safe_average(total_dispatched, len(rows))),
        material_sales=_entries(by_material.items(), total_dispatched),
        customer_sales=_entries(by_customer.items(), total_dispatched),
        top_materials=_entries(top_n(by_material, top), total_dispatched),
        top_customers=_entries(top_n(by_customer, top), total_dispatched),
    )
