from datetime import date
from decimal import Decimal

from quarry_erp.services.reports import (
    build_accounting_report,
    build_production_report,
    build_quarry_report,
    build_sales_report,
)


def _account(kind, category, method, amount):
    return {
        "transaction_date": date(2025, 2, 1),
        "transaction_type": kind,
        "category": category,
        "payment_method": method,
        "amount": Decimal(amount),
    }


class TestAccountingReport:

    def test_income_expense_and_breakdowns(self):
        rows = [
            _account("income", "stone_sales", "bank_transfer", "100000"),
            _account("income", "stone_sales", "cash", "20000"),
            _account("expense", "diesel", "cash", "30000"),
            _account("expense", "salaries", "bank_transfer", "50000"),
            _account("expense", "diesel", "upi", "20000"),
        ]

        report = build_accounting_report(rows)

        assert report.total_income == Decimal("120000")
        assert report.total_expense == Decimal("100000")
        assert report.net_balance == Decimal("20000")
        assert report.income_count == 2
        assert report.expense_count == 3
        assert report.average_income == Decimal("60000.00")
        assert report.average_expense == Decimal("33333.33")
        assert report.category_count == 3

        top = [(e.key, e.value, e.percentage) for e in report.top_expenses]
        assert top == [
            ("diesel", Decimal("50000"), 50.0),
            ("salaries", Decimal("50000"), 50.0),
        ]
        assert report.top_expenses[0].label == "Diesel"

        methods = {e.key: e.percentage for e in report.payment_method_breakdown}
        assert methods["bank_transfer"] == round(150000 / 220000 * 100, 2)

    def test_empty_period(self):
        report = build_accounting_report([])

        assert report.total_income == 0
        assert report.average_income == 0
        assert report.top_expenses == []
        assert report.category_breakdown == []


class TestProductionReport:

    def test_material_share(self):
        rows = [
            {"material_type": "20mm_aggregate", "quantity": Decimal("300")},
            {"material_type": "m_sand", "quantity": Decimal("100")},
            {"material_type": "20mm_aggregate", "quantity": Decimal("100")},
        ]

        report = build_production_report(rows)

        assert report.total_quantity == Decimal("500")
        assert report.record_count == 3
        shares = {e.key: e.percentage for e in report.materials}
        assert shares == {"20mm_aggregate": 80.0, "m_sand": 20.0}
        assert report.top_materials[0].label == "20mm Aggregate"

    def test_zero_production_has_zero_shares(self):
        rows = [{"material_type": "dust", "quantity": Decimal("0")}]
        report = build_production_report(rows)
        assert report.materials[0].percentage == 0.0


class TestQuarryReport:

    def test_totals_and_averages(self):
        drilling = [
            {"holes_drilled": 10, "depth": Decimal("6")},
            {"holes_drilled": 5, "depth": Decimal("8")},
        ]
        blasting = [{"quantity": Decimal("400")}, {"quantity": Decimal("200")}]
        loading = [{"quantity": Decimal("150")}]
        transport = []

        report = build_quarry_report(drilling, blasting, loading, transport)

        assert report.total_holes_drilled == 15
        assert report.total_depth_drilled == Decimal("100")
        assert report.total_blasted == Decimal("600")
        assert report.total_loaded == Decimal("150")
        assert report.total_transported == 0
        assert report.average_holes_per_drilling == Decimal("7.50")
        assert report.average_blasted == Decimal("300.00")
        assert report.average_transported == 0
        assert report.transport_count == 0


class TestSalesReport:

    def test_dispatch_summary(self):
        rows = [
            {"material_type": "20mm", "quantity_dispatched": Decimal("30"), "customer_name": "Acme", "delivery_status": "delivered"},
            {"material_type": "40mm", "quantity_dispatched": Decimal("10"), "customer_name": "Birla", "delivery_status": "in_transit"},
            {"material_type": "20mm", "quantity_dispatched": Decimal("20"), "customer_name": "Acme", "delivery_status": "delivered"},
            {"material_type": "dust", "quantity_dispatched": Decimal("40"), "customer_name": "Chola", "delivery_status": "pending"},
        ]

        report = build_sales_report(rows)

        assert report.total_dispatched == Decimal("100")
        assert report.total_delivered == Decimal("50")
        assert report.total_pending == Decimal("50")
        assert report.delivered_count == 2
        assert report.delivery_rate == 50.0
        assert report.unique_customers == 3
        assert report.average_per_dispatch == Decimal("25.00")
        assert [e.key for e in report.top_customers] == ["Acme", "Chola", "Birla"]
        assert report.top_materials[0].percentage == 50.0

    def test_no_dispatches(self):
        report = build_sales_report([])
        assert report.delivery_rate == 0.0
        assert report.unique_customers == 0
        assert report.top_customers == []
