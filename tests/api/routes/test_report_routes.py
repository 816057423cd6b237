import time
from datetime import date
from decimal import Decimal

from quarry_erp.api import reports as reports_api
from quarry_erp.db.schema import (
    accounts,
    blasting,
    dispatch_list,
    drilling,
    loading,
    production_stock,
    transport,
)
from tests.utils.test_utils import (
    as_decimal,
    assert_response_error,
    assert_response_success,
    insert_rows,
)


def _seed_accounts(engine):
    insert_rows(engine, accounts, [
        {"transaction_date": date(2025, 1, 5), "transaction_type": "income", "category": "stone_sales", "payment_method": "bank_transfer", "amount": Decimal("100000")},
        {"transaction_date": date(2025, 1, 9), "transaction_type": "expense", "category": "diesel", "payment_method": "cash", "amount": Decimal("30000")},
        {"transaction_date": date(2025, 2, 1), "transaction_type": "expense", "category": "salaries", "payment_method": "bank_transfer", "amount": Decimal("50000")},
    ])


class TestAccountingRoute:
    """Tests for GET /reports/accounting"""

    def test_full_history(self, client, engine):
        _seed_accounts(engine)

        response = client.get("/reports/accounting")

        assert_response_success(response)
        data = response.json()
        assert as_decimal(data["total_income"]) == Decimal("100000")
        assert as_decimal(data["total_expense"]) == Decimal("80000")
        assert as_decimal(data["net_balance"]) == Decimal("20000")
        assert [e["key"] for e in data["top_expenses"]] == ["salaries", "diesel"]

    def test_date_window_is_inclusive(self, client, engine):
        _seed_accounts(engine)

        response = client.get(
            "/reports/accounting",
            params={"start_date": "2025-01-05", "end_date": "2025-01-09"},
        )

        data = response.json()
        assert data["income_count"] == 1
        assert data["expense_count"] == 1
        assert as_decimal(data["total_expense"]) == Decimal("30000")

    def test_inverted_range(self, client):
        response = client.get(
            "/reports/accounting",
            params={"start_date": "2025-02-01", "end_date": "2025-01-01"},
        )
        assert_response_error(response, 400)

    def test_empty_store(self, client):
        data = client.get("/reports/accounting").json()
        assert as_decimal(data["total_income"]) == 0
        assert data["category_breakdown"] == []


class TestProductionRoute:

    def test_material_share(self, client, engine):
        insert_rows(engine, production_stock, [
            {"stock_date": date(2025, 3, 1), "material_type": "20mm_aggregate", "quantity": Decimal("300")},
            {"stock_date": date(2025, 3, 2), "material_type": "m_sand", "quantity": Decimal("100")},
        ])

        response = client.get("/reports/production")

        assert_response_success(response)
        shares = {e["key"]: e["percentage"] for e in response.json()["materials"]}
        assert shares == {"20mm_aggregate": 75.0, "m_sand": 25.0}


class TestQuarryRoute:

    def test_combines_four_sources(self, client, engine):
        insert_rows(engine, drilling, [{"date": date(2025, 4, 1), "holes_drilled": 10, "depth": Decimal("6")}])
        insert_rows(engine, blasting, [{"date": date(2025, 4, 1), "quantity": Decimal("400")}])
        insert_rows(engine, loading, [{"date": date(2025, 4, 2), "quantity": Decimal("350")}])
        insert_rows(engine, transport, [
            {"date": date(2025, 4, 2), "quantity": Decimal("200")},
            {"date": date(2025, 5, 2), "quantity": Decimal("100")},
        ])

        response = client.get("/reports/quarry", params={"end_date": "2025-04-30"})

        assert_response_success(response)
        data = response.json()
        assert data["total_holes_drilled"] == 10
        assert as_decimal(data["total_depth_drilled"]) == Decimal("60")
        assert as_decimal(data["total_blasted"]) == Decimal("400")
        assert as_decimal(data["total_loaded"]) == Decimal("350")
        assert as_decimal(data["total_transported"]) == Decimal("200")
        assert data["transport_count"] == 1

    def test_slow_store_times_out(self, client, monkeypatch):
        original_fetch = reports_api._fetch_dated

        def slow_fetch(*args, **kwargs):
            time.sleep(0.5)
            return original_fetch(*args, **kwargs)

        monkeypatch.setattr(reports_api, "_fetch_dated", slow_fetch)
        monkeypatch.setattr(reports_api.settings, "STORE_TIMEOUT_SECONDS", 0.05)

        response = client.get("/reports/quarry")

        assert_response_error(response, 504)
        assert response.json()["retryable"] is True

    def test_failed_read_fails_the_report(self, broken_client):
        response = broken_client.get("/reports/quarry")
        assert_response_error(response, 500)


class TestSalesRoute:

    def test_delivery_rate(self, client, engine):
        insert_rows(engine, dispatch_list, [
            {"dispatch_date": date(2025, 6, 1), "material_type": "20mm", "quantity_dispatched": Decimal("30"), "customer_name": "Acme", "delivery_status": "delivered"},
            {"dispatch_date": date(2025, 6, 2), "material_type": "40mm", "quantity_dispatched": Decimal("10"), "customer_name": "Birla", "delivery_status": "in_transit"},
        ])

        response = client.get("/reports/sales")

        assert_response_success(response)
        data = response.json()
        assert data["delivery_rate"] == 75.0
        assert data["unique_customers"] == 2
        assert [e["key"] for e in data["top_customers"]] == ["Acme", "Birla"]

    def test_store_failure(self, broken_client):
        response = broken_client.get("/reports/sales")
        assert_response_error(response, 500)
        assert response.json()["retryable"] is False
