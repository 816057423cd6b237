import random
from decimal import Decimal

from quarry_erp.services.aggregation import (
    count_where,
    format_label,
    grouped_sum,
    percentage_of_total,
    safe_average,
    top_n,
    total_of,
)

RECORDS = [
    {"category": "fuel", "amount": Decimal("1200.50")},
    {"category": "salaries", "amount": Decimal("45000")},
    {"category": "fuel", "amount": Decimal("800.25")},
    {"category": "explosives", "amount": Decimal("15000")},
    {"category": "maintenance", "amount": Decimal("3000")},
    {"category": "salaries", "amount": Decimal("5000")},
    {"category": "royalty", "amount": Decimal("7000")},
    {"category": "power", "amount": Decimal("9000.10")},
]


class TestGroupedSum:

    def test_sums_per_key_in_first_seen_order(self):
        sums = grouped_sum(RECORDS, "category", "amount")

        assert list(sums) == ["fuel", "salaries", "explosives", "maintenance", "royalty", "power"]
        assert sums["fuel"] == Decimal("2000.75")
        assert sums["salaries"] == Decimal("50000")

    def test_independent_of_record_order(self):
        expected = grouped_sum(RECORDS, "category", "amount")
        rng = random.Random(7)
        for _ in range(10):
            shuffled = RECORDS[:]
            rng.shuffle(shuffled)
            assert dict(grouped_sum(shuffled, "category", "amount")) == dict(expected)

    def test_accepts_callables_and_missing_values(self):
        rows = [{"k": "a", "v": None}, {"k": "a", "v": 2.5}, {"k": "b", "v": 1}]
        sums = grouped_sum(rows, lambda r: r["k"].upper(), "v")
        assert sums == {"A": Decimal("2.5"), "B": Decimal("1")}

    def test_total_of(self):
        assert total_of(RECORDS, "amount") == Decimal("86000.85")
        assert total_of([], "amount") == 0


class TestTopN:

    def test_at_most_five_descending(self):
        top = top_n(grouped_sum(RECORDS, "category", "amount"))

        assert len(top) == 5
        values = [v for _, v in top]
        assert values == sorted(values, reverse=True)
        assert top[0] == ("salaries", Decimal("50000"))

    def test_ties_keep_key_order(self):
        sums = {"b": Decimal("10"), "a": Decimal("10"), "c": Decimal("20")}
        assert [k for k, _ in top_n(sums)] == ["c", "b", "a"]

    def test_fewer_keys_than_n(self):
        assert top_n({"only": Decimal("1")}, 5) == [("only", Decimal("1"))]
        assert top_n({}, 5) == []


class TestRatios:

    def test_percentage_of_total(self):
        assert percentage_of_total(Decimal("25"), Decimal("200")) == 12.5

    def test_percentage_of_zero_total_is_zero(self):
        assert percentage_of_total(Decimal("25"), Decimal("0")) == 0.0
        assert percentage_of_total(0, 0) == 0.0

    def test_safe_average(self):
        assert safe_average(Decimal("10"), 4) == Decimal("2.5")
        assert safe_average(Decimal("10"), 0) == 0

    def test_count_where(self):
        rows = [{"t": "income"}, {"t": "expense"}, {"t": "income"}]
        assert count_where(rows, lambda r: r["t"] == "income") == 2


class TestLabels:

    def test_format_label(self):
        assert format_label("crushed_stone_20mm") == "Crushed Stone 20mm"
        assert format_label("fuel") == "Fuel"
        assert format_label("") == ""
