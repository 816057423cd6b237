# quarry_erp/services/aggregation.py

from decimal import Decimal
from operator import itemgetter
from typing import Any, Callable, Dict, Iterable, List, Mapping, Tuple, Union

Extractor = Union[str, Callable[[Any], Any]]

ZERO = Decimal("0")


def _getter(field: Extractor) -> Callable[[Any], Any]:
    return field if callable(field) else itemgetter(field)


def as_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def total_of(records: Iterable, value: Extractor) -> Decimal:
    get_value = _getter(value)
    return sum((as_decimal(get_value(r)) for r in records), ZERO)


def grouped_sum(records: Iterable, key: Extractor, value: Extractor) -> Dict[str, Decimal]:
    """
    Sum `value` per `key`. Keys keep first-seen order; sums are exact
    Decimals, so the result does not depend on record order.
    """
    get_key, get_value = _getter(key), _getter(value)
    sums: Dict[str, Decimal] = {}
    for record in records:
        k = get_key(record)
        sums[k] = sums.get(k, ZERO) + as_decimal(get_value(record))
    return sums


def top_n(sums: Mapping[str, Decimal], n: int = 5) -> List[Tuple[str, Decimal]]:
    # sorted() stays stable with reverse=True, ties keep key order
    return sorted(sums.items(), key=itemgetter(1), reverse=True)[:n]


def percentage_of_total(part, total) -> float:
    total = as_decimal(total)
    if total == 0:
        return 0.0
    return float(as_decimal(part) / total * 100)


def count_where(records: Iterable, predicate: Callable[[Any], bool]) -> int:
    return sum(1 for r in records if predicate(r))


def safe_average(total, count: int) -> Decimal:
    if count == 0:
        return ZERO
    return as_decimal(total) / count


def format_label(key: str) -> str:
    """crushed_stone_20mm -> Crushed Stone 20mm"""
    if not key:
        return ""
    return " ".join(word[:1].upper() + word[1:] for word in key.split("_"))
