# quarry_erp/services/directory.py

import math
from typing import List, Mapping, Sequence, Tuple

SEARCH_FIELDS = ("company_name", "contact_person", "email", "phone")


def matches_search(customer: Mapping, term: str) -> bool:
    needle = term.strip().lower()
    if not needle:
        return True
    return any(
        needle in (customer.get(field) or "").lower()
        for field in SEARCH_FIELDS
    )


def search_customers(customers: Sequence[Mapping], term: str) -> List[Mapping]:
    return [c for c in customers if matches_search(c, term)]


def paginate(items: Sequence, page: int, page_size: int) -> Tuple[List, int]:
    """Return the slice for a 1-based page and the total page count."""
    total_pages = math.ceil(len(items) / page_size) if items else 0
    start = (page - 1) * page_size
    return list(items[start:start + page_size]), total_pages
