"""Student ledger: term-by-term fee/paid figures and the balance derived from them."""

import copy
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional


def to_decimal(val: Any) -> Decimal:
    if val is None:
        return Decimal("0")
    if isinstance(val, Decimal):
        return val
    try:
        return Decimal(str(val))
    except InvalidOperation:
        return Decimal("0")


def to_number(val: Decimal):
    """JSON-friendly amount: int when whole, float otherwise."""
    val = to_decimal(val)
    return int(val) if val == val.to_integral_value() else float(val)


def compute_balance(terms: Optional[Mapping[str, Any]]) -> Decimal:
    """Sum of fee - paid over all terms. Missing figures count as 0."""
    if not terms or not isinstance(terms, Mapping):
        return Decimal("0")
    total = Decimal("0")
    for term in terms.values():
        if not isinstance(term, Mapping):
            continue
        total += to_decimal(term.get("fee")) - to_decimal(term.get("paid"))
    return total


def get_terms(student: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    financials = (student or {}).get("financials") or {}
    return copy.deepcopy(financials.get("terms") or {})


def _adjust(terms: Mapping[str, Any], term_key: str, field: str, amount: Any) -> Dict[str, Any]:
    if term_key not in terms:
        raise KeyError(term_key)
    updated = copy.deepcopy(dict(terms))
    term = dict(updated[term_key] or {})
    term.setdefault("fee", 0)
    term.setdefault("paid", 0)
    term[field] = to_number(to_decimal(term.get(field)) + to_decimal(amount))
    updated[term_key] = term
    return updated


def credit_term(terms: Mapping[str, Any], term_key: str, amount: Any) -> Dict[str, Any]:
    """Return new terms with `amount` added to the term's paid figure."""
    return _adjust(terms, term_key, "paid", amount)


def debit_term(terms: Mapping[str, Any], term_key: str, amount: Any) -> Dict[str, Any]:
    """Return new terms with `amount` added to the term's fee."""
    return _adjust(terms, term_key, "fee", amount)
