from decimal import Decimal

import pytest

from app.fees.ledger import compute_balance, credit_term, debit_term, get_terms, to_number


def test_balance_is_sum_of_fee_minus_paid() -> None:
    terms = {
        "2025_Term1": {"fee": 200, "paid": 50},
        "2025_Term2": {"fee": 250.5, "paid": 0},
    }
    assert compute_balance(terms) == Decimal("400.5")


def test_balance_of_empty_or_missing_terms_is_zero() -> None:
    assert compute_balance({}) == 0
    assert compute_balance(None) == 0


def test_missing_figures_count_as_zero() -> None:
    assert compute_balance({"T1": {"fee": 100}, "T2": {"paid": 30}}) == Decimal("70")


def test_overpayment_gives_negative_balance() -> None:
    assert compute_balance({"T1": {"fee": 100, "paid": 150}}) == Decimal("-50")


def test_credit_term_adds_to_paid_without_mutating_input() -> None:
    terms = {"T1": {"fee": 200, "paid": 0}}
    updated = credit_term(terms, "T1", Decimal("50"))
    assert updated["T1"] == {"fee": 200, "paid": 50}
    assert terms["T1"]["paid"] == 0


def test_debit_term_adds_to_fee() -> None:
    updated = debit_term({"T1": {"fee": 200, "paid": 80}}, "T1", 25)
    assert updated["T1"] == {"fee": 225, "paid": 80}
    assert compute_balance(updated) == Decimal("145")


def test_adjusting_unknown_term_raises() -> None:
    with pytest.raises(KeyError):
        credit_term({"T1": {"fee": 1, "paid": 0}}, "T9", 1)


def test_to_number_keeps_whole_amounts_integral() -> None:
    assert to_number(Decimal("150")) == 150
    assert isinstance(to_number(Decimal("150.00")), int)
    assert to_number(Decimal("10.25")) == 10.25


def test_get_terms_returns_a_copy() -> None:
    student = {"financials": {"terms": {"T1": {"fee": 1, "paid": 0}}}}
    terms = get_terms(student)
    terms["T1"]["paid"] = 1
    assert student["financials"]["terms"]["T1"]["paid"] == 0
    assert get_terms({}) == {}
