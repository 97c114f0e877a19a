"""
Tests for summary arithmetic (domain.budget)
"""
import pytest
from decimal import Decimal

from budgetbook.domain.budget import BudgetTotals, impact


def test_empty_ledger_is_zero():
    totals = BudgetTotals.from_ledger([])
    assert totals.income == 0
    assert totals.expense == 0
    assert totals.balance == 0
    assert totals.expected_remainder == 0


def test_salary_and_rent_scenario():
    totals = BudgetTotals.from_ledger([
        ("income", Decimal("3200000")),
        ("expense", Decimal("1800000")),
    ])
    assert totals.income == Decimal("3200000")
    assert totals.expense == Decimal("1800000")
    assert totals.balance == Decimal("1400000")
    assert totals.expected_remainder == Decimal("1400000")


def test_shared_expense_reduces_expected_remainder_only():
    totals = BudgetTotals.from_ledger(
        [("income", Decimal("1000")), ("expense", Decimal("300"))],
        shared_expense=Decimal("200"),
    )
    assert totals.balance == Decimal("700")
    assert totals.expected_remainder == Decimal("500")


@pytest.mark.parametrize("entries", [
    [],
    [("expense", Decimal("10"))],
    [("income", Decimal("0.01")), ("income", Decimal("99.99")), ("expense", Decimal("150.5"))],
    [("expense", Decimal("1")), ("income", Decimal("1")), ("expense", Decimal("7.25"))],
])
def test_invariants_hold_for_any_ledger(entries):
    totals = BudgetTotals.from_ledger(entries, shared_expense=Decimal("12.5"))
    assert totals.balance == totals.income - totals.expense
    assert totals.expected_remainder == totals.balance - totals.shared_expense
    assert totals.income == sum((a for k, a in entries if k == "income"), Decimal("0"))
    assert totals.expense == sum((a for k, a in entries if k == "expense"), Decimal("0"))


def test_impact_rejects_unknown_kind():
    with pytest.raises(ValueError):
        impact("transfer", Decimal("1"))
