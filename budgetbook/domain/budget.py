"""
Budget summary arithmetic

Сводка - это свёртка ленты операций по типу:
    balance = income - expense
    expected_remainder = balance - shared_expense
shared_expense из ленты не выводится и задаётся отдельно.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Tuple

from budgetbook.domain.transaction import KIND_INCOME, KIND_EXPENSE

ZERO = Decimal("0")


def impact(kind: str, amount: Decimal) -> Tuple[Decimal, Decimal]:
    """Return (income_delta, expense_delta) of one ledger entry."""
    if kind == KIND_INCOME:
        return amount, ZERO
    if kind == KIND_EXPENSE:
        return ZERO, amount
    raise ValueError(f"Unknown transaction kind: {kind!r}")


@dataclass(frozen=True)
class BudgetTotals:
    income: Decimal = ZERO
    expense: Decimal = ZERO
    shared_expense: Decimal = ZERO

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense

    @property
    def expected_remainder(self) -> Decimal:
        return self.balance - self.shared_expense

    @classmethod
    def from_ledger(
        cls,
        entries: Iterable[Tuple[str, Decimal]],
        shared_expense: Decimal = ZERO,
    ) -> "BudgetTotals":
        """
        Fold (kind, amount) pairs into totals.

        entries may be ledger rows or per-kind sums from a GROUP BY query.
        """
        income = ZERO
        expense = ZERO
        for kind, amount in entries:
            d_income, d_expense = impact(kind, Decimal(amount))
            income += d_income
            expense += d_expense
        return cls(income=income, expense=expense, shared_expense=Decimal(shared_expense))
