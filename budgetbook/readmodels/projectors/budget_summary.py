"""
BudgetSummaryProjector - maintains budget_summaries read model from ledger changes

Инкрементальная стратегия: каждая операция сдвигает строку сводки на дельту.
Сдвиг - один UPDATE вида `income = income + :delta`, поэтому параллельные
изменения одного владельца сериализуются в БД и не теряются.
Вызывающий код выполняет запись в ленту и сдвиг в одной транзакции.
"""
import uuid
from decimal import Decimal

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from budgetbook.config import get_settings
from budgetbook.domain.budget import BudgetTotals, ZERO, impact
from budgetbook.infrastructure.db.models import BudgetSummary, Transaction


def compute_ledger_totals(db: Session, user_id: uuid.UUID, shared_expense: Decimal = ZERO) -> BudgetTotals:
    """Свернуть ленту владельца: SUM(amount) GROUP BY kind"""
    rows = db.execute(
        select(Transaction.kind, func.coalesce(func.sum(Transaction.amount), 0))
        .where(Transaction.user_id == user_id)
        .group_by(Transaction.kind)
    ).all()
    return BudgetTotals.from_ledger(rows, shared_expense=shared_expense)


def _non_negative(expr):
    return case((expr < 0, 0), else_=expr)


class BudgetSummaryProjector:
    """
    Builds budget_summaries read model from ledger changes

    Обрабатывает изменения:
    - создание операции: прибавить сумму к income/expense
    - удаление операции: вычесть сумму (не ниже нуля)
    - изменение операции: реверс старого влияния + применение нового
    """

    def __init__(self, db: Session):
        self.db = db

    def ensure(self, user_id: uuid.UUID) -> BudgetSummary:
        """Вернуть строку сводки, создав нулевую при первом обращении"""
        summary = self.db.get(BudgetSummary, user_id)
        if summary:
            return summary

        summary = BudgetSummary(
            user_id=user_id,
            balance=ZERO,
            income=ZERO,
            expense=ZERO,
            shared_expense=ZERO,
            expected_remainder=ZERO,
            currency=get_settings().DEFAULT_CURRENCY,
        )
        self.db.add(summary)
        # Flush чтобы следующий UPDATE увидел строку
        self.db.flush()
        return summary

    def lock(self, user_id: uuid.UUID) -> BudgetSummary:
        """SELECT ... FOR UPDATE строки сводки (до конца транзакции)"""
        return self.db.execute(
            select(BudgetSummary)
            .where(BudgetSummary.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one()

    def apply_created(self, tx: Transaction) -> None:
        income_delta, expense_delta = impact(tx.kind, tx.amount)
        self._shift(tx.user_id, income_delta, expense_delta)

    def apply_deleted(self, tx: Transaction) -> None:
        income_delta, expense_delta = impact(tx.kind, tx.amount)
        self._shift(tx.user_id, -income_delta, -expense_delta)

    def apply_updated(
        self,
        user_id: uuid.UUID,
        old_kind: str,
        old_amount: Decimal,
        new_kind: str,
        new_amount: Decimal,
    ) -> None:
        """Реверс старых сумм + применение новых одним UPDATE"""
        old_income, old_expense = impact(old_kind, old_amount)
        new_income, new_expense = impact(new_kind, new_amount)
        self._shift(user_id, new_income - old_income, new_expense - old_expense)

    def set_shared_expense(self, user_id: uuid.UUID, amount: Decimal) -> None:
        self.ensure(user_id)
        self.db.execute(
            update(BudgetSummary)
            .where(BudgetSummary.user_id == user_id)
            .values(
                shared_expense=amount,
                expected_remainder=BudgetSummary.income - BudgetSummary.expense - amount,
            )
            .execution_options(synchronize_session="fetch")
        )

    def rebuild(self, user_id: uuid.UUID) -> BudgetSummary:
        """
        Пересобрать сводку из ленты (shared_expense сохраняется)

        Используется для устранения рассинхронизации.
        Строка сводки блокируется до чтения ленты: параллельные сдвиги
        ждут commit и ложатся поверх пересчитанных сумм.
        """
        self.ensure(user_id)
        summary = self.lock(user_id)
        totals = compute_ledger_totals(self.db, user_id, shared_expense=summary.shared_expense)
        summary.income = totals.income
        summary.expense = totals.expense
        summary.balance = totals.balance
        summary.expected_remainder = totals.expected_remainder
        summary.updated_at = func.now()
        self.db.flush()
        self.db.refresh(summary)
        return summary

    def _shift(self, user_id: uuid.UUID, income_delta: Decimal, expense_delta: Decimal) -> None:
        self.ensure(user_id)

        new_income = _non_negative(BudgetSummary.income + income_delta)
        new_expense = _non_negative(BudgetSummary.expense + expense_delta)

        # В SET правые части видят значения строки до UPDATE
        self.db.execute(
            update(BudgetSummary)
            .where(BudgetSummary.user_id == user_id)
            .values(
                income=new_income,
                expense=new_expense,
                balance=new_income - new_expense,
                expected_remainder=new_income - new_expense - BudgetSummary.shared_expense,
            )
            .execution_options(synchronize_session="fetch")
        )
