"""
Budget summary service - balance / income / expense / expected remainder.

Две стратегии (SUMMARY_STRATEGY):
- recompute: сводка считается по ленте при каждом чтении (всегда точна);
  в БД пишется только нулевая строка при первом обращении (ради shared_expense).
- incremental: возвращается сохранённая строка budget_summaries, которую
  use case'ы операций сдвигают в той же транзакции, что и ленту.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from budgetbook.config import get_settings, SUMMARY_STRATEGY_RECOMPUTE, SUMMARY_STRATEGY_INCREMENTAL
from budgetbook.domain.budget import BudgetTotals
from budgetbook.errors import ValidationError
from budgetbook.infrastructure.db.models import BudgetSummary, Transaction
from budgetbook.infrastructure.db.session import atomic
from budgetbook.readmodels.projectors.budget_summary import BudgetSummaryProjector, compute_ledger_totals
from budgetbook.utils.validation import parse_amount

logger = logging.getLogger(__name__)

SUMMARY_STRATEGIES = (SUMMARY_STRATEGY_RECOMPUTE, SUMMARY_STRATEGY_INCREMENTAL)


@dataclass(frozen=True)
class SummaryView:
    user_id: uuid.UUID
    balance: Decimal
    income: Decimal
    expense: Decimal
    shared_expense: Decimal
    expected_remainder: Decimal
    currency: str
    updated_at: datetime
    strategy: str

    @classmethod
    def from_row(cls, row: BudgetSummary, strategy: str) -> "SummaryView":
        return cls(
            user_id=row.user_id,
            balance=row.balance,
            income=row.income,
            expense=row.expense,
            shared_expense=row.shared_expense,
            expected_remainder=row.expected_remainder,
            currency=row.currency,
            updated_at=row.updated_at,
            strategy=strategy,
        )


@dataclass(frozen=True)
class ConsistencyReport:
    stored: SummaryView
    recomputed: SummaryView

    @property
    def is_consistent(self) -> bool:
        return (
            self.stored.income == self.recomputed.income
            and self.stored.expense == self.recomputed.expense
            and self.stored.balance == self.recomputed.balance
            and self.stored.expected_remainder == self.recomputed.expected_remainder
        )

    @property
    def income_drift(self) -> Decimal:
        return self.stored.income - self.recomputed.income

    @property
    def expense_drift(self) -> Decimal:
        return self.stored.expense - self.recomputed.expense


class SummaryService:
    def __init__(self, db: Session, strategy: str | None = None):
        strategy = strategy or get_settings().SUMMARY_STRATEGY
        if strategy not in SUMMARY_STRATEGIES:
            raise ValueError(f"Unknown summary strategy: {strategy!r}")
        self.db = db
        self.strategy = strategy
        self.projector = BudgetSummaryProjector(db)

    def get_summary(self, user_id: uuid.UUID) -> SummaryView:
        """Return the summary for the owner; never fails for an empty ledger."""
        if self.strategy == SUMMARY_STRATEGY_INCREMENTAL:
            return SummaryView.from_row(self._stored_row(user_id), self.strategy)
        return self._recompute(user_id)

    def set_shared_expense(self, user_id: uuid.UUID, amount) -> SummaryView:
        """Задать общие расходы (ведутся вне ленты)"""
        try:
            value = parse_amount(amount)
        except ValueError as exc:
            raise ValidationError("amount", str(exc))
        if value < 0:
            raise ValidationError("amount", "Общие расходы не могут быть отрицательными")

        with atomic(self.db):
            self.projector.set_shared_expense(user_id, value)

        logger.info("Shared expense set: user=%s amount=%s", user_id, value)
        return self.get_summary(user_id)

    def check_consistency(self, user_id: uuid.UUID) -> ConsistencyReport:
        """
        Сравнить сохранённую строку со сводкой, пересчитанной по ленте.

        При recompute-стратегии сохранённые income/expense не поддерживаются,
        поэтому расхождение там ожидаемо и говорит лишь о том, что строку
        не пересобирали.
        """
        stored = SummaryView.from_row(self._stored_row(user_id), self.strategy)
        recomputed = self._recompute(user_id)
        report = ConsistencyReport(stored=stored, recomputed=recomputed)
        if not report.is_consistent:
            logger.warning(
                "Budget summary drift: user=%s strategy=%s income_drift=%s expense_drift=%s",
                user_id, self.strategy, report.income_drift, report.expense_drift,
            )
        return report

    def rebuild(self, user_id: uuid.UUID) -> SummaryView:
        """Пересобрать сохранённую строку из ленты"""
        with atomic(self.db):
            row = self.projector.rebuild(user_id)
        logger.info("Budget summary rebuilt: user=%s income=%s expense=%s", user_id, row.income, row.expense)
        return SummaryView.from_row(row, self.strategy)

    def _stored_row(self, user_id: uuid.UUID) -> BudgetSummary:
        row = self.db.get(BudgetSummary, user_id)
        if row:
            return row
        with atomic(self.db):
            row = self.projector.ensure(user_id)
        logger.info("Budget summary created lazily: user=%s", user_id)
        return row

    def _recompute(self, user_id: uuid.UUID) -> SummaryView:
        row = self._stored_row(user_id)
        totals: BudgetTotals = compute_ledger_totals(self.db, user_id, shared_expense=row.shared_expense)

        last_ledger_change = self.db.query(func.max(Transaction.updated_at)).filter(
            Transaction.user_id == user_id
        ).scalar()
        updated_at = row.updated_at
        if last_ledger_change and _naive(last_ledger_change) > _naive(updated_at):
            updated_at = last_ledger_change

        return SummaryView(
            user_id=user_id,
            balance=totals.balance,
            income=totals.income,
            expense=totals.expense,
            shared_expense=totals.shared_expense,
            expected_remainder=totals.expected_remainder,
            currency=row.currency,
            updated_at=updated_at,
            strategy=SUMMARY_STRATEGY_RECOMPUTE,
        )


def _naive(value: datetime) -> datetime:
    # SQLite отдаёт naive UTC, PostgreSQL - aware datetime
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
