"""
Transaction use cases - business logic for ledger operations

Лента (transactions) - источник истины. При инкрементальной стратегии
запись в ленту и сдвиг сводки выполняются в одной транзакции БД:
сбой любой из частей откатывает обе.
"""
import logging
import uuid
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from budgetbook.config import get_settings, SUMMARY_STRATEGY_INCREMENTAL
from budgetbook.domain.transaction import Transaction as TransactionRules, TRANSACTION_KINDS
from budgetbook.errors import NotFound, Forbidden, ValidationError
from budgetbook.infrastructure.db.models import Transaction
from budgetbook.infrastructure.db.session import atomic
from budgetbook.readmodels.projectors.budget_summary import BudgetSummaryProjector

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def today_in_app_timezone() -> date:
    return datetime.now(ZoneInfo(get_settings().TIMEZONE)).date()


def parse_transaction_id(raw) -> uuid.UUID:
    """Raises ValidationError if raw is not a UUID"""
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise ValidationError("transaction_id", "Некорректный идентификатор операции")


def get_owned_transaction(db: Session, user_id: uuid.UUID, transaction_id) -> Transaction:
    """
    Найти операцию и проверить владельца

    Raises:
        NotFound: операции нет
        Forbidden: операция принадлежит другому пользователю
    """
    tx = db.get(Transaction, parse_transaction_id(transaction_id))
    if not tx:
        raise NotFound("Операция не найдена")
    if tx.user_id != user_id:
        logger.warning("Ownership mismatch: user=%s tried transaction=%s of user=%s", user_id, tx.id, tx.user_id)
        raise Forbidden("Нет доступа к этой операции")
    return tx


def list_transactions(
    db: Session,
    user_id: uuid.UUID,
    kind: str | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> list[Transaction]:
    """
    Лента операций: сначала свежие по дате, при равной дате - по времени записи

    Неизвестный kind игнорируется (возвращаются все операции).
    """
    query = db.query(Transaction).filter(Transaction.user_id == user_id)

    if kind in TRANSACTION_KINDS:
        query = query.filter(Transaction.kind == kind)

    limit = max(1, min(limit, MAX_PAGE_SIZE))
    offset = max(0, offset)

    return query.order_by(
        Transaction.occurred_on.desc(),
        Transaction.recorded_at.desc(),
        Transaction.id.desc(),
    ).limit(limit).offset(offset).all()


def _maintains_summary(strategy: str | None) -> bool:
    strategy = strategy or get_settings().SUMMARY_STRATEGY
    return strategy == SUMMARY_STRATEGY_INCREMENTAL


class CreateTransactionUseCase:
    """
    Use case: Записать доход или расход
    """

    def __init__(self, db: Session, strategy: str | None = None):
        self.db = db
        self.maintain_summary = _maintains_summary(strategy)

    def execute(
        self,
        user_id: uuid.UUID,
        kind,
        amount,
        category,
        occurred_on=None,
        description=None,
    ) -> Transaction:
        """
        Args:
            user_id: Владелец
            kind: income / expense
            amount: Сумма (> 0)
            category: Категория
            occurred_on: Дата операции (default=сегодня в TIMEZONE)
            description: Описание (опционально)

        Returns:
            Созданная строка transactions

        Raises:
            ValidationError: некорректное поле (до обращения к БД)
            StorageUnavailable: сбой БД, ничего не записано
        """
        fields = TransactionRules.create(
            kind=kind,
            amount=amount,
            category=category,
            occurred_on=occurred_on,
            description=description,
            today=today_in_app_timezone(),
        )

        tx = Transaction(id=uuid.uuid4(), user_id=user_id, **fields)

        with atomic(self.db):
            self.db.add(tx)
            self.db.flush()
            if self.maintain_summary:
                BudgetSummaryProjector(self.db).apply_created(tx)

        self.db.refresh(tx)
        logger.info("Transaction recorded: user=%s id=%s kind=%s", user_id, tx.id, tx.kind)
        return tx


class UpdateTransactionUseCase:
    """Use case: Изменить тип, сумму, категорию, описание или дату операции."""

    def __init__(self, db: Session, strategy: str | None = None):
        self.db = db
        self.maintain_summary = _maintains_summary(strategy)

    def execute(self, user_id: uuid.UUID, transaction_id, **changes) -> Transaction:
        tx = get_owned_transaction(self.db, user_id, transaction_id)
        fields = TransactionRules.update(**changes)

        if not fields:
            return tx

        old_kind, old_amount = tx.kind, tx.amount

        with atomic(self.db):
            for key, value in fields.items():
                setattr(tx, key, value)
            self.db.flush()
            if self.maintain_summary and (tx.kind != old_kind or tx.amount != old_amount):
                BudgetSummaryProjector(self.db).apply_updated(
                    user_id, old_kind, old_amount, tx.kind, tx.amount,
                )

        self.db.refresh(tx)
        logger.info("Transaction updated: user=%s id=%s fields=%s", user_id, tx.id, sorted(fields))
        return tx


class DeleteTransactionUseCase:
    """Use case: Удалить операцию владельца"""

    def __init__(self, db: Session, strategy: str | None = None):
        self.db = db
        self.maintain_summary = _maintains_summary(strategy)

    def execute(self, user_id: uuid.UUID, transaction_id) -> None:
        tx = get_owned_transaction(self.db, user_id, transaction_id)

        with atomic(self.db):
            if self.maintain_summary:
                BudgetSummaryProjector(self.db).apply_deleted(tx)
            self.db.delete(tx)

        logger.info("Transaction deleted: user=%s id=%s", user_id, transaction_id)
