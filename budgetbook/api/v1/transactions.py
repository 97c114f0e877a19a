"""
Transaction API endpoints
"""
from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from budgetbook.api.deps import get_db, get_current_user, get_summary_strategy
from budgetbook.infrastructure.db.models import User, Transaction
from budgetbook.application.transactions import (
    CreateTransactionUseCase, UpdateTransactionUseCase, DeleteTransactionUseCase,
    list_transactions, get_owned_transaction, DEFAULT_PAGE_SIZE,
)
from budgetbook.utils.money import amount_to_str


router = APIRouter(prefix="/api/v1/transactions", tags=["transactions"])


# === Request models ===

class CreateTransactionRequest(BaseModel):
    kind: str | None = None  # income / expense
    amount: Any = None  # number or decimal string
    category: str | None = None
    description: str | None = None
    occurred_on: date | None = None  # default = сегодня


class UpdateTransactionRequest(BaseModel):
    kind: str | None = None
    amount: Any = None
    category: str | None = None
    description: str | None = None
    occurred_on: date | None = None


class TransactionResponse(BaseModel):
    id: str
    kind: str
    amount: str  # Decimal as string
    category: str
    description: str | None = None
    occurred_on: date
    recorded_at: datetime
    updated_at: datetime


def _to_response(tx: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=str(tx.id),
        kind=tx.kind,
        amount=amount_to_str(tx.amount),
        category=tx.category,
        description=tx.description,
        occurred_on=tx.occurred_on,
        recorded_at=tx.recorded_at,
        updated_at=tx.updated_at,
    )


# === Endpoints ===

@router.get("/", response_model=list[TransactionResponse])
def get_transactions(
    kind: str | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Лента операций (свежие первыми)"""
    transactions = list_transactions(db, user.id, kind=kind, limit=limit, offset=offset)
    return [_to_response(tx) for tx in transactions]


@router.post("/", response_model=TransactionResponse, status_code=201)
def create_transaction(
    req: CreateTransactionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    strategy: str = Depends(get_summary_strategy),
):
    """Создать доход или расход"""
    tx = CreateTransactionUseCase(db, strategy=strategy).execute(
        user_id=user.id,
        kind=req.kind,
        amount=req.amount,
        category=req.category,
        occurred_on=req.occurred_on,
        description=req.description,
    )
    return _to_response(tx)


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _to_response(get_owned_transaction(db, user.id, transaction_id))


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    req: UpdateTransactionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    strategy: str = Depends(get_summary_strategy),
):
    """Частичное изменение: меняются только переданные поля"""
    tx = UpdateTransactionUseCase(db, strategy=strategy).execute(
        user.id,
        transaction_id,
        **req.model_dump(exclude_unset=True),
    )
    return _to_response(tx)


@router.delete("/{transaction_id}")
def delete_transaction(
    transaction_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    strategy: str = Depends(get_summary_strategy),
):
    """Удалить операцию"""
    DeleteTransactionUseCase(db, strategy=strategy).execute(user.id, transaction_id)
    return {"status": "deleted"}
