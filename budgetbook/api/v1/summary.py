"""
Budget summary API endpoints
"""
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from budgetbook.api.deps import get_db, get_current_user, get_summary_strategy
from budgetbook.application.budget_summary import SummaryService, SummaryView
from budgetbook.infrastructure.db.models import User
from budgetbook.utils.money import amount_to_str


router = APIRouter(prefix="/api/v1/summary", tags=["summary"])


# === Request/Response models ===

class SharedExpenseRequest(BaseModel):
    amount: Any = None


class SummaryResponse(BaseModel):
    user_id: str
    balance: str
    income: str
    expense: str
    shared_expense: str
    expected_remainder: str
    currency: str
    updated_at: datetime
    strategy: str


class ConsistencyResponse(BaseModel):
    consistent: bool
    income_drift: str
    expense_drift: str
    stored: SummaryResponse
    recomputed: SummaryResponse


def _to_response(view: SummaryView) -> SummaryResponse:
    return SummaryResponse(
        user_id=str(view.user_id),
        balance=amount_to_str(view.balance),
        income=amount_to_str(view.income),
        expense=amount_to_str(view.expense),
        shared_expense=amount_to_str(view.shared_expense),
        expected_remainder=amount_to_str(view.expected_remainder),
        currency=view.currency,
        updated_at=view.updated_at,
        strategy=view.strategy,
    )


# === Endpoints ===

@router.get("/", response_model=SummaryResponse)
def get_summary(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    strategy: str = Depends(get_summary_strategy),
):
    """Баланс, доходы, расходы и ожидаемый остаток"""
    return _to_response(SummaryService(db, strategy=strategy).get_summary(user.id))


@router.put("/shared-expense", response_model=SummaryResponse)
def set_shared_expense(
    req: SharedExpenseRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    strategy: str = Depends(get_summary_strategy),
):
    """Задать общие (совместные) расходы"""
    view = SummaryService(db, strategy=strategy).set_shared_expense(user.id, req.amount)
    return _to_response(view)


@router.get("/consistency", response_model=ConsistencyResponse)
def check_consistency(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    strategy: str = Depends(get_summary_strategy),
):
    """Сравнить сохранённую сводку с пересчётом по ленте"""
    report = SummaryService(db, strategy=strategy).check_consistency(user.id)
    return ConsistencyResponse(
        consistent=report.is_consistent,
        income_drift=amount_to_str(report.income_drift),
        expense_drift=amount_to_str(report.expense_drift),
        stored=_to_response(report.stored),
        recomputed=_to_response(report.recomputed),
    )


@router.post("/rebuild", response_model=SummaryResponse)
def rebuild_summary(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    strategy: str = Depends(get_summary_strategy),
):
    """Пересобрать сохранённую сводку из ленты"""
    return _to_response(SummaryService(db, strategy=strategy).rebuild(user.id))
