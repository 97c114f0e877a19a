"""
FastAPI dependencies (DB session, authentication, summary strategy)
"""
import uuid

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from budgetbook.config import get_settings
from budgetbook.errors import Unauthenticated
from budgetbook.infrastructure.db.session import get_db as _get_db
from budgetbook.infrastructure.db.models import User


# Re-export get_db для удобства
get_db = _get_db

SESSION_USER_KEY = "user_id"


def login_session(request: Request, user: User) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = str(user.id)


def logout_session(request: Request) -> None:
    request.session.clear()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Получить текущего пользователя из session (для API endpoints)

    Raises:
        Unauthenticated: если не залогинен или пользователь удалён

    Usage:
        @router.get("/profile")
        def get_profile(user: User = Depends(get_current_user)):
            ...
    """
    raw_user_id = request.session.get(SESSION_USER_KEY)
    if not raw_user_id:
        raise Unauthenticated()

    try:
        user_id = uuid.UUID(raw_user_id)
    except (TypeError, ValueError):
        logout_session(request)
        raise Unauthenticated()

    user = db.get(User, user_id)
    if not user:
        logout_session(request)
        raise Unauthenticated("Пользователь не найден")

    return user


def get_summary_strategy() -> str:
    """Стратегия сводки; в тестах переопределяется через dependency_overrides"""
    return get_settings().SUMMARY_STRATEGY
