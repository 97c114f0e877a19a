"""
Account use cases - registration and credentials login
"""
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from budgetbook.auth import hash_password, verify_password, get_user_by_email, normalize_email
from budgetbook.errors import Conflict, Unauthenticated, ValidationError
from budgetbook.infrastructure.db.models import User, Profile
from budgetbook.infrastructure.db.session import atomic
from budgetbook.readmodels.projectors.budget_summary import BudgetSummaryProjector

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6


class RegisterUserUseCase:
    """
    Use case: Зарегистрировать пользователя

    Вместе с пользователем создаются пустой профиль и нулевая сводка бюджета.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, email: str, password: str, name: str | None = None) -> User:
        """
        Raises:
            ValidationError: пустой email / короткий пароль
            Conflict: email уже зарегистрирован
        """
        if not email or "@" not in email:
            raise ValidationError("email", "Укажите корректный email")
        if not password or len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError("password", f"Пароль должен быть не короче {PASSWORD_MIN_LENGTH} символов")

        if get_user_by_email(self.db, email):
            raise Conflict("Этот email уже зарегистрирован")

        user = User(
            id=uuid.uuid4(),
            email=normalize_email(email),
            password_hash=hash_password(password),
        )

        with atomic(self.db):
            self.db.add(user)
            self.db.flush()
            self.db.add(Profile(user_id=user.id, name=(name or "").strip() or None))
            BudgetSummaryProjector(self.db).ensure(user.id)

        logger.info("User registered: id=%s", user.id)
        return user


class AuthenticateUseCase:
    """Use case: Проверить email/пароль"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, email: str, password: str) -> User:
        """
        Raises:
            Unauthenticated: неверный email или пароль (без уточнения, что именно)
        """
        user = get_user_by_email(self.db, email) if email else None

        if not user or not password or not verify_password(password, user.password_hash):
            raise Unauthenticated("Неверный email или пароль")

        with atomic(self.db):
            user.last_seen_at = datetime.now(timezone.utc)

        return user
