"""
Profile service - name / age / location entered after registration.
"""
import uuid
from typing import Any

from sqlalchemy.orm import Session

from budgetbook.errors import ValidationError
from budgetbook.infrastructure.db.models import Profile
from budgetbook.infrastructure.db.session import atomic

AGE_MIN = 0
AGE_MAX = 150


def _blank_to_none(value: Any, field: str, max_length: int) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field, "Ожидается строка")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(field, f"Не длиннее {max_length} символов")
    return value or None


def parse_age(value: Any) -> int | None:
    """Пустое значение -> None; строка "30" допускается"""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("age", "Возраст должен быть целым числом")
    try:
        age = int(value)
    except (TypeError, ValueError):
        raise ValidationError("age", "Возраст должен быть целым числом")
    if isinstance(value, float) and value != age:
        raise ValidationError("age", "Возраст должен быть целым числом")
    if not AGE_MIN <= age <= AGE_MAX:
        raise ValidationError("age", f"Возраст от {AGE_MIN} до {AGE_MAX}")
    return age


class ProfileService:
    def __init__(self, db: Session):
        self.db = db

    def get_or_create(self, user_id: uuid.UUID) -> Profile:
        """Return the profile, creating an empty one on first access."""
        profile = self.db.get(Profile, user_id)
        if profile:
            return profile

        with atomic(self.db):
            profile = Profile(user_id=user_id)
            self.db.add(profile)
        return profile

    def update(self, user_id: uuid.UUID, name: Any = None, age: Any = None, location: Any = None) -> Profile:
        """Upsert: все три поля перезаписываются, пустые значения -> NULL."""
        values = {
            "name": _blank_to_none(name, "name", 100),
            "age": parse_age(age),
            "location": _blank_to_none(location, "location", 255),
        }

        profile = self.db.get(Profile, user_id)
        with atomic(self.db):
            if not profile:
                profile = Profile(user_id=user_id)
                self.db.add(profile)
            for key, value in values.items():
                setattr(profile, key, value)
        return profile
