"""
Transaction domain rules - validation for ledger entries

Одни и те же правила используются при создании и при частичном изменении
операции: каждое переданное поле проверяется так же, как при создании.
"""
from datetime import date
from decimal import Decimal
from typing import Dict, Any, Optional

from budgetbook.errors import ValidationError
from budgetbook.utils.validation import parse_amount

KIND_INCOME = "income"
KIND_EXPENSE = "expense"
TRANSACTION_KINDS = (KIND_INCOME, KIND_EXPENSE)

CATEGORY_MAX_LENGTH = 100

EDITABLE_FIELDS = ("kind", "amount", "category", "description", "occurred_on")


def validate_kind(kind: Any) -> str:
    if kind not in TRANSACTION_KINDS:
        raise ValidationError("kind", "Тип операции должен быть 'income' или 'expense'")
    return kind


def validate_amount(amount: Any) -> Decimal:
    try:
        value = parse_amount(amount)
    except ValueError as exc:
        raise ValidationError("amount", str(exc))
    if value <= 0:
        raise ValidationError("amount", "Сумма операции должна быть больше нуля")
    return value


def validate_category(category: Any) -> str:
    if not isinstance(category, str) or not category.strip():
        raise ValidationError("category", "Категория обязательна")
    category = category.strip()
    if len(category) > CATEGORY_MAX_LENGTH:
        raise ValidationError("category", f"Категория длиннее {CATEGORY_MAX_LENGTH} символов")
    return category


def normalize_description(description: Any) -> Optional[str]:
    """Пустое описание хранится как NULL"""
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError("description", "Описание должно быть строкой")
    return description.strip() or None


def validate_occurred_on(occurred_on: Any) -> date:
    if isinstance(occurred_on, str):
        try:
            occurred_on = date.fromisoformat(occurred_on)
        except ValueError:
            raise ValidationError("occurred_on", "Дата должна быть в формате ГГГГ-ММ-ДД")
    if not isinstance(occurred_on, date):
        raise ValidationError("occurred_on", "Дата операции обязательна")
    return occurred_on


class Transaction:
    """
    Ledger entry rules

    Методы возвращают провалидированные поля; персистенция - в use case'ах.
    """

    @staticmethod
    def create(
        kind: Any,
        amount: Any,
        category: Any,
        today: date,
        occurred_on: Any = None,
        description: Any = None,
    ) -> Dict[str, Any]:
        """
        Провалидировать новую операцию

        Args:
            kind: income / expense
            amount: Сумма (> 0, максимум 2 знака)
            category: Категория (обрезается, не пустая)
            today: Текущая дата в часовом поясе приложения
            occurred_on: Дата операции (default=today)
            description: Описание (опционально)

        Returns:
            Поля для строки transactions

        Raises:
            ValidationError: с именем поля, не прошедшего проверку
        """
        return {
            "kind": validate_kind(kind),
            "amount": validate_amount(amount),
            "category": validate_category(category),
            "description": normalize_description(description),
            "occurred_on": today if occurred_on is None else validate_occurred_on(occurred_on),
        }

    @staticmethod
    def update(**changes: Any) -> Dict[str, Any]:
        """
        Провалидировать частичное изменение.

        Only keys present in changes are validated and returned; unknown keys are dropped.
        """
        validators = {
            "kind": validate_kind,
            "amount": validate_amount,
            "category": validate_category,
            "description": normalize_description,
            "occurred_on": validate_occurred_on,
        }
        return {
            key: validators[key](changes[key])
            for key in EDITABLE_FIELDS
            if key in changes
        }
