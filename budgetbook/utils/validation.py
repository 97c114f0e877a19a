"""
Validation utilities
"""
import re
from decimal import Decimal, InvalidOperation

# Numeric(20, 2): не больше 18 цифр до точки
AMOUNT_LIMIT = Decimal("1e18")


def normalize_decimal_input(value: str) -> str:
    """
    Нормализовать ввод суммы: убрать пробелы, заменить запятую на точку

    Example:
        >>> normalize_decimal_input(" 100,50 ")
        "100.50"
    """
    return value.strip().replace(",", ".")


def validate_decimal_amount(value: str, max_decimal_places: int = 2) -> tuple[bool, str | None]:
    """
    Валидация денежной суммы

    Args:
        value: Строка с суммой
        max_decimal_places: Максимум знаков после запятой (по умолчанию 2)

    Returns:
        (is_valid, error_message)

    Example:
        >>> validate_decimal_amount("100.50")
        (True, None)
        >>> validate_decimal_amount("100.505")
        (False, "Максимум 2 знака после запятой")
    """
    normalized = normalize_decimal_input(value)

    try:
        decimal_value = Decimal(normalized)
    except (InvalidOperation, ValueError):
        return False, "Некорректная сумма"

    if not decimal_value.is_finite():
        return False, "Некорректная сумма"

    # Экспонента и прочие формы, которые Decimal принимает, а форма - нет
    if not re.match(r"^-?\d+(\.\d+)?$", normalized):
        return False, "Некорректная сумма"

    pattern = rf"^-?\d+(\.\d{{1,{max_decimal_places}}})?$"
    if not re.match(pattern, normalized):
        return False, f"Максимум {max_decimal_places} знака после запятой"

    if abs(decimal_value) >= AMOUNT_LIMIT:
        return False, "Слишком большая сумма"

    return True, None


def parse_amount(value, max_decimal_places: int = 2) -> Decimal:
    """
    Привести сумму из запроса (int / float / Decimal / str) к Decimal

    bool отвергается явно: True/False не должны становиться 1/0.

    Raises:
        ValueError: если значение не число, слишком много знаков
            или сумма не помещается в Numeric(20, 2)
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("Некорректная сумма")

    if isinstance(value, float):
        # repr даёт кратчайшее точное представление (0.1 -> "0.1"),
        # format "f" раскрывает экспоненту: 1e20 -> "100000000000000000000"
        value = format(Decimal(repr(value)), "f")
    elif not isinstance(value, str):
        value = str(value)

    is_valid, error = validate_decimal_amount(value, max_decimal_places)
    if not is_valid:
        raise ValueError(error)

    return Decimal(normalize_decimal_input(value))
