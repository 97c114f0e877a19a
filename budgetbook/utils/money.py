"""
Amount formatting for API responses.

Usage:
    from budgetbook.utils.money import amount_to_str

    amount_to_str(Decimal("0"))        -> "0.00"
    amount_to_str(Decimal("1.4E+6"))   -> "1400000.00"
"""
from decimal import Decimal

CENT = Decimal("0.01")


def amount_to_str(amount) -> str:
    """Сумма строкой: всегда 2 знака после точки, без экспоненты."""
    return format(Decimal(amount).quantize(CENT), "f")
