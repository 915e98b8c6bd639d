"""
Basis Points — целочисленная денежная арифметика

Все денежные суммы: целые числа в минимальной единице валюты.
Все доли: целые basis points (1 bps = 0.01%, 10_000 bps = 100%).

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Float никогда не участвует в денежных расчётах
2. Направление округления всегда явное (floor или half-up)
3. Все операции детерминированы и воспроизводимы между реализациями
"""

from typing import Final

# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# 100% в basis points
BPS_DENOMINATOR: Final[int] = 10_000


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_amount(amount: int, name: str = "amount") -> int:
    """
    Проверка денежной суммы: целое неотрицательное число.

    bool формально является int в Python, но как сумма не допускается.

    Raises:
        TypeError: Если amount не int (или bool)
        ValueError: Если amount < 0
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError(f"{name} must be int, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError(f"{name} must be non-negative, got {amount}")
    return amount


def validate_bps(bps: int, name: str = "bps") -> int:
    """
    Проверка доли в basis points: целое в [0, BPS_DENOMINATOR].

    Raises:
        TypeError: Если bps не int
        ValueError: Если bps вне диапазона
    """
    if isinstance(bps, bool) or not isinstance(bps, int):
        raise TypeError(f"{name} must be int, got {type(bps).__name__}")
    if not 0 <= bps <= BPS_DENOMINATOR:
        raise ValueError(f"{name} must be in [0, {BPS_DENOMINATOR}], got {bps}")
    return bps


# =============================================================================
# УМНОЖЕНИЕ НА ДОЛЮ
# =============================================================================


def mul_bps_floor(amount: int, bps: int) -> int:
    """
    amount × bps / 10_000 с округлением вниз.

    Остаток от округления всегда остаётся у вызывающего (remainder absorption).

    Examples:
        >>> mul_bps_floor(900, 3000)
        270
        >>> mul_bps_floor(7, 5000)
        3
    """
    validate_amount(amount)
    validate_bps(bps)
    return amount * bps // BPS_DENOMINATOR


def mul_bps_round_half_up(amount: int, bps: int) -> int:
    """
    amount × bps / 10_000 с округлением half-up на целочисленной границе.

    Для неотрицательных сумм совпадает с round-half-away-from-zero.

    Examples:
        >>> mul_bps_round_half_up(1000, 1000)
        100
        >>> mul_bps_round_half_up(5, 1000)  # 0.5 → 1
        1
        >>> mul_bps_round_half_up(25, 1000)  # 2.5 → 3
        3
    """
    validate_amount(amount)
    validate_bps(bps)
    return (amount * bps + BPS_DENOMINATOR // 2) // BPS_DENOMINATOR


def complement_bps(bps: int) -> int:
    """Дополнение доли до 100%: 10_000 - bps."""
    return BPS_DENOMINATOR - validate_bps(bps)
