"""
Value Splitter — распределение стоимости сертификата

Чистые функции над целыми суммами:
- LV/UV split номинала при покупке
- Cash-out split UV между коллаборатором и платформой
- Sponsorship split UV на три части
- Внутренняя аллокация (platform fee, discount pool) от исходного UV

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. lv + uv == face_value
2. collaborator_payout + trebal_capture == uv
3. collaborator + seller + retained == uv
4. Остаток округления всегда поглощает удерживающая сторона

ФОРМУЛЫ:
    lv = round_half_up(face_value × lv_rate_bps / 10_000)
    uv = face_value - lv

    collaborator_payout = floor(uv × collaborator_uv_bps / 10_000)
    trebal_capture = uv - collaborator_payout

    collaborator = floor(uv × 5000 / 10_000)
    seller = floor(uv × 2500 / 10_000)
    retained = uv - collaborator - seller

    platform_fee = floor(uv_original × 1000 / 10_000)
    discount_pool = floor(uv_original × 1500 / 10_000)
"""

from dataclasses import dataclass

from src.constitution.rule_tables import DEFAULT_RULES, RuleTable
from src.core.errors import FaceValueNotAllowed, InvalidBatchCount
from src.core.math.basis_points import (
    mul_bps_floor,
    mul_bps_round_half_up,
    validate_amount,
)


# =============================================================================
# RESULT TYPES
# =============================================================================


@dataclass(frozen=True)
class ValueSplit:
    """LV/UV split номинала."""

    lv: int
    uv: int


@dataclass(frozen=True)
class CashOutSplit:
    """Результат cash-out."""

    collaborator_payout: int
    trebal_capture: int


@dataclass(frozen=True)
class SponsorshipSplit:
    """Результат sponsorship конверсии."""

    collaborator: int
    seller: int
    retained: int


@dataclass(frozen=True)
class InternalAllocation:
    """
    Информационная под-аллокация удерживаемой части.

    Обе величины считаются от полного исходного UV, а не от retained,
    и не участвуют в законе сохранения относительно UV.
    """

    platform_fee: int
    discount_pool: int


# =============================================================================
# FACE VALUE
# =============================================================================


def validate_face_value(value: int, rules: RuleTable = DEFAULT_RULES) -> None:
    """
    Проверка номинала по лестнице номиналов.

    Raises:
        FaceValueNotAllowed: Если номинала нет в лестнице
    """
    if not rules.is_face_value_allowed(value):
        raise FaceValueNotAllowed(
            f"Face value {value!r} is not in ladder (rules {rules.version})"
        )


def split_lv_uv(face_value: int, rules: RuleTable = DEFAULT_RULES) -> ValueSplit:
    """
    LV/UV split номинала.

    Округление LV: half-up на целочисленной границе. UV получает остаток,
    поэтому lv + uv == face_value точно.

    Examples:
        >>> split_lv_uv(1000)
        ValueSplit(lv=100, uv=900)

    Raises:
        FaceValueNotAllowed: Если номинала нет в лестнице
    """
    validate_face_value(face_value, rules)
    lv = mul_bps_round_half_up(face_value, rules.lv_rate_bps)
    return ValueSplit(lv=lv, uv=face_value - lv)


# =============================================================================
# CASH-OUT
# =============================================================================


def cash_out_split(
    batch_count: int, uv: int, rules: RuleTable = DEFAULT_RULES
) -> CashOutSplit:
    """
    Cash-out split UV по таблице batch_count.

    Examples:
        >>> cash_out_split(1, 900)
        CashOutSplit(collaborator_payout=270, trebal_capture=630)
        >>> cash_out_split(5, 900)
        CashOutSplit(collaborator_payout=450, trebal_capture=450)

    Raises:
        InvalidBatchCount: Если batch_count нет в таблице (1..5)
        ValueError/TypeError: Если uv не целое неотрицательное
    """
    row = None
    if isinstance(batch_count, int) and not isinstance(batch_count, bool):
        row = rules.cash_out_row(batch_count)
    if row is None:
        raise InvalidBatchCount(
            f"batch_count {batch_count!r} not in {list(rules.batch_counts)}"
        )
    validate_amount(uv, "uv")

    collaborator_payout = mul_bps_floor(uv, row.collaborator_uv_bps)
    return CashOutSplit(
        collaborator_payout=collaborator_payout,
        trebal_capture=uv - collaborator_payout,
    )


# =============================================================================
# SPONSORSHIP
# =============================================================================


def sponsorship_split(uv: int, rules: RuleTable = DEFAULT_RULES) -> SponsorshipSplit:
    """
    Sponsorship split: 50% коллаборатору, 25% продавцу (оба floor), остаток удерживается.

    Examples:
        >>> sponsorship_split(900)
        SponsorshipSplit(collaborator=450, seller=225, retained=225)
    """
    validate_amount(uv, "uv")
    collaborator = mul_bps_floor(uv, rules.sponsorship_collaborator_bps)
    seller = mul_bps_floor(uv, rules.sponsorship_seller_bps)
    return SponsorshipSplit(
        collaborator=collaborator,
        seller=seller,
        retained=uv - collaborator - seller,
    )


def distribution_internal_allocation_from_uv(
    uv_original: int, rules: RuleTable = DEFAULT_RULES
) -> InternalAllocation:
    """
    Platform fee и discount pool от полного исходного UV.

    Examples:
        >>> distribution_internal_allocation_from_uv(900)
        InternalAllocation(platform_fee=90, discount_pool=135)
    """
    validate_amount(uv_original, "uv_original")
    return InternalAllocation(
        platform_fee=mul_bps_floor(uv_original, rules.platform_fee_bps),
        discount_pool=mul_bps_floor(uv_original, rules.discount_pool_bps),
    )
