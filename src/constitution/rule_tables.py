"""
Rule Tables — версионированные константы конституции

Immutable Pydantic снапшот всех числовых правил:
- Лестница номиналов (15 номиналов от 250 до 1_000_000)
- Доля LV (10%)
- Таблица cash-out по batch_count (30/70 → 50/50)
- Доли sponsorship (50% коллаборатор, 25% продавец)
- Внутренняя аллокация (platform fee 10%, discount pool 15%)
- Пороги классов продавцов и ставки decay

Все доли: целые basis points (см. src.core.math.basis_points).

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Существующую версию нельзя изменить: изменение правил = новая версия
2. Сертификат навсегда привязан к версии, под которой был куплен
3. distribution_terminal_threshold совпадает с нижней границей класса D
"""

import threading
from typing import Final, Optional

from pydantic import BaseModel, Field, model_validator

from src.core.domain.certificate import SellerClass
from src.core.errors import RuleTableConflict, UnknownRuleVersion
from src.core.math.basis_points import BPS_DENOMINATOR, complement_bps


# =============================================================================
# ROWS
# =============================================================================


class CashOutRow(BaseModel):
    """Строка таблицы cash-out."""

    batch_count: int = Field(..., ge=1, description="Число батчей")
    collaborator_uv_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)
    trebal_uv_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)

    model_config = {"frozen": True}


class SellerClassThreshold(BaseModel):
    """Нижняя граница sem (включительно) для класса продавца."""

    seller_class: SellerClass
    sem_min: int

    model_config = {"frozen": True}


class DecayRate(BaseModel):
    """Ставка decay sem за один период для класса продавца."""

    seller_class: SellerClass
    rate_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)

    model_config = {"frozen": True}


# =============================================================================
# RULE TABLE
# =============================================================================


class RuleTable(BaseModel):
    """
    Снапшот правил конституции.

    Immutable модель (frozen=True). Проверяет внутреннюю согласованность
    при создании, поэтому несогласованная таблица не может существовать.
    """

    version: str = Field(..., min_length=1, description="Идентификатор версии")
    effective_from_utc_ms: int = Field(..., ge=0, description="Начало действия (UTC, мс)")

    face_value_ladder: tuple[int, ...] = Field(..., min_length=1)
    lv_rate_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)

    cash_out_table: tuple[CashOutRow, ...] = Field(..., min_length=1)

    sponsorship_collaborator_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)
    sponsorship_seller_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)

    platform_fee_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)
    discount_pool_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)

    # От высшего класса к низшему, класс E: всё, что ниже последнего порога
    seller_class_thresholds: tuple[SellerClassThreshold, ...]
    decay_rates: tuple[DecayRate, ...]
    distribution_terminal_threshold: int

    collaborator_active_cap: int = Field(..., ge=1)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_consistency(self) -> "RuleTable":
        ladder = self.face_value_ladder
        if ladder[0] <= 0:
            raise ValueError("face_value_ladder must contain positive values")
        if any(b <= a for a, b in zip(ladder, ladder[1:])):
            raise ValueError("face_value_ladder must be strictly ascending")

        batches = [row.batch_count for row in self.cash_out_table]
        if batches != list(range(1, len(batches) + 1)):
            raise ValueError(f"cash_out_table batch counts must be 1..N, got {batches}")
        for row in self.cash_out_table:
            if row.trebal_uv_bps != complement_bps(row.collaborator_uv_bps):
                raise ValueError(f"cash_out_table row {row.batch_count} does not sum to 100%")
        shares = [row.collaborator_uv_bps for row in self.cash_out_table]
        if any(b < a for a, b in zip(shares, shares[1:])):
            raise ValueError("collaborator share must be non-decreasing in batch_count")

        if self.sponsorship_collaborator_bps + self.sponsorship_seller_bps > BPS_DENOMINATOR:
            raise ValueError("sponsorship shares exceed 100%")

        classes = [t.seller_class for t in self.seller_class_thresholds]
        expected = [SellerClass.A, SellerClass.B, SellerClass.C, SellerClass.D]
        if classes != expected:
            raise ValueError(f"seller_class_thresholds must cover A..D in order, got {classes}")
        mins = [t.sem_min for t in self.seller_class_thresholds]
        if any(b >= a for a, b in zip(mins, mins[1:])):
            raise ValueError("seller_class_thresholds must be strictly descending")
        if self.distribution_terminal_threshold != mins[-1]:
            raise ValueError(
                f"distribution_terminal_threshold {self.distribution_terminal_threshold} "
                f"must equal class D lower bound {mins[-1]}"
            )

        if {d.seller_class for d in self.decay_rates} != set(SellerClass):
            raise ValueError("decay_rates must define every seller class")
        return self

    def is_face_value_allowed(self, value: int) -> bool:
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        return value in self.face_value_ladder

    def cash_out_row(self, batch_count: int) -> Optional[CashOutRow]:
        for row in self.cash_out_table:
            if row.batch_count == batch_count:
                return row
        return None

    def decay_rate_bps(self, seller_class: SellerClass) -> int:
        for rate in self.decay_rates:
            if rate.seller_class == seller_class:
                return rate.rate_bps
        raise KeyError(seller_class)

    @property
    def batch_counts(self) -> tuple[int, ...]:
        return tuple(row.batch_count for row in self.cash_out_table)


# =============================================================================
# DEFAULT RULES
# =============================================================================

DEFAULT_RULE_VERSION: Final[str] = "2025.1"

DEFAULT_RULES: Final[RuleTable] = RuleTable(
    version=DEFAULT_RULE_VERSION,
    effective_from_utc_ms=1735689600000,  # 2025-01-01T00:00:00Z
    face_value_ladder=(
        250, 500, 1000, 2000, 4000, 8000, 15000, 30000, 60000, 120000,
        220000, 380000, 600000, 850000, 1000000,
    ),
    lv_rate_bps=1000,
    cash_out_table=(
        CashOutRow(batch_count=1, collaborator_uv_bps=3000, trebal_uv_bps=7000),
        CashOutRow(batch_count=2, collaborator_uv_bps=3500, trebal_uv_bps=6500),
        CashOutRow(batch_count=3, collaborator_uv_bps=4000, trebal_uv_bps=6000),
        CashOutRow(batch_count=4, collaborator_uv_bps=4500, trebal_uv_bps=5500),
        CashOutRow(batch_count=5, collaborator_uv_bps=5000, trebal_uv_bps=5000),
    ),
    sponsorship_collaborator_bps=5000,
    sponsorship_seller_bps=2500,
    platform_fee_bps=1000,
    discount_pool_bps=1500,
    seller_class_thresholds=(
        SellerClassThreshold(seller_class=SellerClass.A, sem_min=300),
        SellerClassThreshold(seller_class=SellerClass.B, sem_min=150),
        SellerClassThreshold(seller_class=SellerClass.C, sem_min=80),
        SellerClassThreshold(seller_class=SellerClass.D, sem_min=40),
    ),
    decay_rates=(
        DecayRate(seller_class=SellerClass.A, rate_bps=400),
        DecayRate(seller_class=SellerClass.B, rate_bps=800),
        DecayRate(seller_class=SellerClass.C, rate_bps=1200),
        DecayRate(seller_class=SellerClass.D, rate_bps=1500),
        DecayRate(seller_class=SellerClass.E, rate_bps=0),
    ),
    distribution_terminal_threshold=40,
    collaborator_active_cap=5,
)


# =============================================================================
# REGISTRY
# =============================================================================


class RuleTableRegistry:
    """
    Append-only реестр версий rule table.

    Версию можно только добавить. Повторная регистрация той же версии
    разрешена только для идентичной таблицы (идемпотентность).
    """

    def __init__(self, tables: Optional[list[RuleTable]] = None):
        self._lock = threading.Lock()
        self._tables: dict[str, RuleTable] = {}
        for table in tables if tables is not None else [DEFAULT_RULES]:
            self.register(table)

    def register(self, table: RuleTable) -> RuleTable:
        """
        Регистрация новой версии.

        Raises:
            RuleTableConflict: Если версия уже зарегистрирована с другими правилами
        """
        with self._lock:
            existing = self._tables.get(table.version)
            if existing is not None:
                if existing == table:
                    return existing
                raise RuleTableConflict(
                    f"Rule table version {table.version!r} already registered with different rules"
                )
            self._tables[table.version] = table
            return table

    def get(self, version: str) -> RuleTable:
        """
        Raises:
            UnknownRuleVersion: Если версия не зарегистрирована
        """
        try:
            return self._tables[version]
        except KeyError:
            raise UnknownRuleVersion(version) from None

    def versions(self) -> tuple[str, ...]:
        return tuple(self._tables)

    def __contains__(self, version: object) -> bool:
        return version in self._tables
