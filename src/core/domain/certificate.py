"""
Certificate — Модель сертификата номинальной стоимости

Immutable Pydantic модель, представляющая снапшот сертификата ("NFT").
Каждый переход жизненного цикла создаёт новый экземпляр с revision + 1.

Инвариант: locked_value + usable_value == face_value.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class CertificateState(str, Enum):
    """
    Состояние жизненного цикла сертификата.

    RETIRED: терминальное состояние, запись заморожена навсегда.
    """

    GIFT = "GIFT"
    STACKED = "STACKED"
    DISTRIBUTION = "DISTRIBUTION"
    RETIRED = "RETIRED"


class Role(str, Enum):
    """Роль пользователя (внешний факт, передаётся вызывающим слоем)."""

    CUSTOMER = "CUSTOMER"
    COLLABORATOR = "COLLABORATOR"
    SELLER = "SELLER"
    ADMIN = "ADMIN"


class SellerClass(str, Enum):
    """Класс продавца, производный от sem."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"


# =============================================================================
# PARTICIPANTS
# =============================================================================


class Actor(BaseModel):
    """Инициатор перехода."""

    id: str = Field(..., min_length=1, description="Идентификатор пользователя")
    roles: frozenset[Role] = Field(default_factory=frozenset, description="Роли пользователя")

    model_config = {"frozen": True}

    def has_role(self, role: Role) -> bool:
        return role in self.roles


class Counterparty(BaseModel):
    """
    Целевой пользователь перехода (получатель подарка или продавец).

    Все поля являются фактами, которые вызывающий слой читает из хранилища
    в той же транзакции, в которой применяет результат перехода.
    """

    id: str = Field(..., min_length=1, description="Идентификатор пользователя")
    roles: frozenset[Role] = Field(default_factory=frozenset, description="Роли пользователя")
    active_certificate_count: int = Field(
        default=0, ge=0, strict=True, description="Число не-RETIRED сертификатов во владении"
    )
    sem: Optional[int] = Field(
        default=None, strict=True, description="Накопленный activity score (для продавцов)"
    )

    model_config = {"frozen": True}

    def has_role(self, role: Role) -> bool:
        return role in self.roles


# =============================================================================
# CERTIFICATE MODEL
# =============================================================================


class Certificate(BaseModel):
    """
    Модель сертификата.

    face_value, locked_value и rule_version фиксируются при покупке и далее
    не меняются. state, owner_id, gifted_from_id и
    distribution_remaining_value меняются только через переходы.
    """

    id: str = Field(..., min_length=1, description="Идентификатор сертификата")
    face_value: int = Field(..., gt=0, description="Номинал из лестницы номиналов")
    locked_value: int = Field(..., ge=0, description="LV: заблокированная часть номинала")
    usable_value: int = Field(..., ge=0, description="UV: база для всех дальнейших сплитов")
    state: CertificateState = Field(..., description="Состояние жизненного цикла")
    owner_id: str = Field(..., min_length=1, description="Текущий владелец")
    gifted_from_id: Optional[str] = Field(None, description="Кто подарил сертификат")
    distribution_remaining_value: Optional[int] = Field(
        None, ge=0, description="Остаток retained после sponsorship конверсии"
    )
    rule_version: str = Field(..., min_length=1, description="Версия rule table на момент покупки")
    revision: int = Field(default=0, ge=0, description="Счётчик переходов (CAS токен)")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_value_conservation(self) -> "Certificate":
        if self.locked_value + self.usable_value != self.face_value:
            raise ValueError(
                f"locked_value {self.locked_value} + usable_value {self.usable_value} "
                f"!= face_value {self.face_value}"
            )
        return self

    @property
    def is_retired(self) -> bool:
        return self.state == CertificateState.RETIRED

    @property
    def is_active(self) -> bool:
        """Активный сертификат учитывается в лимите коллаборатора."""
        return not self.is_retired
