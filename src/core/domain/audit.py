"""
AuditFact — неизменяемая запись о событии, влияющем на стоимость

Append-only: после создания запись не изменяется и не удаляется.
Каждое value-affecting изменение сертификата имеет ровно один AuditFact.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Тип аудируемого события."""

    NFT_PURCHASED = "NFT_PURCHASED"
    NFT_GIFTED = "NFT_GIFTED"
    NFT_STACKED = "NFT_STACKED"
    NFT_CASHED_OUT = "NFT_CASHED_OUT"
    NFT_SPONSORSHIP_CONVERTED = "NFT_SPONSORSHIP_CONVERTED"


class AuditFact(BaseModel):
    """Запись аудита: кто, что, над каким сертификатом, по какой версии правил."""

    actor_id: str = Field(..., min_length=1, description="Инициатор события")
    type: AuditEventType = Field(..., description="Тип события")
    certificate_id: str = Field(..., min_length=1, description="Затронутый сертификат")
    payload: dict[str, Any] = Field(default_factory=dict, description="Факты события")
    rule_version: str = Field(..., min_length=1, description="Версия rule table")

    model_config = {"frozen": True}
