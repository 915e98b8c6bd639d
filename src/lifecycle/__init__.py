"""Lifecycle — жизненный цикл сертификата.

- Явная таблица переходов GIFT/STACKED/DISTRIBUTION/RETIRED
- Предусловия переходов (владелец, роль контрагента, лимит, класс продавца)
- Атомарные переходы: новый снапшот + ровно один AuditFact
"""

from .orchestrator import (
    CashOutParams,
    GiftParams,
    PurchaseParams,
    SponsorshipParams,
    SponsorshipPayout,
    StackParams,
    TransitionOrchestrator,
    TransitionRejection,
    TransitionResult,
)
from .state_machine import (
    TRANSITION_TABLE,
    CertificateAction,
    CertificateStateMachine,
    TransitionRule,
)

__all__ = [
    "TRANSITION_TABLE",
    "CertificateAction",
    "CertificateStateMachine",
    "TransitionRule",
    "TransitionOrchestrator",
    "TransitionResult",
    "TransitionRejection",
    "SponsorshipPayout",
    "PurchaseParams",
    "GiftParams",
    "StackParams",
    "CashOutParams",
    "SponsorshipParams",
]
