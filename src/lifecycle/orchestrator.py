"""Transition Orchestrator — атомарные переходы сертификата.

Каждая операция:
1. Проверяет предусловия (CertificateStateMachine)
2. Считает сплит детерминированно из снапшота сертификата
   (никогда из сумм, переданных вызывающим)
3. Возвращает единую атомарную единицу: новый снапшот + ровно один AuditFact

Слой хранения обязан применить обе половины TransitionResult в одной
транзакции, изолированной по сертификату (CAS по revision или блокировка
строки). Engine не выполняет I/O и не хранит изменяемое состояние.

Доменные отказы (ConstitutionError) превращаются в TransitionRejection,
вызывающий ветвится по rejection.kind. Прочие ошибки пробрасываются.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from pydantic import BaseModel, Field

from src.config.settings import EngineSettings, get_settings
from src.constitution.rule_tables import RuleTable, RuleTableRegistry
from src.constitution.value_splitter import (
    CashOutSplit,
    InternalAllocation,
    SponsorshipSplit,
    ValueSplit,
    cash_out_split,
    distribution_internal_allocation_from_uv,
    split_lv_uv,
    sponsorship_split,
)
from src.core.contracts import validate_audit_fact, validate_certificate
from src.core.domain.audit import AuditEventType, AuditFact
from src.core.domain.certificate import (
    Actor,
    Certificate,
    CertificateState,
    Counterparty,
    SellerClass,
)
from src.core.errors import ConstitutionError, ErrorKind
from src.lifecycle.state_machine import CertificateAction, CertificateStateMachine

logger = logging.getLogger(__name__)


# =============================================================================
# PARAMS
# =============================================================================


class PurchaseParams(BaseModel):
    certificate_id: str = Field(..., min_length=1, description="Идентификатор нового сертификата")
    face_value: int = Field(..., strict=True, description="Номинал из лестницы (только int)")

    model_config = {"frozen": True}


class GiftParams(BaseModel):
    target: Counterparty = Field(..., description="Получатель (COLLABORATOR)")

    model_config = {"frozen": True}


class StackParams(BaseModel):
    model_config = {"frozen": True}


class CashOutParams(BaseModel):
    batch_count: int = Field(..., strict=True, description="Число батчей (1..5, только int)")

    model_config = {"frozen": True}


class SponsorshipParams(BaseModel):
    seller: Counterparty = Field(..., description="Продавец (SELLER), новый владелец")

    model_config = {"frozen": True}


TransitionParams = Union[
    PurchaseParams, GiftParams, StackParams, CashOutParams, SponsorshipParams
]

_PARAMS_BY_ACTION: dict[CertificateAction, type] = {
    CertificateAction.PURCHASE: PurchaseParams,
    CertificateAction.GIFT: GiftParams,
    CertificateAction.STACK: StackParams,
    CertificateAction.CASH_OUT: CashOutParams,
    CertificateAction.SPONSORSHIP_CONVERT: SponsorshipParams,
}


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class TransitionRejection:
    """Отказ в переходе."""

    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class SponsorshipPayout:
    """Выплаты sponsorship конверсии и информационная аллокация."""

    split: SponsorshipSplit
    allocation: InternalAllocation
    seller_class: SellerClass


Payout = Union[ValueSplit, CashOutSplit, SponsorshipPayout, None]


@dataclass(frozen=True)
class TransitionResult:
    """Результат перехода: атомарная пара (new_certificate, audit_fact) или отказ."""

    accepted: bool
    action: CertificateAction
    previous_state: Optional[CertificateState]
    new_certificate: Optional[Certificate]
    audit_fact: Optional[AuditFact]
    payout: Payout
    rejection: Optional[TransitionRejection]

    # Для отладки
    details: str

    @property
    def expected_revision(self) -> Optional[int]:
        """Revision, которую слой хранения должен увидеть перед записью (None для покупки)."""
        if self.new_certificate is None or self.action == CertificateAction.PURCHASE:
            return None
        return self.new_certificate.revision - 1


# =============================================================================
# ORCHESTRATOR
# =============================================================================


class TransitionOrchestrator:
    """Композиция Value Splitter + State Machine в атомарные переходы.

    Stateless относительно сертификатов: хранит только реестр rule tables
    (append-only) и настройки, поэтому безопасен для конкурентных вызовов.
    """

    def __init__(
        self,
        registry: Optional[RuleTableRegistry] = None,
        settings: Optional[EngineSettings] = None,
        state_machine: Optional[CertificateStateMachine] = None,
    ):
        self.registry = registry or RuleTableRegistry()
        self.settings = settings or get_settings()
        self.state_machine = state_machine or CertificateStateMachine()

    # ------------------------------------------------------------------
    # Generic entry point
    # ------------------------------------------------------------------

    def transition(
        self,
        certificate: Optional[Certificate],
        action: CertificateAction,
        actor: Actor,
        params: TransitionParams,
    ) -> TransitionResult:
        """Выполнение перехода по действию.

        Args:
            certificate: текущий снапшот (None для PURCHASE)
            action: действие
            actor: инициатор
            params: параметры, соответствующие действию

        Raises:
            TypeError: params не соответствуют действию
            ValueError: certificate передан для PURCHASE или отсутствует для остальных
        """
        action = CertificateAction(action)
        expected = _PARAMS_BY_ACTION[action]
        if not isinstance(params, expected):
            raise TypeError(
                f"{action.value} expects {expected.__name__}, got {type(params).__name__}"
            )

        if action == CertificateAction.PURCHASE:
            if certificate is not None:
                raise ValueError("PURCHASE creates a certificate, existing snapshot given")
            return self.purchase(actor, params)

        if certificate is None:
            raise ValueError(f"{action.value} requires a certificate snapshot")
        if action == CertificateAction.GIFT:
            return self.gift(certificate, actor, params.target)
        if action == CertificateAction.STACK:
            return self.stack(certificate, actor)
        if action == CertificateAction.CASH_OUT:
            return self.cash_out(certificate, actor, params.batch_count)
        return self.sponsorship_convert(certificate, actor, params.seller)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def purchase(self, actor: Actor, params: PurchaseParams) -> TransitionResult:
        """(none) → GIFT. LV/UV split фиксируется при создании."""
        rules = self.registry.get(self.settings.active_rule_version)

        def apply():
            self.state_machine.check_creation(params.face_value, rules)
            split = split_lv_uv(params.face_value, rules)
            certificate = Certificate(
                id=params.certificate_id,
                face_value=params.face_value,
                locked_value=split.lv,
                usable_value=split.uv,
                state=CertificateState.GIFT,
                owner_id=actor.id,
                rule_version=rules.version,
                revision=0,
            )
            fact = self._fact(
                actor,
                AuditEventType.NFT_PURCHASED,
                certificate,
                {
                    "certificate_id": certificate.id,
                    "face_value": certificate.face_value,
                    "lv": split.lv,
                    "uv": split.uv,
                },
            )
            return certificate, fact, split

        return self._run(CertificateAction.PURCHASE, None, params.certificate_id, apply)

    def gift(
        self, certificate: Certificate, actor: Actor, target: Counterparty
    ) -> TransitionResult:
        """GIFT → GIFT с передачей владения коллаборатору."""

        def apply():
            rules = self._rules_for(certificate)
            rule = self.state_machine.check_gift(certificate, actor, target, rules)
            updated = self._advance(
                certificate,
                state=rule.to_state,
                owner_id=target.id,
                gifted_from_id=actor.id,
            )
            fact = self._fact(
                actor,
                AuditEventType.NFT_GIFTED,
                updated,
                {"certificate_id": certificate.id, "to": target.id},
            )
            return updated, fact, None

        return self._run(CertificateAction.GIFT, certificate, certificate.id, apply)

    def stack(self, certificate: Certificate, actor: Actor) -> TransitionResult:
        """GIFT/STACKED/DISTRIBUTION → STACKED."""

        def apply():
            rule = self.state_machine.check_stack(certificate, actor)
            updated = self._advance(certificate, state=rule.to_state)
            fact = self._fact(
                actor,
                AuditEventType.NFT_STACKED,
                updated,
                {"certificate_id": certificate.id},
            )
            return updated, fact, None

        return self._run(CertificateAction.STACK, certificate, certificate.id, apply)

    def cash_out(
        self, certificate: Certificate, actor: Actor, batch_count: int
    ) -> TransitionResult:
        """Любое не-RETIRED → RETIRED. Сплит считается от текущего usable_value."""

        def apply():
            rules = self._rules_for(certificate)
            rule = self.state_machine.check_cash_out(certificate, actor)
            split = cash_out_split(batch_count, certificate.usable_value, rules)
            updated = self._advance(certificate, state=rule.to_state)
            fact = self._fact(
                actor,
                AuditEventType.NFT_CASHED_OUT,
                updated,
                {
                    "certificate_id": certificate.id,
                    "batch_count": batch_count,
                    "collaborator_payout": split.collaborator_payout,
                    "trebal_capture": split.trebal_capture,
                },
            )
            return updated, fact, split

        return self._run(CertificateAction.CASH_OUT, certificate, certificate.id, apply)

    def sponsorship_convert(
        self, certificate: Certificate, actor: Actor, seller: Counterparty
    ) -> TransitionResult:
        """Любое не-RETIRED → DISTRIBUTION, новый владелец: продавец класса A..D."""

        def apply():
            rules = self._rules_for(certificate)
            rule, seller_class = self.state_machine.check_sponsorship(
                certificate, actor, seller, rules
            )
            split = sponsorship_split(certificate.usable_value, rules)
            allocation = distribution_internal_allocation_from_uv(
                certificate.usable_value, rules
            )
            updated = self._advance(
                certificate,
                state=rule.to_state,
                owner_id=seller.id,
                distribution_remaining_value=split.retained,
            )
            fact = self._fact(
                actor,
                AuditEventType.NFT_SPONSORSHIP_CONVERTED,
                updated,
                {
                    "certificate_id": certificate.id,
                    "seller_id": seller.id,
                    "seller_class": seller_class.value,
                    "collaborator_payout": split.collaborator,
                    "seller_instant_value": split.seller,
                    "retained": split.retained,
                    "platform_fee_from_uv": allocation.platform_fee,
                    "discount_pool_from_uv": allocation.discount_pool,
                },
            )
            return updated, fact, SponsorshipPayout(
                split=split, allocation=allocation, seller_class=seller_class
            )

        return self._run(
            CertificateAction.SPONSORSHIP_CONVERT, certificate, certificate.id, apply
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _rules_for(self, certificate: Certificate) -> RuleTable:
        """Rule table, под которой сертификат был куплен."""
        return self.registry.get(certificate.rule_version)

    def _advance(self, certificate: Certificate, **changes) -> Certificate:
        changes["revision"] = certificate.revision + 1
        return certificate.model_copy(update=changes)

    def _fact(
        self,
        actor: Actor,
        event_type: AuditEventType,
        certificate: Certificate,
        payload: dict,
    ) -> AuditFact:
        return AuditFact(
            actor_id=actor.id,
            type=event_type,
            certificate_id=certificate.id,
            payload=payload,
            rule_version=certificate.rule_version,
        )

    def _run(
        self,
        action: CertificateAction,
        certificate: Optional[Certificate],
        certificate_id: str,
        apply: Callable[[], tuple[Certificate, AuditFact, Payout]],
    ) -> TransitionResult:
        previous_state = certificate.state if certificate is not None else None

        try:
            updated, fact, payout = apply()
        except ConstitutionError as e:
            logger.warning(
                "certificate transition rejected",
                extra={
                    "certificate_id": certificate_id,
                    "action": action.value,
                    "kind": e.kind.value,
                },
            )
            return TransitionResult(
                accepted=False,
                action=action,
                previous_state=previous_state,
                new_certificate=None,
                audit_fact=None,
                payout=None,
                rejection=TransitionRejection(kind=e.kind, message=e.message),
                details=f"{action.value} rejected: {e.kind.value}: {e.message}",
            )

        if self.settings.strict_contracts:
            validate_certificate(updated.model_dump(mode="json"))
            validate_audit_fact(fact.model_dump(mode="json"))

        logger.info(
            "certificate transition accepted",
            extra={
                "certificate_id": certificate_id,
                "action": action.value,
                "from_state": previous_state.value if previous_state else None,
                "to_state": updated.state.value,
                "revision": updated.revision,
            },
        )
        from_label = previous_state.value if previous_state else "(none)"
        return TransitionResult(
            accepted=True,
            action=action,
            previous_state=previous_state,
            new_certificate=updated,
            audit_fact=fact,
            payout=payout,
            rejection=None,
            details=f"{action.value}: {from_label} → {updated.state.value}, revision={updated.revision}",
        )
