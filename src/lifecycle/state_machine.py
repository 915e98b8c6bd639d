"""Certificate State Machine — жизненный цикл сертификата.

Явная таблица переходов:
- PURCHASE: (нет) → GIFT
- GIFT: GIFT → GIFT (смена владельца на коллаборатора)
- STACK: GIFT/STACKED/DISTRIBUTION → STACKED
- CASH_OUT: любое не-RETIRED → RETIRED
- SPONSORSHIP_CONVERT: любое не-RETIRED → DISTRIBUTION (владелец: продавец)

Порядок проверок (первый отказ побеждает):
1. RETIRED → CertificateRetired (для любого действия и любого инициатора)
2. Инициатор не владелец → NotOwner
3. Переход отсутствует в таблице → IllegalTransition
4. Проверки конкретного действия (роль контрагента, лимит, класс продавца)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Final, Optional

from src.constitution.rule_tables import RuleTable
from src.constitution.seller_classifier import (
    assert_seller_can_distribute,
    compute_seller_class,
)
from src.constitution.value_splitter import validate_face_value
from src.core.domain.certificate import (
    Actor,
    Certificate,
    CertificateState,
    Counterparty,
    Role,
    SellerClass,
)
from src.core.errors import (
    CapacityExceeded,
    CertificateRetired,
    IllegalTransition,
    InvalidCounterparty,
    NotOwner,
)


class CertificateAction(str, Enum):
    """Действие, инициирующее переход."""

    PURCHASE = "PURCHASE"
    GIFT = "GIFT"
    STACK = "STACK"
    CASH_OUT = "CASH_OUT"
    SPONSORSHIP_CONVERT = "SPONSORSHIP_CONVERT"


_NON_RETIRED: Final[frozenset[CertificateState]] = frozenset(
    {CertificateState.GIFT, CertificateState.STACKED, CertificateState.DISTRIBUTION}
)


@dataclass(frozen=True)
class TransitionRule:
    """Строка таблицы переходов."""

    action: CertificateAction
    allowed_from: frozenset[CertificateState]
    to_state: CertificateState
    counterparty_role: Optional[Role] = None

    @property
    def creates_certificate(self) -> bool:
        return not self.allowed_from


TRANSITION_TABLE: Final[dict[CertificateAction, TransitionRule]] = {
    CertificateAction.PURCHASE: TransitionRule(
        action=CertificateAction.PURCHASE,
        allowed_from=frozenset(),
        to_state=CertificateState.GIFT,
    ),
    CertificateAction.GIFT: TransitionRule(
        action=CertificateAction.GIFT,
        allowed_from=frozenset({CertificateState.GIFT}),
        to_state=CertificateState.GIFT,
        counterparty_role=Role.COLLABORATOR,
    ),
    CertificateAction.STACK: TransitionRule(
        action=CertificateAction.STACK,
        allowed_from=_NON_RETIRED,
        to_state=CertificateState.STACKED,
    ),
    CertificateAction.CASH_OUT: TransitionRule(
        action=CertificateAction.CASH_OUT,
        allowed_from=_NON_RETIRED,
        to_state=CertificateState.RETIRED,
    ),
    CertificateAction.SPONSORSHIP_CONVERT: TransitionRule(
        action=CertificateAction.SPONSORSHIP_CONVERT,
        allowed_from=_NON_RETIRED,
        to_state=CertificateState.DISTRIBUTION,
        counterparty_role=Role.SELLER,
    ),
}


def check_table_exhaustive(table: dict[CertificateAction, TransitionRule]) -> None:
    """
    Каждое действие должно иметь строку, и ни одна строка не выводит из RETIRED.

    Raises:
        RuntimeError: Если таблица неполна или некорректна
    """
    missing = set(CertificateAction) - set(table)
    if missing:
        raise RuntimeError(f"Transition table missing actions: {sorted(a.value for a in missing)}")
    for action, rule in table.items():
        if rule.action != action:
            raise RuntimeError(f"Transition table row {action.value} describes {rule.action.value}")
        if CertificateState.RETIRED in rule.allowed_from:
            raise RuntimeError(f"Transition {action.value} leaves terminal state RETIRED")


check_table_exhaustive(TRANSITION_TABLE)


class CertificateStateMachine:
    """Проверка легальности переходов и их предусловий.

    Stateless: каждый вызов является чистой функцией от снапшота сертификата,
    инициатора и фактов о контрагенте.
    """

    def __init__(self, table: Optional[dict[CertificateAction, TransitionRule]] = None):
        self.table = table if table is not None else TRANSITION_TABLE
        check_table_exhaustive(self.table)

    def rule_for(self, action: CertificateAction) -> TransitionRule:
        return self.table[CertificateAction(action)]

    def is_legal(self, from_state: CertificateState, action: CertificateAction) -> bool:
        return from_state in self.rule_for(action).allowed_from

    def check_creation(self, face_value: int, rules: RuleTable) -> TransitionRule:
        """Предусловия покупки: номинал в лестнице."""
        validate_face_value(face_value, rules)
        return self.rule_for(CertificateAction.PURCHASE)

    def check_common(
        self,
        certificate: Certificate,
        action: CertificateAction,
        actor: Actor,
    ) -> TransitionRule:
        """Обязательные предусловия для перехода существующего сертификата.

        Raises:
            CertificateRetired: сертификат в терминальном состоянии
            NotOwner: инициатор не владелец
            IllegalTransition: переход не разрешён из текущего состояния
        """
        rule = self.rule_for(action)

        if certificate.is_retired:
            raise CertificateRetired(f"Certificate {certificate.id} is RETIRED")

        if certificate.owner_id != actor.id:
            raise NotOwner(f"Actor {actor.id} does not own certificate {certificate.id}")

        if rule.creates_certificate or certificate.state not in rule.allowed_from:
            raise IllegalTransition(
                f"{rule.action.value} not allowed from {certificate.state.value}"
            )
        return rule

    def check_counterparty_role(self, rule: TransitionRule, counterparty: Counterparty) -> None:
        """
        Raises:
            InvalidCounterparty: у контрагента нет требуемой роли
        """
        if rule.counterparty_role is not None and not counterparty.has_role(rule.counterparty_role):
            raise InvalidCounterparty(
                f"Counterparty {counterparty.id} lacks role {rule.counterparty_role.value}"
            )

    def check_gift(
        self,
        certificate: Certificate,
        actor: Actor,
        target: Counterparty,
        rules: RuleTable,
    ) -> TransitionRule:
        rule = self.check_common(certificate, CertificateAction.GIFT, actor)
        self.check_counterparty_role(rule, target)
        if target.active_certificate_count >= rules.collaborator_active_cap:
            raise CapacityExceeded(
                f"Collaborator {target.id} already holds "
                f"{target.active_certificate_count}/{rules.collaborator_active_cap} active certificates"
            )
        return rule

    def check_stack(self, certificate: Certificate, actor: Actor) -> TransitionRule:
        return self.check_common(certificate, CertificateAction.STACK, actor)

    def check_cash_out(self, certificate: Certificate, actor: Actor) -> TransitionRule:
        # batch_count проверяется при расчёте сплита
        return self.check_common(certificate, CertificateAction.CASH_OUT, actor)

    def check_sponsorship(
        self,
        certificate: Certificate,
        actor: Actor,
        seller: Counterparty,
        rules: RuleTable,
    ) -> tuple[TransitionRule, SellerClass]:
        """
        Returns:
            (строка таблицы, класс продавца)

        Raises:
            InvalidCounterparty: нет роли SELLER или неизвестен sem
            SellerClassNotPermitted: класс продавца E
        """
        rule = self.check_common(certificate, CertificateAction.SPONSORSHIP_CONVERT, actor)
        self.check_counterparty_role(rule, seller)
        if seller.sem is None:
            raise InvalidCounterparty(f"Seller {seller.id} has no sem, class cannot be derived")
        seller_class = compute_seller_class(seller.sem, rules)
        assert_seller_can_distribute(seller_class)
        return rule, seller_class
