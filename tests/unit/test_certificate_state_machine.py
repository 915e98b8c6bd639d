"""Тесты для Certificate State Machine.

Coverage:
- Таблица переходов (полнота, легальность)
- Порядок предусловий: RETIRED → NotOwner → IllegalTransition → действие
- Gift: роль COLLABORATOR, лимит активных сертификатов
- Sponsorship: роль SELLER, sem, класс E
"""

import pytest

from src.constitution.rule_tables import DEFAULT_RULES
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
    FaceValueNotAllowed,
    IllegalTransition,
    InvalidCounterparty,
    NotOwner,
    SellerClassNotPermitted,
)
from src.lifecycle.state_machine import (
    TRANSITION_TABLE,
    CertificateAction,
    CertificateStateMachine,
    TransitionRule,
    check_table_exhaustive,
)


def make_certificate(state=CertificateState.GIFT, owner_id="owner") -> Certificate:
    return Certificate(
        id="cert-1",
        face_value=1000,
        locked_value=100,
        usable_value=900,
        state=state,
        owner_id=owner_id,
        rule_version=DEFAULT_RULES.version,
    )


OWNER = Actor(id="owner", roles=[Role.CUSTOMER, Role.COLLABORATOR])
STRANGER = Actor(id="stranger", roles=[Role.COLLABORATOR])
COLLABORATOR = Counterparty(id="collab", roles=[Role.COLLABORATOR], active_certificate_count=0)
SELLER = Counterparty(id="seller", roles=[Role.SELLER], sem=200)


class TestTransitionTable:
    """Таблица переходов."""

    def test_exhaustive(self):
        assert set(TRANSITION_TABLE) == set(CertificateAction)

    def test_targets(self):
        assert TRANSITION_TABLE[CertificateAction.PURCHASE].to_state == CertificateState.GIFT
        assert TRANSITION_TABLE[CertificateAction.GIFT].to_state == CertificateState.GIFT
        assert TRANSITION_TABLE[CertificateAction.STACK].to_state == CertificateState.STACKED
        assert TRANSITION_TABLE[CertificateAction.CASH_OUT].to_state == CertificateState.RETIRED
        assert (
            TRANSITION_TABLE[CertificateAction.SPONSORSHIP_CONVERT].to_state
            == CertificateState.DISTRIBUTION
        )

    def test_nothing_leaves_retired(self):
        sm = CertificateStateMachine()
        for action in CertificateAction:
            assert not sm.is_legal(CertificateState.RETIRED, action)

    def test_gift_only_from_gift(self):
        sm = CertificateStateMachine()
        assert sm.is_legal(CertificateState.GIFT, CertificateAction.GIFT)
        assert not sm.is_legal(CertificateState.STACKED, CertificateAction.GIFT)
        assert not sm.is_legal(CertificateState.DISTRIBUTION, CertificateAction.GIFT)

    def test_incomplete_table_rejected(self):
        partial = {
            action: rule for action, rule in TRANSITION_TABLE.items()
            if action != CertificateAction.STACK
        }
        with pytest.raises(RuntimeError, match="STACK"):
            CertificateStateMachine(partial)

    def test_row_leaving_retired_rejected(self):
        table = dict(TRANSITION_TABLE)
        table[CertificateAction.STACK] = TransitionRule(
            action=CertificateAction.STACK,
            allowed_from=frozenset(CertificateState),
            to_state=CertificateState.STACKED,
        )
        with pytest.raises(RuntimeError, match="RETIRED"):
            check_table_exhaustive(table)


class TestCommonPreconditions:
    """Обязательные предусловия."""

    @pytest.mark.parametrize("action", [a for a in CertificateAction if a != CertificateAction.PURCHASE])
    def test_retired_rejects_every_action(self, action):
        sm = CertificateStateMachine()
        with pytest.raises(CertificateRetired):
            sm.check_common(make_certificate(CertificateState.RETIRED), action, OWNER)

    def test_retired_checked_before_owner(self):
        sm = CertificateStateMachine()
        with pytest.raises(CertificateRetired):
            sm.check_common(make_certificate(CertificateState.RETIRED), CertificateAction.STACK, STRANGER)

    def test_not_owner(self):
        sm = CertificateStateMachine()
        with pytest.raises(NotOwner):
            sm.check_stack(make_certificate(), STRANGER)

    def test_purchase_on_existing_certificate_illegal(self):
        sm = CertificateStateMachine()
        with pytest.raises(IllegalTransition):
            sm.check_common(make_certificate(), CertificateAction.PURCHASE, OWNER)

    @pytest.mark.parametrize(
        "state", [CertificateState.GIFT, CertificateState.STACKED, CertificateState.DISTRIBUTION]
    )
    def test_stack_and_cash_out_from_any_active_state(self, state):
        sm = CertificateStateMachine()
        assert sm.check_stack(make_certificate(state), OWNER).to_state == CertificateState.STACKED
        assert sm.check_cash_out(make_certificate(state), OWNER).to_state == CertificateState.RETIRED

    def test_creation_checks_face_value(self):
        sm = CertificateStateMachine()
        assert sm.check_creation(1000, DEFAULT_RULES).to_state == CertificateState.GIFT
        with pytest.raises(FaceValueNotAllowed):
            sm.check_creation(1001, DEFAULT_RULES)


class TestGiftPreconditions:
    """Предусловия подарка."""

    def test_valid(self):
        sm = CertificateStateMachine()
        rule = sm.check_gift(make_certificate(), OWNER, COLLABORATOR, DEFAULT_RULES)
        assert rule.action == CertificateAction.GIFT

    def test_target_must_be_collaborator(self):
        sm = CertificateStateMachine()
        target = Counterparty(id="c", roles=[Role.CUSTOMER])
        with pytest.raises(InvalidCounterparty):
            sm.check_gift(make_certificate(), OWNER, target, DEFAULT_RULES)

    def test_cap_reached(self):
        sm = CertificateStateMachine()
        target = Counterparty(id="c", roles=[Role.COLLABORATOR], active_certificate_count=5)
        with pytest.raises(CapacityExceeded):
            sm.check_gift(make_certificate(), OWNER, target, DEFAULT_RULES)

    def test_below_cap(self):
        sm = CertificateStateMachine()
        target = Counterparty(id="c", roles=[Role.COLLABORATOR], active_certificate_count=4)
        sm.check_gift(make_certificate(), OWNER, target, DEFAULT_RULES)

    def test_stacked_cannot_be_gifted(self):
        sm = CertificateStateMachine()
        with pytest.raises(IllegalTransition):
            sm.check_gift(make_certificate(CertificateState.STACKED), OWNER, COLLABORATOR, DEFAULT_RULES)


class TestSponsorshipPreconditions:
    """Предусловия sponsorship конверсии."""

    def test_valid_returns_class(self):
        sm = CertificateStateMachine()
        rule, seller_class = sm.check_sponsorship(make_certificate(), OWNER, SELLER, DEFAULT_RULES)
        assert rule.to_state == CertificateState.DISTRIBUTION
        assert seller_class == SellerClass.B

    def test_target_must_be_seller(self):
        sm = CertificateStateMachine()
        target = Counterparty(id="s", roles=[Role.COLLABORATOR], sem=500)
        with pytest.raises(InvalidCounterparty):
            sm.check_sponsorship(make_certificate(), OWNER, target, DEFAULT_RULES)

    def test_unknown_sem(self):
        sm = CertificateStateMachine()
        target = Counterparty(id="s", roles=[Role.SELLER])
        with pytest.raises(InvalidCounterparty):
            sm.check_sponsorship(make_certificate(), OWNER, target, DEFAULT_RULES)

    def test_class_e_rejected(self):
        sm = CertificateStateMachine()
        target = Counterparty(id="s", roles=[Role.SELLER], sem=39)
        with pytest.raises(SellerClassNotPermitted):
            sm.check_sponsorship(make_certificate(), OWNER, target, DEFAULT_RULES)
