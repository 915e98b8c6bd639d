"""
Тесты для доменных моделей

Покрывает:
- Инвариант locked_value + usable_value == face_value
- Immutability (frozen=True)
- Actor / Counterparty роли
- AuditFact сериализация
"""

import pytest
from pydantic import ValidationError

from src.core.domain import (
    Actor,
    AuditEventType,
    AuditFact,
    Certificate,
    CertificateState,
    Counterparty,
    Role,
)


@pytest.fixture
def certificate_data():
    """Валидный сертификат номиналом 1000."""
    return {
        "id": "cert-1",
        "face_value": 1000,
        "locked_value": 100,
        "usable_value": 900,
        "state": "GIFT",
        "owner_id": "customer-1",
        "rule_version": "2025.1",
    }


class TestCertificate:
    """Модель сертификата."""

    def test_create(self, certificate_data):
        certificate = Certificate(**certificate_data)
        assert certificate.state == CertificateState.GIFT
        assert certificate.revision == 0
        assert certificate.gifted_from_id is None
        assert certificate.distribution_remaining_value is None
        assert certificate.is_active

    def test_value_conservation_enforced(self, certificate_data):
        certificate_data["usable_value"] = 901
        with pytest.raises(ValidationError, match="face_value"):
            Certificate(**certificate_data)

    def test_face_value_positive(self, certificate_data):
        certificate_data.update(face_value=0, locked_value=0, usable_value=0)
        with pytest.raises(ValidationError):
            Certificate(**certificate_data)

    def test_frozen(self, certificate_data):
        certificate = Certificate(**certificate_data)
        with pytest.raises(ValidationError):
            certificate.state = CertificateState.RETIRED

    def test_retired_not_active(self, certificate_data):
        certificate_data["state"] = "RETIRED"
        certificate = Certificate(**certificate_data)
        assert certificate.is_retired
        assert not certificate.is_active

    def test_unknown_state_rejected(self, certificate_data):
        certificate_data["state"] = "BURNED"
        with pytest.raises(ValidationError):
            Certificate(**certificate_data)

    def test_json_roundtrip(self, certificate_data):
        certificate = Certificate(**certificate_data)
        restored = Certificate.model_validate_json(certificate.model_dump_json())
        assert restored == certificate


class TestParticipants:
    """Actor и Counterparty."""

    def test_actor_roles(self):
        actor = Actor(id="u1", roles=[Role.CUSTOMER, "COLLABORATOR"])
        assert actor.has_role(Role.COLLABORATOR)
        assert not actor.has_role(Role.SELLER)

    def test_counterparty_defaults(self):
        target = Counterparty(id="u2")
        assert target.active_certificate_count == 0
        assert target.sem is None
        assert not target.has_role(Role.COLLABORATOR)

    def test_counterparty_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            Counterparty(id="u2", active_certificate_count=-1)

    @pytest.mark.parametrize("field", ["active_certificate_count", "sem"])
    def test_counterparty_counts_are_strict_int(self, field):
        with pytest.raises(ValidationError):
            Counterparty(id="u2", **{field: 1.0})

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            Actor(id="")


class TestAuditFact:
    """AuditFact."""

    def test_create_and_dump(self):
        fact = AuditFact(
            actor_id="u1",
            type=AuditEventType.NFT_STACKED,
            certificate_id="cert-1",
            payload={"certificate_id": "cert-1"},
            rule_version="2025.1",
        )
        dumped = fact.model_dump(mode="json")
        assert dumped["type"] == "NFT_STACKED"
        assert dumped["payload"] == {"certificate_id": "cert-1"}

    def test_frozen(self):
        fact = AuditFact(
            actor_id="u1",
            type=AuditEventType.NFT_STACKED,
            certificate_id="cert-1",
            rule_version="2025.1",
        )
        with pytest.raises(ValidationError):
            fact.actor_id = "u2"
