"""
Domain models and value objects.

Contains certificate, participant and audit models of the constitution engine.
"""

from src.core.domain.audit import AuditEventType, AuditFact
from src.core.domain.certificate import (
    Actor,
    Certificate,
    CertificateState,
    Counterparty,
    Role,
    SellerClass,
)

__all__ = [
    # Certificate model
    "Certificate",
    "CertificateState",
    "SellerClass",
    # Participants
    "Actor",
    "Counterparty",
    "Role",
    # Audit
    "AuditFact",
    "AuditEventType",
]
