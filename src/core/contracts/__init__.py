"""
Contract Validation Module

Модуль для валидации JSON контрактов между engine и слоем хранения.
"""

from .validators import (
    AuditFactValidator,
    CertificateValidator,
    ContractValidator,
    SchemaLoader,
    validate_audit_fact,
    validate_certificate,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "CertificateValidator",
    "AuditFactValidator",
    # Functions
    "validate_certificate",
    "validate_audit_fact",
]
