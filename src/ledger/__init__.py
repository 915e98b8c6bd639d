"""Ledger — эталонное хранилище сертификатов и журнала аудита."""

from .memory_ledger import (
    CertificateNotFound,
    ConcurrentModification,
    DuplicateCertificate,
    InMemoryLedger,
    LedgerError,
)

__all__ = [
    "InMemoryLedger",
    "LedgerError",
    "CertificateNotFound",
    "ConcurrentModification",
    "DuplicateCertificate",
]
