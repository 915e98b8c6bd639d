"""
In-Memory Ledger — эталонная реализация контракта хранения

Хранит снапшоты сертификатов и append-only журнал аудита. Результат
перехода фиксируется атомарно: снапшот и его AuditFact записываются
вместе или не записываются вовсе. Коммиты изолированы по сертификату
(блокировка + compare-and-swap по revision), поэтому два конкурентных
cash-out одного сертификата не могут пройти оба.

Координации между сертификатами нет: лимит коллаборатора проверяется
по счётчику, прочитанному вызывающим.
"""

import logging
import threading
from collections.abc import Iterable
from typing import Dict, List, Optional

from src.core.domain.audit import AuditFact
from src.core.domain.certificate import Actor, Certificate, Counterparty, Role
from src.lifecycle.orchestrator import (
    TransitionOrchestrator,
    TransitionParams,
    TransitionResult,
)
from src.lifecycle.state_machine import CertificateAction

logger = logging.getLogger(__name__)

# Лимит выдачи журнала аудита для администратора
RECENT_AUDIT_LIMIT = 200


# =============================================================================
# ОШИБКИ
# =============================================================================


class LedgerError(Exception):
    """Базовая ошибка хранилища"""


class CertificateNotFound(LedgerError, KeyError):
    """Сертификат с таким id не хранится"""


class DuplicateCertificate(LedgerError):
    """Покупка пытается создать уже существующий id"""


class ConcurrentModification(LedgerError):
    """Сохранённая revision отличается от той, из которой посчитан переход"""


# =============================================================================
# LEDGER
# =============================================================================


class InMemoryLedger:
    """
    Хранилище сертификатов в памяти с append-only журналом аудита.

    Используется в тестах и как исполняемое описание гарантий, которые
    обязан дать реальный слой хранения.

    Блокировки:
    - _guard защищает словари и журнал (короткие критические секции)
    - блокировка сертификата сериализует read → transition → commit

    Блокировка RETIRED сертификата освобождается после коммита: из
    терминального состояния переходов нет, а запоздавший вызов получит
    отказ CertificateRetired или ConcurrentModification.
    """

    def __init__(self):
        self._certificates: Dict[str, Certificate] = {}
        self._audit: List[AuditFact] = []
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    # ------------------------------------------------------------------
    # Чтение
    # ------------------------------------------------------------------

    def find(self, certificate_id: str) -> Optional[Certificate]:
        with self._guard:
            return self._certificates.get(certificate_id)

    def get(self, certificate_id: str) -> Certificate:
        """
        Raises:
            CertificateNotFound: Если id не хранится
        """
        certificate = self.find(certificate_id)
        if certificate is None:
            raise CertificateNotFound(certificate_id)
        return certificate

    def owned_by(self, owner_id: str) -> List[Certificate]:
        with self._guard:
            certificates = list(self._certificates.values())
        return [c for c in certificates if c.owner_id == owner_id]

    def active_certificate_count(self, owner_id: str) -> int:
        """Число не-RETIRED сертификатов во владении."""
        return sum(1 for c in self.owned_by(owner_id) if c.is_active)

    def counterparty(
        self,
        user_id: str,
        roles: Iterable[Role],
        sem: Optional[int] = None,
    ) -> Counterparty:
        """Факты о контрагенте из текущего состояния хранилища."""
        return Counterparty(
            id=user_id,
            roles=frozenset(roles),
            active_certificate_count=self.active_certificate_count(user_id),
            sem=sem,
        )

    def audit_log(self) -> tuple[AuditFact, ...]:
        """Полный журнал аудита, старые записи первыми."""
        with self._guard:
            return tuple(self._audit)

    def recent_audit(self, limit: int = RECENT_AUDIT_LIMIT) -> List[AuditFact]:
        """Новые записи первыми, не больше limit."""
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        with self._guard:
            return list(reversed(self._audit[-limit:])) if limit else []

    # ------------------------------------------------------------------
    # Запись
    # ------------------------------------------------------------------

    def commit(self, result: TransitionResult) -> Certificate:
        """
        Атомарная запись нового снапшота и его AuditFact.

        Raises:
            ValueError: Если результат является отказом
            DuplicateCertificate: Покупка существующего id
            ConcurrentModification: Устаревшая revision
        """
        if not result.accepted or result.new_certificate is None or result.audit_fact is None:
            raise ValueError("Only accepted transition results can be committed")
        with self._lock_for(result.new_certificate.id):
            return self._commit_locked(result)

    def execute(
        self,
        orchestrator: TransitionOrchestrator,
        certificate_id: str,
        action: CertificateAction,
        actor: Actor,
        params: TransitionParams,
    ) -> TransitionResult:
        """
        Чтение, переход и коммит под блокировкой сертификата.

        Отказы возвращаются без изменения хранилища.

        Raises:
            ValueError: Для PURCHASE certificate_id не совпадает с params.certificate_id
        """
        action = CertificateAction(action)
        if (
            action == CertificateAction.PURCHASE
            and getattr(params, "certificate_id", certificate_id) != certificate_id
        ):
            raise ValueError(
                f"PURCHASE locks {certificate_id!r} but creates {params.certificate_id!r}"
            )

        with self._lock_for(certificate_id):
            current = None if action == CertificateAction.PURCHASE else self.get(certificate_id)
            result = orchestrator.transition(current, action, actor, params)
            if result.accepted:
                self._commit_locked(result)
            return result

    def _commit_locked(self, result: TransitionResult) -> Certificate:
        new = result.new_certificate

        with self._guard:
            current = self._certificates.get(new.id)

            if result.action == CertificateAction.PURCHASE:
                if current is not None:
                    raise DuplicateCertificate(new.id)
            else:
                if current is None:
                    raise CertificateNotFound(new.id)
                if current.revision != result.expected_revision:
                    raise ConcurrentModification(
                        f"Certificate {new.id}: stored revision {current.revision}, "
                        f"transition computed from {result.expected_revision}"
                    )

            self._certificates[new.id] = new
            self._audit.append(result.audit_fact)
            if new.is_retired:
                self._locks.pop(new.id, None)

        logger.debug("committed %s for certificate %s (revision %d)",
                     result.audit_fact.type.value, new.id, new.revision)
        return new

    def _lock_for(self, certificate_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(certificate_id)
            if lock is None:
                lock = self._locks[certificate_id] = threading.Lock()
            return lock

    def lock_count(self) -> int:
        """Число живых блокировок сертификатов."""
        with self._guard:
            return len(self._locks)
