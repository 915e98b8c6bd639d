"""
Ошибки Constitution Engine

Каждая ошибка несёт ErrorKind, вызывающий слой ветвится по kind,
а не по классу исключения. Все ошибки терминальны для запрошенной операции:
engine не делает retry и не имеет частичного состояния.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Вид отказа, видимый вызывающему слою."""

    FACE_VALUE_NOT_ALLOWED = "FACE_VALUE_NOT_ALLOWED"
    INVALID_BATCH_COUNT = "INVALID_BATCH_COUNT"
    SELLER_CLASS_NOT_PERMITTED = "SELLER_CLASS_NOT_PERMITTED"
    NOT_OWNER = "NOT_OWNER"
    CERTIFICATE_RETIRED = "CERTIFICATE_RETIRED"
    INVALID_COUNTERPARTY = "INVALID_COUNTERPARTY"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"


class ConstitutionError(Exception):
    """
    Базовое нарушение правил конституции.

    Attributes:
        kind: вид отказа
        message: человекочитаемое описание
    """

    kind: ErrorKind

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value


class FaceValueNotAllowed(ConstitutionError):
    kind = ErrorKind.FACE_VALUE_NOT_ALLOWED


class InvalidBatchCount(ConstitutionError):
    kind = ErrorKind.INVALID_BATCH_COUNT


class SellerClassNotPermitted(ConstitutionError):
    kind = ErrorKind.SELLER_CLASS_NOT_PERMITTED


class NotOwner(ConstitutionError):
    kind = ErrorKind.NOT_OWNER


class CertificateRetired(ConstitutionError):
    kind = ErrorKind.CERTIFICATE_RETIRED


class InvalidCounterparty(ConstitutionError):
    """Роль целевого пользователя не подходит для перехода."""

    kind = ErrorKind.INVALID_COUNTERPARTY


class CapacityExceeded(ConstitutionError):
    """У коллаборатора уже максимум активных сертификатов."""

    kind = ErrorKind.CAPACITY_EXCEEDED


class IllegalTransition(ConstitutionError):
    """Переход отсутствует в таблице переходов для текущего состояния."""

    kind = ErrorKind.ILLEGAL_TRANSITION


# =============================================================================
# RULE TABLE REGISTRY
# =============================================================================


class RuleTableConflict(Exception):
    """Попытка перезаписать уже зарегистрированную версию rule table."""
    pass


class UnknownRuleVersion(KeyError):
    """Запрошенная версия rule table не зарегистрирована."""
    pass
