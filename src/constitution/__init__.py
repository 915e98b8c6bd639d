"""Constitution — правила распределения стоимости сертификатов.

- Rule tables: версионированные константы
- Value splitter: LV/UV, cash-out, sponsorship, внутренняя аллокация
- Seller classifier: класс продавца по sem и decay
"""

from .rule_tables import (
    DEFAULT_RULE_VERSION,
    DEFAULT_RULES,
    CashOutRow,
    DecayRate,
    RuleTable,
    RuleTableRegistry,
    SellerClassThreshold,
)
from .seller_classifier import (
    apply_sem_decay,
    assert_seller_can_distribute,
    compute_seller_class,
    decay_rate_bps,
    is_distribution_terminal,
)
from .value_splitter import (
    CashOutSplit,
    InternalAllocation,
    SponsorshipSplit,
    ValueSplit,
    cash_out_split,
    distribution_internal_allocation_from_uv,
    split_lv_uv,
    sponsorship_split,
    validate_face_value,
)

__all__ = [
    # Rule tables
    "DEFAULT_RULE_VERSION",
    "DEFAULT_RULES",
    "CashOutRow",
    "DecayRate",
    "RuleTable",
    "RuleTableRegistry",
    "SellerClassThreshold",
    # Seller classifier
    "apply_sem_decay",
    "assert_seller_can_distribute",
    "compute_seller_class",
    "decay_rate_bps",
    "is_distribution_terminal",
    # Value splitter
    "CashOutSplit",
    "InternalAllocation",
    "SponsorshipSplit",
    "ValueSplit",
    "cash_out_split",
    "distribution_internal_allocation_from_uv",
    "split_lv_uv",
    "sponsorship_split",
    "validate_face_value",
]
