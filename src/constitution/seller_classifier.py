"""
Seller Classifier — класс продавца по sem

- A: sem ≥ 300, B: sem ≥ 150, C: sem ≥ 80, D: sem ≥ 40, E: иначе
- Только A..D могут получать Distribution сертификаты
- Decay sem за период по ставке класса (сам процесс decay внешний)
"""

from src.constitution.rule_tables import DEFAULT_RULES, RuleTable
from src.core.domain.certificate import SellerClass
from src.core.errors import SellerClassNotPermitted
from src.core.math.basis_points import mul_bps_floor


def compute_seller_class(sem: int, rules: RuleTable = DEFAULT_RULES) -> SellerClass:
    """
    Класс продавца по sem. Тотальная функция над целыми, не падает.

    Examples:
        >>> compute_seller_class(300)
        <SellerClass.A: 'A'>
        >>> compute_seller_class(39)
        <SellerClass.E: 'E'>
    """
    for threshold in rules.seller_class_thresholds:
        if sem >= threshold.sem_min:
            return threshold.seller_class
    return SellerClass.E


def assert_seller_can_distribute(seller_class: SellerClass) -> None:
    """
    Raises:
        SellerClassNotPermitted: Для класса E
    """
    if SellerClass(seller_class) == SellerClass.E:
        raise SellerClassNotPermitted("Seller class E is not permitted to distribute")


def is_distribution_terminal(sem: int, rules: RuleTable = DEFAULT_RULES) -> bool:
    """True если sem ниже порога, после которого продавец больше не распределяет."""
    return sem < rules.distribution_terminal_threshold


def decay_rate_bps(seller_class: SellerClass, rules: RuleTable = DEFAULT_RULES) -> int:
    return rules.decay_rate_bps(SellerClass(seller_class))


def apply_sem_decay(sem: int, rules: RuleTable = DEFAULT_RULES) -> int:
    """
    Один период decay: sem - floor(sem × rate_bps / 10_000).

    Ставка берётся по классу, вычисленному из текущего sem.
    Отрицательный sem не уменьшается.
    """
    if sem <= 0:
        return sem
    rate = decay_rate_bps(compute_seller_class(sem, rules), rules)
    return sem - mul_bps_floor(sem, rate)
