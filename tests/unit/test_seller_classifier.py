"""
Тесты для Seller Classifier

Покрывает:
- Границы классов 300/150/80/40
- Монотонность класса по sem
- Запрет распределения для класса E
- Decay sem по ставке класса
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from src.constitution.seller_classifier import (
    apply_sem_decay,
    assert_seller_can_distribute,
    compute_seller_class,
    decay_rate_bps,
    is_distribution_terminal,
)
from src.core.domain.certificate import SellerClass
from src.core.errors import ErrorKind, SellerClassNotPermitted

# Ранг класса: A лучший
_RANK = {SellerClass.A: 4, SellerClass.B: 3, SellerClass.C: 2, SellerClass.D: 1, SellerClass.E: 0}


class TestComputeSellerClass:
    """Пороговая функция класса."""

    @pytest.mark.parametrize(
        "sem, expected",
        [
            (10_000, SellerClass.A),
            (300, SellerClass.A),
            (299, SellerClass.B),
            (150, SellerClass.B),
            (149, SellerClass.C),
            (80, SellerClass.C),
            (79, SellerClass.D),
            (40, SellerClass.D),
            (39, SellerClass.E),
            (0, SellerClass.E),
            (-5, SellerClass.E),
        ],
    )
    def test_boundaries(self, sem, expected):
        assert compute_seller_class(sem) == expected

    @given(a=st.integers(min_value=-1000, max_value=1000), b=st.integers(min_value=-1000, max_value=1000))
    def test_monotone(self, a, b):
        low, high = sorted((a, b))
        assert _RANK[compute_seller_class(low)] <= _RANK[compute_seller_class(high)]


class TestAssertSellerCanDistribute:
    """Класс E не может распределять."""

    @pytest.mark.parametrize("seller_class", [SellerClass.A, SellerClass.B, SellerClass.C, SellerClass.D])
    def test_a_to_d_permitted(self, seller_class):
        assert_seller_can_distribute(seller_class)

    def test_e_rejected(self):
        with pytest.raises(SellerClassNotPermitted) as exc_info:
            assert_seller_can_distribute(compute_seller_class(39))
        assert exc_info.value.kind == ErrorKind.SELLER_CLASS_NOT_PERMITTED

    def test_string_class_accepted(self):
        with pytest.raises(SellerClassNotPermitted):
            assert_seller_can_distribute("E")


class TestDecay:
    """Decay sem и терминальный порог."""

    def test_terminal_threshold(self):
        assert is_distribution_terminal(39)
        assert not is_distribution_terminal(40)

    def test_rates(self):
        assert decay_rate_bps(SellerClass.A) == 400
        assert decay_rate_bps("E") == 0

    def test_apply_decay_class_a(self):
        # 1000 × 4% = 40
        assert apply_sem_decay(1000) == 960

    def test_apply_decay_class_d(self):
        # 50 × 15% = 7.5 → 7
        assert apply_sem_decay(50) == 43

    def test_class_e_does_not_decay(self):
        assert apply_sem_decay(30) == 30
        assert apply_sem_decay(0) == 0

    @given(sem=st.integers(min_value=0, max_value=10**6))
    def test_decay_never_increases_or_goes_negative(self, sem):
        decayed = apply_sem_decay(sem)
        assert 0 <= decayed <= sem
