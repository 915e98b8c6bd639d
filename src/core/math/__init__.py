"""
Core math modules

Целочисленная денежная арифметика с явным направлением округления.
"""

from src.core.math.basis_points import (
    BPS_DENOMINATOR,
    complement_bps,
    mul_bps_floor,
    mul_bps_round_half_up,
    validate_amount,
    validate_bps,
)

__all__ = [
    # Constants
    "BPS_DENOMINATOR",
    # Validation
    "validate_amount",
    "validate_bps",
    # Arithmetic
    "complement_bps",
    "mul_bps_floor",
    "mul_bps_round_half_up",
]
