"""
Swap fee parameters (deterministic, integer-only).

The fee is a single global rate in basis points of FEE_DENOMINATOR_BPS, taken
from the input of every swap hop and left in the pool for liquidity providers.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import FeeTooHigh, InvalidFee
from .cpmm import FEE_DENOMINATOR_BPS, _require_int

DEFAULT_FEE_RATE_BPS = 30  # 0.3%
MAX_FEE_RATE_BPS = 500  # 5%


def validate_fee_rate(
    fee_rate_bps: int,
    *,
    max_fee_rate_bps: int = MAX_FEE_RATE_BPS,
    fee_denominator_bps: int = FEE_DENOMINATOR_BPS,
) -> int:
    """
    Check a proposed global fee rate against the ceiling.

    Raises:
        InvalidFee: If the rate is negative or not below `fee_denominator_bps`
        FeeTooHigh: If the rate exceeds `max_fee_rate_bps`
    """
    _require_int("fee_rate_bps", fee_rate_bps)
    if fee_rate_bps < 0:
        raise InvalidFee(f"fee rate must be non-negative: {fee_rate_bps}")
    if fee_rate_bps >= fee_denominator_bps:
        raise InvalidFee(f"fee rate must be below {fee_denominator_bps}: {fee_rate_bps}")
    if fee_rate_bps > max_fee_rate_bps:
        raise FeeTooHigh(f"{fee_rate_bps} > {max_fee_rate_bps}")
    return fee_rate_bps


@dataclass(frozen=True)
class FeeChange:
    old_rate_bps: int
    new_rate_bps: int
    fee_denominator_bps: int = FEE_DENOMINATOR_BPS

    def __post_init__(self) -> None:
        _require_int("fee_denominator_bps", self.fee_denominator_bps)
        for name, v in (("old_rate_bps", self.old_rate_bps), ("new_rate_bps", self.new_rate_bps)):
            _require_int(name, v)
            if not (0 <= v < self.fee_denominator_bps):
                raise ValueError(f"{name} must be in [0, {self.fee_denominator_bps}): {v}")


def plan_fee_change(
    current_rate_bps: int,
    new_rate_bps: int,
    *,
    max_fee_rate_bps: int = MAX_FEE_RATE_BPS,
    fee_denominator_bps: int = FEE_DENOMINATOR_BPS,
) -> FeeChange:
    """Validate `new_rate_bps` and pair it with the rate it replaces."""
    validate_fee_rate(new_rate_bps, max_fee_rate_bps=max_fee_rate_bps, fee_denominator_bps=fee_denominator_bps)
    return FeeChange(
        old_rate_bps=current_rate_bps,
        new_rate_bps=new_rate_bps,
        fee_denominator_bps=fee_denominator_bps,
    )
