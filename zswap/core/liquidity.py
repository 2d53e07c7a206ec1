"""
Liquidity math: ratio-preserving deposits, share minting and share burning.

Pure functions with explicit rounding rules (floor everywhere, so the pool keeps
the dust). Amounts are passed in whatever orientation the caller uses; the
exchange maps them onto the canonical (low, high) sides.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from ..errors import (
    ExcessiveInput,
    InsufficientAmount,
    InsufficientLiquidity,
    InsufficientLiquidityMinted,
    InvalidAmount,
)
from ..state.balances import Amount
from .cpmm import _require_int, quote

# Shares permanently withheld from the first depositor of every pool.
MINIMUM_LIQUIDITY = 1000


@dataclass(frozen=True)
class MintResult:
    shares: Amount
    locked_shares: Amount


def optimal_deposit(
    *,
    reserve_a: Amount,
    reserve_b: Amount,
    amount_a_desired: Amount,
    amount_b_desired: Amount,
    amount_a_min: Amount,
    amount_b_min: Amount,
) -> Tuple[Amount, Amount]:
    """
    Choose the deposit amounts that preserve the current price ratio.

    An empty pool takes the desired amounts as-is. Otherwise A is held fixed and
    B is quoted; if that needs more B than desired, B is held fixed instead.

    Returns:
        (amount_a, amount_b) actually deposited

    Raises:
        InvalidAmount: If a desired amount is not positive or a minimum is negative
        InsufficientAmount: If the chosen amount for a side is below its minimum
        ExcessiveInput: If neither side can be held fixed within the desired amounts
    """
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("amount_a_desired", amount_a_desired),
        ("amount_b_desired", amount_b_desired),
        ("amount_a_min", amount_a_min),
        ("amount_b_min", amount_b_min),
    ):
        _require_int(name, v)

    if amount_a_desired <= 0 or amount_b_desired <= 0:
        raise InvalidAmount(f"desired amounts must be positive: ({amount_a_desired}, {amount_b_desired})")
    if amount_a_min < 0 or amount_b_min < 0:
        raise InvalidAmount(f"minimum amounts must be non-negative: ({amount_a_min}, {amount_b_min})")

    if reserve_a == 0 and reserve_b == 0:
        return amount_a_desired, amount_b_desired

    amount_b_optimal = quote(amount_a_desired, reserve_a, reserve_b)
    if amount_b_optimal <= amount_b_desired:
        if amount_b_optimal < amount_b_min:
            raise InsufficientAmount(f"amount_b ({amount_b_optimal}) < amount_b_min ({amount_b_min})")
        return amount_a_desired, amount_b_optimal

    amount_a_optimal = quote(amount_b_desired, reserve_b, reserve_a)
    if amount_a_optimal > amount_a_desired:
        raise ExcessiveInput(f"amount_a ({amount_a_optimal}) > amount_a_desired ({amount_a_desired})")
    if amount_a_optimal < amount_a_min:
        raise InsufficientAmount(f"amount_a ({amount_a_optimal}) < amount_a_min ({amount_a_min})")
    return amount_a_optimal, amount_b_desired


def compute_shares_minted(
    *,
    amount_low: Amount,
    amount_high: Amount,
    reserve_low: Amount,
    reserve_high: Amount,
    total_shares: Amount,
    minimum_liquidity: Amount = MINIMUM_LIQUIDITY,
) -> MintResult:
    """
    Shares minted for a deposit.

    First deposit (total_shares == 0):
        shares = isqrt(amount_low * amount_high) - minimum_liquidity
        (the minimum_liquidity shares are locked forever)

    Subsequent deposits:
        shares = min(amount_low * total_shares // reserve_low,
                     amount_high * total_shares // reserve_high)

    Raises:
        InsufficientLiquidityMinted: If the computed share amount is not positive,
            including a first deposit too small to clear the lock
    """
    for name, v in (
        ("amount_low", amount_low),
        ("amount_high", amount_high),
        ("reserve_low", reserve_low),
        ("reserve_high", reserve_high),
        ("total_shares", total_shares),
        ("minimum_liquidity", minimum_liquidity),
    ):
        _require_int(name, v)
    if amount_low <= 0 or amount_high <= 0:
        raise InvalidAmount(f"deposit amounts must be positive: ({amount_low}, {amount_high})")
    if reserve_low < 0 or reserve_high < 0 or total_shares < 0 or minimum_liquidity < 0:
        raise ValueError("pool state must be non-negative")

    if total_shares == 0:
        # Compared before subtracting so an undersized first deposit is rejected
        # rather than producing a negative share count.
        root = math.isqrt(amount_low * amount_high)
        if root <= minimum_liquidity:
            raise InsufficientLiquidityMinted(
                f"isqrt({amount_low} * {amount_high}) = {root} <= {minimum_liquidity}"
            )
        return MintResult(shares=root - minimum_liquidity, locked_shares=minimum_liquidity)

    if reserve_low == 0 or reserve_high == 0:
        raise InsufficientLiquidity("pool has shares but an empty reserve")

    shares = min(
        (amount_low * total_shares) // reserve_low,
        (amount_high * total_shares) // reserve_high,
    )
    if shares <= 0:
        raise InsufficientLiquidityMinted(f"deposit too small: {shares} shares")
    return MintResult(shares=shares, locked_shares=0)


def compute_withdrawal(
    *,
    shares: Amount,
    reserve_low: Amount,
    reserve_high: Amount,
    total_shares: Amount,
) -> Tuple[Amount, Amount]:
    """
    Reserves released by burning `shares` (floor rounding).

        amount_low = shares * reserve_low // total_shares
        amount_high = shares * reserve_high // total_shares
    """
    for name, v in (
        ("shares", shares),
        ("reserve_low", reserve_low),
        ("reserve_high", reserve_high),
        ("total_shares", total_shares),
    ):
        _require_int(name, v)

    if shares <= 0:
        raise InvalidAmount(f"share amount must be positive: {shares}")
    if total_shares <= 0:
        raise InsufficientLiquidity("pool has no shares")
    if shares > total_shares:
        raise InsufficientLiquidity(f"cannot burn more than total_shares: {shares} > {total_shares}")

    amount_low = (shares * reserve_low) // total_shares
    amount_high = (shares * reserve_high) // total_shares
    return amount_low, amount_high
