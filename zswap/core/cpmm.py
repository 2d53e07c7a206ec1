"""
Constant Product Market Maker (CPMM) pricing.

This module implements the pure pricing functions of the exchange with
deterministic integer rounding.

Algorithm Design:
- Type: Integer Arithmetic / Floor Rounding
- Time Complexity: O(1) per call
- Space Complexity: O(1) auxiliary
- Invariant: (x + dx) * (y - dy) >= x * y for every priced swap; the fee is
  taken from the input and stays in the pool, so k strictly grows when fee > 0.

Rounding always favors the pool: outputs are floored, required inputs are
floored and then bumped by one.
"""

from ..errors import InsufficientLiquidity, InvalidAmount, InvalidFee
from ..state.balances import Amount

FEE_DENOMINATOR_BPS = 10_000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _check_reserves(reserve_in: Amount, reserve_out: Amount) -> None:
    _require_int("reserve_in", reserve_in)
    _require_int("reserve_out", reserve_out)
    if reserve_in < 0 or reserve_out < 0:
        raise InvalidAmount(f"reserves must be non-negative: ({reserve_in}, {reserve_out})")
    if reserve_in == 0 or reserve_out == 0:
        raise InsufficientLiquidity(f"empty reserve: ({reserve_in}, {reserve_out})")


def _check_fee(fee_rate_bps: int, fee_denominator_bps: int) -> None:
    _require_int("fee_rate_bps", fee_rate_bps)
    _require_int("fee_denominator_bps", fee_denominator_bps)
    if fee_denominator_bps <= 0:
        raise InvalidFee(f"fee denominator must be positive: {fee_denominator_bps}")
    if not (0 <= fee_rate_bps < fee_denominator_bps):
        raise InvalidFee(f"fee rate must be in [0, {fee_denominator_bps}): {fee_rate_bps}")


def quote(amount_in: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
    """
    Proportional quote at the current pool price (no fee, no price impact).

        amount_out = floor(amount_in * reserve_out / reserve_in)

    Raises:
        InvalidAmount: If amount_in is not positive
        InsufficientLiquidity: If either reserve is zero
    """
    _require_int("amount_in", amount_in)
    if amount_in <= 0:
        raise InvalidAmount(f"amount_in must be positive: {amount_in}")
    _check_reserves(reserve_in, reserve_out)
    return (amount_in * reserve_out) // reserve_in


def compute_swap_output(
    amount_in: Amount,
    reserve_in: Amount,
    reserve_out: Amount,
    fee_rate_bps: int,
    fee_denominator_bps: int = FEE_DENOMINATOR_BPS,
) -> Amount:
    """
    Output amount for an exact-in swap.

    The fee is deducted from the input before pricing:
        in_after_fee = amount_in * (fee_denominator - fee_rate)
        amount_out = floor(in_after_fee * reserve_out / (reserve_in * fee_denominator + in_after_fee))

    Args:
        amount_in: Exact input amount
        reserve_in: Current reserve of the input asset
        reserve_out: Current reserve of the output asset
        fee_rate_bps: Fee rate in basis points
        fee_denominator_bps: Basis-point denominator (10_000)

    Returns:
        Output amount (may be zero for dust-sized inputs)

    Raises:
        InvalidAmount: If amount_in is not positive
        InsufficientLiquidity: If either reserve is zero
        InvalidFee: If the fee rate is outside [0, denominator)
    """
    _require_int("amount_in", amount_in)
    if amount_in <= 0:
        raise InvalidAmount(f"amount_in must be positive: {amount_in}")
    _check_reserves(reserve_in, reserve_out)
    _check_fee(fee_rate_bps, fee_denominator_bps)

    in_after_fee = amount_in * (fee_denominator_bps - fee_rate_bps)
    numerator = in_after_fee * reserve_out
    denominator = reserve_in * fee_denominator_bps + in_after_fee
    amount_out = numerator // denominator

    if amount_out >= reserve_out:
        raise AssertionError("amount_out must stay below reserve_out")
    return amount_out


def compute_swap_input(
    amount_out: Amount,
    reserve_in: Amount,
    reserve_out: Amount,
    fee_rate_bps: int,
    fee_denominator_bps: int = FEE_DENOMINATOR_BPS,
) -> Amount:
    """
    Required input amount for an exact-out swap, rounded up.

        amount_in = floor(reserve_in * amount_out * fee_denominator
                          / ((reserve_out - amount_out) * (fee_denominator - fee_rate))) + 1

    The trailing +1 means the pool never under-collects, even when the division
    happens to be exact.

    Raises:
        InvalidAmount: If amount_out is not positive
        InsufficientLiquidity: If either reserve is zero or amount_out >= reserve_out
        InvalidFee: If the fee rate is outside [0, denominator)
    """
    _require_int("amount_out", amount_out)
    if amount_out <= 0:
        raise InvalidAmount(f"amount_out must be positive: {amount_out}")
    _check_reserves(reserve_in, reserve_out)
    _check_fee(fee_rate_bps, fee_denominator_bps)
    if amount_out >= reserve_out:
        raise InsufficientLiquidity(
            f"Cannot drain full reserve: amount_out ({amount_out}) >= reserve_out ({reserve_out})"
        )

    numerator = reserve_in * amount_out * fee_denominator_bps
    denominator = (reserve_out - amount_out) * (fee_denominator_bps - fee_rate_bps)
    return numerator // denominator + 1
