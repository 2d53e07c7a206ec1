# [TESTER] v1

"""Property checks for the pricing engine's rounding direction."""

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import assume, given, settings

from zswap.core.cpmm import compute_swap_input, compute_swap_output
from zswap.core.liquidity import compute_shares_minted, compute_withdrawal

reserves = st.integers(min_value=1, max_value=10**24)
amounts = st.integers(min_value=1, max_value=10**24)
fees = st.integers(min_value=0, max_value=500)


@settings(max_examples=300, deadline=None)
@given(amount_in=amounts, reserve_in=reserves, reserve_out=reserves, fee=fees)
def test_swap_never_decreases_constant_product(amount_in: int, reserve_in: int, reserve_out: int, fee: int) -> None:
    out = compute_swap_output(amount_in, reserve_in, reserve_out, fee)
    assert 0 <= out < reserve_out
    assert (reserve_in + amount_in) * (reserve_out - out) >= reserve_in * reserve_out


@settings(max_examples=300, deadline=None)
@given(reserve_in=reserves, reserve_out=st.integers(min_value=2, max_value=10**24), fee=fees, data=st.data())
def test_exact_out_input_always_covers_the_output(reserve_in: int, reserve_out: int, fee: int, data) -> None:
    amount_out = data.draw(st.integers(min_value=1, max_value=reserve_out - 1))
    amount_in = compute_swap_input(amount_out, reserve_in, reserve_out, fee)
    assert compute_swap_output(amount_in, reserve_in, reserve_out, fee) >= amount_out


@settings(max_examples=200, deadline=None)
@given(a=amounts, b=amounts, reserve_in=reserves, reserve_out=reserves, fee=fees)
def test_swap_output_is_monotone_in_input(a: int, b: int, reserve_in: int, reserve_out: int, fee: int) -> None:
    lo, hi = min(a, b), max(a, b)
    assert compute_swap_output(lo, reserve_in, reserve_out, fee) <= compute_swap_output(hi, reserve_in, reserve_out, fee)


@settings(max_examples=200, deadline=None)
@given(
    reserve_low=st.integers(min_value=1, max_value=10**18),
    reserve_high=st.integers(min_value=1, max_value=10**18),
    total=st.integers(min_value=1, max_value=10**18),
    data=st.data(),
)
def test_withdrawal_never_exceeds_proportional_share(reserve_low: int, reserve_high: int, total: int, data) -> None:
    shares = data.draw(st.integers(min_value=1, max_value=total))
    out_low, out_high = compute_withdrawal(
        shares=shares, reserve_low=reserve_low, reserve_high=reserve_high, total_shares=total
    )
    assert out_low * total <= shares * reserve_low
    assert out_high * total <= shares * reserve_high
    if shares == total:
        assert (out_low, out_high) == (reserve_low, reserve_high)


@settings(max_examples=200, deadline=None)
@given(
    reserve_low=st.integers(min_value=1, max_value=10**18),
    reserve_high=st.integers(min_value=1, max_value=10**18),
    total=st.integers(min_value=1, max_value=10**18),
    amount_low=st.integers(min_value=1, max_value=10**18),
    amount_high=st.integers(min_value=1, max_value=10**18),
)
def test_minted_shares_never_dilute_existing_holders(
    reserve_low: int, reserve_high: int, total: int, amount_low: int, amount_high: int
) -> None:
    shares = (amount_low * total) // reserve_low
    shares = min(shares, (amount_high * total) // reserve_high)
    assume(shares > 0)
    minted = compute_shares_minted(
        amount_low=amount_low,
        amount_high=amount_high,
        reserve_low=reserve_low,
        reserve_high=reserve_high,
        total_shares=total,
    )
    assert minted.shares == shares
    # Value per share on each side does not drop.
    assert (reserve_low + amount_low) * total >= reserve_low * (total + minted.shares)
    assert (reserve_high + amount_high) * total >= reserve_high * (total + minted.shares)
