# [TESTER] v1

from __future__ import annotations

import pytest

from zswap.core.cpmm import compute_swap_input, compute_swap_output, quote
from zswap.errors import InsufficientLiquidity, InvalidAmount, InvalidFee, ZSwapError


def test_quote_is_proportional_and_floored() -> None:
    assert quote(100, 1000, 2000) == 200
    assert quote(1, 3, 2) == 0
    assert quote(7, 2, 3) == 10


def test_swap_output_at_default_fee() -> None:
    # 100 in against (1000, 1000) at 30 bps.
    assert compute_swap_output(100, 1000, 1000, 30) == 90


def test_swap_output_without_fee_is_plain_constant_product() -> None:
    assert compute_swap_output(100, 1000, 1000, 0) == 90
    assert compute_swap_output(1000, 1000, 1000, 0) == 500


def test_swap_output_may_be_zero_for_dust() -> None:
    assert compute_swap_output(1, 1_000_000, 1_000, 30) == 0


def test_swap_input_recovers_the_reference_trade() -> None:
    assert compute_swap_input(90, 1000, 1000, 30) == 100
    assert compute_swap_output(compute_swap_input(90, 1000, 1000, 30), 1000, 1000, 30) >= 90


def test_swap_input_adds_one_even_on_exact_division() -> None:
    # 3 * 1 * 10_000 / (3 * 10_000) divides exactly; the pool still takes one more.
    assert compute_swap_input(1, 3, 4, 0) == 2


def test_swap_input_rejects_draining_the_reserve() -> None:
    with pytest.raises(InsufficientLiquidity):
        compute_swap_input(1000, 1000, 1000, 30)
    with pytest.raises(InsufficientLiquidity):
        compute_swap_input(1001, 1000, 1000, 30)


@pytest.mark.parametrize("fn", [compute_swap_output, compute_swap_input])
def test_zero_reserves_are_insufficient_liquidity(fn) -> None:
    with pytest.raises(InsufficientLiquidity):
        fn(10, 0, 1000, 30)
    with pytest.raises(InsufficientLiquidity):
        fn(10, 1000, 0, 30)


@pytest.mark.parametrize("amount", [0, -1])
def test_non_positive_amounts_are_rejected(amount: int) -> None:
    with pytest.raises(InvalidAmount):
        quote(amount, 1000, 1000)
    with pytest.raises(InvalidAmount):
        compute_swap_output(amount, 1000, 1000, 30)
    with pytest.raises(InvalidAmount):
        compute_swap_input(amount, 1000, 1000, 30)


def test_fee_must_be_below_denominator() -> None:
    with pytest.raises(InvalidFee):
        compute_swap_output(100, 1000, 1000, 10_000)
    with pytest.raises(InvalidFee):
        compute_swap_output(100, 1000, 1000, -1)


def test_errors_carry_stable_reason_strings() -> None:
    with pytest.raises(ZSwapError) as excinfo:
        compute_swap_input(1000, 1000, 1000, 30)
    assert excinfo.value.reason == "ZSwap: INSUFFICIENT_LIQUIDITY"
    assert str(excinfo.value).startswith("ZSwap: INSUFFICIENT_LIQUIDITY")


def test_non_int_inputs_are_type_errors() -> None:
    with pytest.raises(TypeError):
        compute_swap_output(1.5, 1000, 1000, 30)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        compute_swap_output(True, 1000, 1000, 30)  # type: ignore[arg-type]
