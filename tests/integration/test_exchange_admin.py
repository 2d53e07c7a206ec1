# [TESTER] v1

from __future__ import annotations

import pytest

from zswap.core.events import FeeUpdated
from zswap.errors import FeeTooHigh, Unauthorized
from zswap.integration import FEE_SETTER_ROLE, ExchangeConfig, InMemoryTransferService, RoleRegistry, ZSwapExchange

OWNER = "0x" + "0a" * 20
MALLORY = "0x" + "66" * 20


def _exchange(config: ExchangeConfig = None):
    roles = RoleRegistry(OWNER)
    exchange = ZSwapExchange(
        transfers=InMemoryTransferService(),
        authorization=roles,
        config=config or ExchangeConfig(),
    )
    return exchange, roles


def test_default_fee_rate() -> None:
    exchange, _ = _exchange()
    assert exchange.fee_rate == 30


def test_owner_changes_fee_and_event_is_logged() -> None:
    exchange, _ = _exchange()
    assert exchange.set_fee_rate(50, OWNER) == 30
    assert exchange.fee_rate == 50
    assert exchange.events.of_type(FeeUpdated) == [FeeUpdated(30, 50)]


def test_fee_ceiling_is_inclusive() -> None:
    exchange, _ = _exchange()
    exchange.set_fee_rate(500, OWNER)
    assert exchange.fee_rate == 500
    with pytest.raises(FeeTooHigh) as excinfo:
        exchange.set_fee_rate(501, OWNER)
    assert excinfo.value.reason == "ZSwap: FEE_TOO_HIGH"
    assert exchange.fee_rate == 500


def test_unauthorized_caller_is_rejected_before_validation() -> None:
    exchange, _ = _exchange()
    with pytest.raises(Unauthorized):
        exchange.set_fee_rate(50, MALLORY)
    with pytest.raises(Unauthorized):
        exchange.set_fee_rate(501, MALLORY)
    assert exchange.fee_rate == 30
    assert len(exchange.events) == 0


def test_granted_role_allows_fee_changes() -> None:
    exchange, roles = _exchange()
    with pytest.raises(Unauthorized):
        roles.grant_role(MALLORY, FEE_SETTER_ROLE, MALLORY)
    roles.grant_role(OWNER, FEE_SETTER_ROLE, MALLORY)
    exchange.set_fee_rate(10, MALLORY)
    assert exchange.fee_rate == 10

    roles.revoke_role(OWNER, FEE_SETTER_ROLE, MALLORY)
    with pytest.raises(Unauthorized):
        exchange.set_fee_rate(20, MALLORY)


def test_ownership_transfer_moves_admin_rights() -> None:
    exchange, roles = _exchange()
    roles.transfer_ownership(OWNER, MALLORY)
    exchange.set_fee_rate(40, MALLORY)
    with pytest.raises(Unauthorized):
        exchange.set_fee_rate(30, OWNER)


def test_configured_ceiling_applies() -> None:
    exchange, _ = _exchange(ExchangeConfig(max_fee_rate_bps=100))
    with pytest.raises(FeeTooHigh):
        exchange.set_fee_rate(101, OWNER)


def test_new_fee_prices_the_next_swap() -> None:
    exchange, _ = _exchange()
    exchange.set_fee_rate(0, OWNER)
    assert exchange.compute_swap_output(100, 1000, 1000) == 90
    assert exchange.compute_swap_output(1000, 1000, 1000) == 500


def test_fee_change_uses_the_configured_denominator() -> None:
    exchange, _ = _exchange(ExchangeConfig(fee_denominator_bps=100_000, max_fee_rate_bps=20_000))
    assert exchange.set_fee_rate(15_000, OWNER) == 30
    assert exchange.fee_rate == 15_000
    assert exchange.events.of_type(FeeUpdated) == [FeeUpdated(30, 15_000)]
    with pytest.raises(FeeTooHigh):
        exchange.set_fee_rate(20_001, OWNER)
