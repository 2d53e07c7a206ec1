#!/usr/bin/env python3

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from zswap.integration import (
    MAX_ALLOWANCE,
    ExchangeConfig,
    InMemoryTransferService,
    RoleRegistry,
    ZSwapExchange,
    snapshot_from_ledger,
)
from zswap.errors import ZSwapError


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    owner = "0x" + "0a" * 20
    trader = "0x" + "0b" * 20
    usd = "0x" + "11" * 20
    util = "0x" + "22" * 20

    transfers = InMemoryTransferService()
    exchange = ZSwapExchange(
        transfers=transfers,
        authorization=RoleRegistry(owner),
        config=ExchangeConfig.from_env(),
    )

    for holder in (owner, trader):
        for asset in (usd, util):
            transfers.mint(asset, holder, 10_000_000)
            transfers.approve(holder, asset, MAX_ALLOWANCE)

    try:
        exchange.create_pair(usd, util)
        amount_a, amount_b, shares = exchange.add_liquidity(usd, util, 1_000_000, 2_000_000, 0, 0, owner)
    except ZSwapError as exc:
        print(f"[offline-demo] FAIL (seed pool): {exc}")
        return 1

    pool = exchange.get_pool(usd, util)
    print(f"[offline-demo] deposited=({amount_a}, {amount_b}) shares={shares} total_shares={pool.total_shares}")
    print(f"[offline-demo] pool reserves after seed: low={pool.reserve_low} high={pool.reserve_high}")

    before_in = transfers.balance_of(trader, usd)
    before_out = transfers.balance_of(trader, util)
    print(f"[offline-demo] quoted: {exchange.get_amounts_out(10_000, [usd, util])}")

    try:
        amounts = exchange.swap(10_000, 1, [usd, util], trader, trader)
    except ZSwapError as exc:
        print(f"[offline-demo] FAIL (swap): {exc}")
        return 1

    pool2 = exchange.get_pool(usd, util)
    print(f"[offline-demo] amounts={amounts}")
    print(f"[offline-demo] pool reserves after swap: low={pool2.reserve_low} high={pool2.reserve_high}")
    after_in = transfers.balance_of(trader, usd)
    after_out = transfers.balance_of(trader, util)
    print(f"[offline-demo] deltas: d_in={after_in - before_in} d_out={after_out - before_out}")

    snapshot = snapshot_from_ledger(exchange.ledger)
    print(f"[offline-demo] ledger commitment={snapshot.commitment_hex()}")
    print(f"[offline-demo] events={len(exchange.events)}")
    print("[offline-demo] OK: swap executed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
