"""
Ledger snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / snapshot distribution.
- Round-trippable into a `PairLedger`.
- Explicit versioning for future formats.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..core.fees import MAX_FEE_RATE_BPS
from ..state import canonical
from ..state.ledger import LedgerState, PairLedger
from ..state.pools import PairKey, Pool, canonical_pair_key
from ..state.positions import SHARE_RATIO_SCALE, DepositorPosition, PositionTable

LEDGER_SNAPSHOT_VERSION = 1


def _require_str(value: Any, *, name: str, max_len: int = 512) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


def _require_list(snapshot: Mapping[str, Any], name: str, *, max_items: int) -> list:
    entries = snapshot.get(name)
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise TypeError(f"snapshot.{name} must be a list")
    if len(entries) > max_items:
        raise ValueError(f"too many {name} entries: {len(entries)} > {max_items}")
    return entries


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Deterministic, versioned snapshot of committed ledger state.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical.canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        return canonical.commitment_bytes("ledger_snapshot", self.data, version=self.version)

    def commitment_hex(self) -> str:
        return canonical.commitment_hex("ledger_snapshot", self.data, version=self.version)


def snapshot_from_ledger(ledger: PairLedger, *, version: int = LEDGER_SNAPSHOT_VERSION) -> LedgerSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    state = ledger.state
    pools_entries = [
        {
            "asset_low": key.low,
            "asset_high": key.high,
            "reserve_low": int(pool.reserve_low),
            "reserve_high": int(pool.reserve_high),
            "total_shares": int(pool.total_shares),
        }
        for key, pool in state.pools.items()
    ]
    pools_entries.sort(key=lambda e: (e["asset_low"], e["asset_high"]))

    positions_entries = [
        {
            "asset_low": key.low,
            "asset_high": key.high,
            "depositor": depositor,
            "share_amount": int(position.share_amount),
            "share_ratio": int(position.share_ratio),
        }
        for (key, depositor), position in state.positions.items()
    ]
    positions_entries.sort(key=lambda e: (e["asset_low"], e["asset_high"], e["depositor"]))

    data: Dict[str, Any] = {
        "version": int(version),
        "fee_rate_bps": int(state.fee_rate_bps),
        "share_ratio_scale": int(ledger.share_ratio_scale),
        "pools": pools_entries,
        "positions": positions_entries,
    }
    return LedgerSnapshot(version=version, data=data)


def ledger_from_snapshot(
    snapshot: Mapping[str, Any],
    *,
    max_pools: int = 50_000,
    max_positions: int = 200_000,
    max_fee_rate_bps: int = MAX_FEE_RATE_BPS,
) -> PairLedger:
    """
    Rebuild a ledger from `LedgerSnapshot.data`.

    The fee rate must not exceed `max_fee_rate_bps`. Pool invariants are
    re-checked on load, and every pair's share total must equal the sum of its
    recorded positions.
    """
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")

    version = snapshot.get("version", LEDGER_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != LEDGER_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    fee_rate_bps = _require_int(snapshot.get("fee_rate_bps"), name="fee_rate_bps")
    if fee_rate_bps > max_fee_rate_bps:
        raise ValueError(f"fee_rate_bps {fee_rate_bps} exceeds the ceiling of {max_fee_rate_bps}")
    share_ratio_scale = _require_int(snapshot.get("share_ratio_scale", SHARE_RATIO_SCALE), name="share_ratio_scale")
    if share_ratio_scale == 0:
        raise ValueError("share_ratio_scale must be positive")

    pools: Dict[PairKey, Pool] = {}
    for entry in _require_list(snapshot, "pools", max_items=max_pools):
        if not isinstance(entry, Mapping):
            raise TypeError("snapshot.pools entries must be objects")
        low = _require_str(entry.get("asset_low"), name="pool.asset_low")
        high = _require_str(entry.get("asset_high"), name="pool.asset_high")
        key = canonical_pair_key(low, high)
        if key != (low, high):
            raise ValueError(f"pool entry not in canonical order: ({low}, {high})")
        if key in pools:
            raise ValueError("duplicate pool entry (asset_low, asset_high)")
        pools[key] = Pool(
            key=key,
            reserve_low=_require_int(entry.get("reserve_low", 0), name="reserve_low"),
            reserve_high=_require_int(entry.get("reserve_high", 0), name="reserve_high"),
            total_shares=_require_int(entry.get("total_shares", 0), name="total_shares"),
        )

    positions = PositionTable()
    seen: set[tuple[PairKey, str]] = set()
    for entry in _require_list(snapshot, "positions", max_items=max_positions):
        if not isinstance(entry, Mapping):
            raise TypeError("snapshot.positions entries must be objects")
        key = PairKey(
            _require_str(entry.get("asset_low"), name="position.asset_low"),
            _require_str(entry.get("asset_high"), name="position.asset_high"),
        )
        if key not in pools:
            raise ValueError(f"position references unknown pair ({key.low}, {key.high})")
        depositor = _require_str(entry.get("depositor"), name="position.depositor")
        if (key, depositor) in seen:
            raise ValueError("duplicate position entry (pair, depositor)")
        seen.add((key, depositor))
        positions.set(
            key,
            depositor,
            DepositorPosition(
                share_amount=_require_int(entry.get("share_amount", 0), name="share_amount"),
                share_ratio=_require_int(entry.get("share_ratio", 0), name="share_ratio"),
            ),
        )

    for key, pool in pools.items():
        recorded = positions.total_for(key)
        if recorded != pool.total_shares:
            raise ValueError(
                f"positions of ({key.low}, {key.high}) sum to {recorded}, pool has {pool.total_shares}"
            )

    state = LedgerState(pools=pools, positions=positions, fee_rate_bps=fee_rate_bps)
    return PairLedger.from_state(state, share_ratio_scale=share_ratio_scale)
