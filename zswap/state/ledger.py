"""
Pair ledger: the single owner of Pool and DepositorPosition records.

Mutations never touch the committed state directly. An operation opens a
`LedgerChangeSet` (a scratch overlay), stages every pool/position/fee update in
it, and either commits the whole overlay in one step or drops it. The committed
state is an immutable `LedgerState` value swapped by a single reference
assignment, so read-only callers always see a consistent snapshot without
taking the operation lock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional, Tuple

from ..errors import InsufficientShares, PairDoesNotExist, PairExists
from .balances import Address, Amount, AssetId, NULL_ADDRESS
from .pools import PairKey, Pool, canonical_pair_key
from .positions import (
    SHARE_RATIO_SCALE,
    DepositorPosition,
    PositionTable,
    compute_share_ratio,
)

logger = logging.getLogger(__name__)

# Holder of the permanently locked minimum-liquidity shares.
LOCKED_SHARES_HOLDER: Address = NULL_ADDRESS


@dataclass(frozen=True)
class LedgerState:
    """Committed ledger contents. Never mutated once published."""

    pools: Mapping[PairKey, Pool]
    positions: PositionTable
    fee_rate_bps: int
    version: int = 0


class PairLedger:
    """Flattened pool and position storage keyed by canonical pair identity."""

    def __init__(self, fee_rate_bps: int, *, share_ratio_scale: int = SHARE_RATIO_SCALE) -> None:
        self.share_ratio_scale = share_ratio_scale
        self._state = LedgerState(pools={}, positions=PositionTable(), fee_rate_bps=fee_rate_bps)

    @classmethod
    def from_state(cls, state: LedgerState, *, share_ratio_scale: int = SHARE_RATIO_SCALE) -> "PairLedger":
        ledger = cls(state.fee_rate_bps, share_ratio_scale=share_ratio_scale)
        ledger._state = state
        return ledger

    # -- read side ---------------------------------------------------------

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def fee_rate_bps(self) -> int:
        return self._state.fee_rate_bps

    def get_pool(self, asset_a: AssetId, asset_b: AssetId) -> Pool:
        """Pool for an unordered pair; `exists=False` when the pair was never created."""
        key = canonical_pair_key(asset_a, asset_b)
        pool = self._state.pools.get(key)
        return pool if pool is not None else Pool(key=key, exists=False)

    def get_position(self, asset_a: AssetId, asset_b: AssetId, depositor: Address) -> DepositorPosition:
        key = canonical_pair_key(asset_a, asset_b)
        return self._state.positions.get(key, depositor)

    def pair_keys(self) -> List[PairKey]:
        return sorted(self._state.pools.keys())

    # -- write side --------------------------------------------------------

    def begin(self) -> "LedgerChangeSet":
        return LedgerChangeSet(ledger=self, base=self._state)

    def _commit(self, changes: "LedgerChangeSet") -> LedgerState:
        if changes.base is not self._state:
            raise RuntimeError("change set was staged against a stale ledger state")
        base = self._state
        pools = dict(base.pools)
        pools.update(changes.pools)
        positions = base.positions.copy()
        for (key, depositor), position in changes.positions.items():
            positions.set(key, depositor, position)
        fee_rate = base.fee_rate_bps if changes.fee_rate_bps is None else changes.fee_rate_bps
        self._state = LedgerState(
            pools=pools,
            positions=positions,
            fee_rate_bps=fee_rate,
            version=base.version + 1,
        )
        logger.debug(
            "ledger v%d committed: %d pool(s), %d position(s) changed",
            self._state.version,
            len(changes.pools),
            len(changes.positions),
        )
        return self._state


@dataclass
class LedgerChangeSet:
    """
    Scratch overlay of staged ledger updates.

    Reads fall through to `base` for anything not yet staged, so a multi-hop
    swap that crosses the same pool twice sees its own earlier hop.
    """

    ledger: PairLedger
    base: LedgerState
    pools: Dict[PairKey, Pool] = field(default_factory=dict)
    positions: Dict[Tuple[PairKey, Address], DepositorPosition] = field(default_factory=dict)
    fee_rate_bps: Optional[int] = None
    events: List[object] = field(default_factory=list)
    committed: bool = False

    # -- staged reads ------------------------------------------------------

    def find_pool(self, key: PairKey) -> Optional[Pool]:
        pool = self.pools.get(key)
        if pool is None:
            pool = self.base.pools.get(key)
        return pool

    def pool(self, key: PairKey) -> Pool:
        pool = self.find_pool(key)
        if pool is None:
            raise PairDoesNotExist(f"({key.low}, {key.high})")
        return pool

    def position(self, key: PairKey, depositor: Address) -> DepositorPosition:
        staged = self.positions.get((key, depositor))
        if staged is not None:
            return staged
        return self.base.positions.get(key, depositor)

    def current_fee_rate(self) -> int:
        return self.base.fee_rate_bps if self.fee_rate_bps is None else self.fee_rate_bps

    # -- staged writes -----------------------------------------------------

    def insert_pool(self, key: PairKey) -> Pool:
        if self.find_pool(key) is not None:
            raise PairExists(f"({key.low}, {key.high})")
        pool = Pool(key=key)
        self.pools[key] = pool
        return pool

    def set_fee_rate(self, fee_rate_bps: int) -> None:
        self.fee_rate_bps = fee_rate_bps

    def mint_shares(
        self,
        key: PairKey,
        depositor: Address,
        *,
        amount_low: Amount,
        amount_high: Amount,
        shares: Amount,
        locked_shares: Amount = 0,
    ) -> Pool:
        """Stage a deposit: reserves and total_shares grow, the depositor is credited."""
        pool = self.pool(key)
        new_total = pool.total_shares + shares + locked_shares
        pool = replace(
            pool,
            reserve_low=pool.reserve_low + amount_low,
            reserve_high=pool.reserve_high + amount_high,
            total_shares=new_total,
        )
        self.pools[key] = pool
        if locked_shares:
            self._credit(key, LOCKED_SHARES_HOLDER, locked_shares, new_total)
        self._credit(key, depositor, shares, new_total)
        return pool

    def burn_shares(
        self,
        key: PairKey,
        depositor: Address,
        *,
        shares: Amount,
        amount_low: Amount,
        amount_high: Amount,
    ) -> Pool:
        """Stage a withdrawal: reserves and total_shares shrink, the depositor is debited."""
        pool = self.pool(key)
        held = self.position(key, depositor).share_amount
        if held < shares:
            raise InsufficientShares(f"{depositor} holds {held} < {shares}")
        new_total = pool.total_shares - shares
        pool = replace(
            pool,
            reserve_low=pool.reserve_low - amount_low,
            reserve_high=pool.reserve_high - amount_high,
            total_shares=new_total,
        )
        self.pools[key] = pool
        self._credit(key, depositor, -shares, new_total)
        return pool

    def move_reserves(self, key: PairKey, asset_in: AssetId, amount_in: Amount, amount_out: Amount) -> Pool:
        """Stage one swap hop: `asset_in` side grows by amount_in, the other side shrinks by amount_out."""
        pool = self.pool(key).with_reserve_deltas(asset_in, amount_in, -amount_out)
        self.pools[key] = pool
        return pool

    def _credit(self, key: PairKey, depositor: Address, delta: int, total_shares: Amount) -> None:
        current = self.position(key, depositor)
        share_amount = current.share_amount + delta
        if share_amount < 0:
            raise InsufficientShares(f"{depositor} holds {current.share_amount} < {-delta}")
        ratio = compute_share_ratio(share_amount, total_shares, self.ledger.share_ratio_scale)
        self.positions[(key, depositor)] = DepositorPosition(share_amount=share_amount, share_ratio=ratio)

    # -- outcome -----------------------------------------------------------

    def emit(self, event: object) -> None:
        self.events.append(event)

    def commit(self) -> LedgerState:
        if self.committed:
            raise RuntimeError("change set already committed")
        state = self.ledger._commit(self)
        self.committed = True
        return state
