"""
ZSwap exchange: the transaction orchestrator.

This is the imperative shell around the pure pricing core and the pair ledger:
- Each state-mutating operation runs under the operation guard (one writer at a
  time; nested calls fail with ReentrantCall).
- All ledger updates are staged in a LedgerChangeSet and committed in one step
  only after every validation and external transfer has succeeded.
- On failure the change set is dropped and the transfers already performed by
  the operation are unwound, so nothing of the operation persists.
- Events enter the log while the guard is still held, so the log follows commit
  order; subscribers are notified after the guard is released.
- If a transfer cannot be reversed the exchange halts: every later write raises
  CompensationFailed until `unreconciled` is settled.

Read-only queries use the last committed ledger state and never take the guard.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, TypeVar

from ..core.cpmm import compute_swap_input, compute_swap_output, quote
from ..core.events import EventLog, FeeUpdated, LiquidityAdded, LiquidityRemoved, PairCreated, SwapExecuted
from ..core.fees import plan_fee_change
from ..core.liquidity import compute_shares_minted, compute_withdrawal, optimal_deposit
from ..core.routing import RouteQuote, best_path_exact_in, plan_exact_in, quote_exact_out, validate_path
from ..errors import (
    CompensationFailed,
    InsufficientAmount,
    InsufficientOutputAmount,
    InsufficientShares,
    InvalidAmount,
    NullAsset,
    ReentrantCall,
)
from ..state.balances import Address, Amount, AssetId, NULL_ADDRESS
from ..state.ledger import LedgerChangeSet, PairLedger
from ..state.pools import PairKey, Pool, canonical_pair_key
from ..state.positions import DepositorPosition
from .access import AuthorizationService
from .config import ExchangeConfig
from .transfers import AssetTransferService, TransferJournal, TransferRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationGuard:
    """
    Single-writer boundary for state-mutating operations.

    Behaves like a global write lock held for the whole operation. A second
    operation started from inside a running one (same thread, e.g. from a
    transfer callback) is rejected instead of deadlocking.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self._active: Optional[str] = None

    @property
    def active(self) -> Optional[str]:
        return self._active

    @contextmanager
    def hold(self, operation: str) -> Iterator[None]:
        me = threading.get_ident()
        if self._owner == me:
            raise ReentrantCall(f"{operation} called while {self._active} is in flight")
        with self._lock:
            self._owner = me
            self._active = operation
            try:
                yield
            finally:
                self._owner = None
                self._active = None


def _require_address(name: str, value: Address) -> None:
    if not isinstance(value, str) or not value or value == NULL_ADDRESS:
        raise NullAsset(f"{name} must be a non-null address: {value!r}")


def _require_amount(name: str, value: Amount, *, positive: bool) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an int: {value!r}")
    if value < 0 or (positive and value == 0):
        raise InvalidAmount(f"{name} must be {'positive' if positive else 'non-negative'}: {value}")


class ZSwapExchange:
    """Constant-product AMM over canonical asset pairs."""

    def __init__(
        self,
        *,
        transfers: AssetTransferService,
        authorization: AuthorizationService,
        config: Optional[ExchangeConfig] = None,
        ledger: Optional[PairLedger] = None,
        events: Optional[EventLog] = None,
    ) -> None:
        self.config = config or ExchangeConfig()
        self.transfers = transfers
        self.authorization = authorization
        self.ledger = ledger if ledger is not None else PairLedger(self.config.fee_rate_bps, share_ratio_scale=self.config.share_ratio_scale)
        self.events = events if events is not None else EventLog()
        self.unreconciled: List[TransferRecord] = []
        self._guard = OperationGuard()

    # ------------------------------------------------------------------
    # Operation boundary
    # ------------------------------------------------------------------

    def _execute(self, operation: str, body: Callable[[LedgerChangeSet, TransferJournal], T]) -> T:
        with self._guard.hold(operation):
            if self.unreconciled:
                raise CompensationFailed(self.unreconciled)
            changes = self.ledger.begin()
            journal = TransferJournal(self.transfers)
            try:
                result = body(changes, journal)
                changes.commit()
            except Exception as exc:
                logger.warning("%s aborted, rolling back: %s", operation, exc)
                self._unwind(operation, journal, exc)
                raise
            self.events.record(changes.events)
        self.events.notify(changes.events)
        return result

    def _unwind(self, operation: str, journal: TransferJournal, cause: Exception) -> None:
        if not journal.records:
            return
        try:
            journal.unwind()
        except CompensationFailed as exc:
            # Custody no longer matches the committed reserves; no further writes
            # until the listed transfers are settled by hand.
            self.unreconciled = list(exc.records)
            logger.error(
                "%s: could not unwind %d transfer(s), exchange halted: %r",
                operation,
                len(exc.records),
                exc.records,
            )
            raise exc from cause

    # ------------------------------------------------------------------
    # Read-only queries (committed state, no guard)
    # ------------------------------------------------------------------

    @property
    def fee_rate(self) -> int:
        """Current global swap fee in basis points."""
        return self.ledger.fee_rate_bps

    def get_pool(self, asset_a: AssetId, asset_b: AssetId) -> Pool:
        return self.ledger.get_pool(asset_a, asset_b)

    get_pair = get_pool

    def get_depositor_position(self, asset_a: AssetId, asset_b: AssetId, depositor: Address) -> DepositorPosition:
        return self.ledger.get_position(asset_a, asset_b, depositor)

    get_user_liquidity = get_depositor_position

    def pairs(self) -> List[PairKey]:
        return self.ledger.pair_keys()

    def quote(self, amount_in: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
        return quote(amount_in, reserve_in, reserve_out)

    def compute_swap_output(
        self,
        amount_in: Amount,
        reserve_in: Amount,
        reserve_out: Amount,
        fee_rate_bps: Optional[int] = None,
        fee_denominator_bps: Optional[int] = None,
    ) -> Amount:
        return compute_swap_output(
            amount_in,
            reserve_in,
            reserve_out,
            self.fee_rate if fee_rate_bps is None else fee_rate_bps,
            self.config.fee_denominator_bps if fee_denominator_bps is None else fee_denominator_bps,
        )

    def compute_swap_input(
        self,
        amount_out: Amount,
        reserve_in: Amount,
        reserve_out: Amount,
        fee_rate_bps: Optional[int] = None,
        fee_denominator_bps: Optional[int] = None,
    ) -> Amount:
        return compute_swap_input(
            amount_out,
            reserve_in,
            reserve_out,
            self.fee_rate if fee_rate_bps is None else fee_rate_bps,
            self.config.fee_denominator_bps if fee_denominator_bps is None else fee_denominator_bps,
        )

    def get_amounts_out(self, amount_in: Amount, path: Sequence[AssetId]) -> List[Amount]:
        """Per-hop amounts a swap along `path` would produce right now."""
        _require_amount("amount_in", amount_in, positive=True)
        scratch = self.ledger.begin()
        route = plan_exact_in(
            scratch,
            amount_in=amount_in,
            path=path,
            fee_rate_bps=scratch.current_fee_rate(),
            fee_denominator_bps=self.config.fee_denominator_bps,
            max_path_length=self.config.max_path_length,
        )
        return route.amounts

    def get_amounts_in(self, amount_out: Amount, path: Sequence[AssetId]) -> List[Amount]:
        """Per-hop inputs needed to receive `amount_out` at the end of `path`."""
        _require_amount("amount_out", amount_out, positive=True)
        state = self.ledger.state
        return quote_exact_out(
            state.pools,
            amount_out=amount_out,
            path=path,
            fee_rate_bps=state.fee_rate_bps,
            fee_denominator_bps=self.config.fee_denominator_bps,
            max_path_length=self.config.max_path_length,
        )

    def best_path_exact_in(self, asset_in: AssetId, asset_out: AssetId, amount_in: Amount) -> Optional[RouteQuote]:
        state = self.ledger.state
        return best_path_exact_in(
            state.pools,
            asset_in=asset_in,
            asset_out=asset_out,
            amount_in=amount_in,
            fee_rate_bps=state.fee_rate_bps,
            fee_denominator_bps=self.config.fee_denominator_bps,
        )

    # ------------------------------------------------------------------
    # Pair ledger operations
    # ------------------------------------------------------------------

    def create_pair(self, asset_a: AssetId, asset_b: AssetId) -> PairKey:
        """
        Register the pool for an unordered asset pair.

        Raises:
            IdenticalAssets, NullAsset: Malformed pair
            PairExists: The pair (in either order) is already registered
        """
        key = canonical_pair_key(asset_a, asset_b)

        def _body(changes: LedgerChangeSet, _journal: TransferJournal) -> PairKey:
            changes.insert_pool(key)
            changes.emit(PairCreated(asset_low=key.low, asset_high=key.high))
            return key

        result = self._execute("create_pair", _body)
        logger.info("pair created: (%s, %s)", key.low, key.high)
        return result

    def add_liquidity(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        amount_a_desired: Amount,
        amount_b_desired: Amount,
        amount_a_min: Amount,
        amount_b_min: Amount,
        depositor: Address,
    ) -> Tuple[Amount, Amount, Amount]:
        """
        Deposit both assets at the current price ratio and mint shares.

        Returns:
            (amount_a, amount_b, shares) in the caller's asset order

        Raises:
            PairDoesNotExist, InsufficientAmount, ExcessiveInput,
            InsufficientLiquidityMinted, TransferFailed
        """
        key = canonical_pair_key(asset_a, asset_b)
        _require_address("depositor", depositor)
        _require_amount("amount_a_desired", amount_a_desired, positive=True)
        _require_amount("amount_b_desired", amount_b_desired, positive=True)
        _require_amount("amount_a_min", amount_a_min, positive=False)
        _require_amount("amount_b_min", amount_b_min, positive=False)
        a_is_low = key.low == asset_a

        def _body(changes: LedgerChangeSet, journal: TransferJournal) -> Tuple[Amount, Amount, Amount]:
            pool = changes.pool(key)
            reserve_a, reserve_b = pool.reserves_for(asset_a)
            amount_a, amount_b = optimal_deposit(
                reserve_a=reserve_a,
                reserve_b=reserve_b,
                amount_a_desired=amount_a_desired,
                amount_b_desired=amount_b_desired,
                amount_a_min=amount_a_min,
                amount_b_min=amount_b_min,
            )
            amount_low, amount_high = (amount_a, amount_b) if a_is_low else (amount_b, amount_a)
            minted = compute_shares_minted(
                amount_low=amount_low,
                amount_high=amount_high,
                reserve_low=pool.reserve_low,
                reserve_high=pool.reserve_high,
                total_shares=pool.total_shares,
                minimum_liquidity=self.config.minimum_liquidity,
            )

            journal.pull(asset_a, depositor, amount_a)
            journal.pull(asset_b, depositor, amount_b)

            changes.mint_shares(
                key,
                depositor,
                amount_low=amount_low,
                amount_high=amount_high,
                shares=minted.shares,
                locked_shares=minted.locked_shares,
            )
            changes.emit(LiquidityAdded(depositor, asset_a, asset_b, amount_a, amount_b, minted.shares))
            return amount_a, amount_b, minted.shares

        result = self._execute("add_liquidity", _body)
        logger.info(
            "liquidity added to (%s, %s) by %s: amounts=(%d, %d) shares=%d",
            asset_a,
            asset_b,
            depositor,
            *result,
        )
        return result

    def remove_liquidity(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        share_amount: Amount,
        amount_a_min: Amount,
        amount_b_min: Amount,
        depositor: Address,
    ) -> Tuple[Amount, Amount]:
        """
        Burn shares for the proportional part of both reserves.

        Withdrawal amounts always come from the live share amount, total shares
        and reserves, never from the cached share ratio.

        Returns:
            (amount_a, amount_b) in the caller's asset order

        Raises:
            PairDoesNotExist, InsufficientShares, InsufficientAmount, TransferFailed
        """
        key = canonical_pair_key(asset_a, asset_b)
        _require_address("depositor", depositor)
        _require_amount("share_amount", share_amount, positive=True)
        _require_amount("amount_a_min", amount_a_min, positive=False)
        _require_amount("amount_b_min", amount_b_min, positive=False)
        a_is_low = key.low == asset_a

        def _body(changes: LedgerChangeSet, journal: TransferJournal) -> Tuple[Amount, Amount]:
            pool = changes.pool(key)
            held = changes.position(key, depositor).share_amount
            if held < share_amount:
                raise InsufficientShares(f"{depositor} holds {held} < {share_amount}")
            amount_low, amount_high = compute_withdrawal(
                shares=share_amount,
                reserve_low=pool.reserve_low,
                reserve_high=pool.reserve_high,
                total_shares=pool.total_shares,
            )
            amount_a, amount_b = (amount_low, amount_high) if a_is_low else (amount_high, amount_low)
            if amount_a < amount_a_min:
                raise InsufficientAmount(f"amount_a ({amount_a}) < amount_a_min ({amount_a_min})")
            if amount_b < amount_b_min:
                raise InsufficientAmount(f"amount_b ({amount_b}) < amount_b_min ({amount_b_min})")

            changes.burn_shares(
                key,
                depositor,
                shares=share_amount,
                amount_low=amount_low,
                amount_high=amount_high,
            )

            journal.push(asset_a, depositor, amount_a)
            journal.push(asset_b, depositor, amount_b)

            changes.emit(LiquidityRemoved(depositor, asset_a, asset_b, amount_a, amount_b, share_amount))
            return amount_a, amount_b

        result = self._execute("remove_liquidity", _body)
        logger.info(
            "liquidity removed from (%s, %s) by %s: shares=%d amounts=(%d, %d)",
            asset_a,
            asset_b,
            depositor,
            share_amount,
            *result,
        )
        return result

    # ------------------------------------------------------------------
    # Multi-hop swap
    # ------------------------------------------------------------------

    def swap(
        self,
        amount_in: Amount,
        amount_out_min: Amount,
        path: Sequence[AssetId],
        recipient: Address,
        sender: Address,
    ) -> List[Amount]:
        """
        Exact-in swap along `path`, atomically across every hop.

        Returns:
            [amount_in, out_1, ..., out_n]

        Raises:
            InvalidPath, PairDoesNotExist, InsufficientLiquidity,
            InsufficientOutputAmount, TransferFailed
        """
        path = validate_path(path, max_path_length=self.config.max_path_length)
        _require_amount("amount_in", amount_in, positive=True)
        _require_amount("amount_out_min", amount_out_min, positive=False)
        _require_address("recipient", recipient)
        _require_address("sender", sender)

        def _body(changes: LedgerChangeSet, journal: TransferJournal) -> List[Amount]:
            journal.pull(path[0], sender, amount_in)

            route = plan_exact_in(
                changes,
                amount_in=amount_in,
                path=path,
                fee_rate_bps=changes.current_fee_rate(),
                fee_denominator_bps=self.config.fee_denominator_bps,
                max_path_length=self.config.max_path_length,
            )
            for hop in route.hops:
                changes.emit(SwapExecuted(sender, hop.asset_in, hop.asset_out, hop.amount_in, hop.amount_out, recipient))

            if route.amount_out < amount_out_min:
                raise InsufficientOutputAmount(f"{route.amount_out} < {amount_out_min}")

            journal.push(path[-1], recipient, route.amount_out)
            return route.amounts

        amounts = self._execute("swap", _body)
        logger.info(
            "swap %s by %s: in=%d out=%d hops=%d",
            "->".join(path),
            sender,
            amounts[0],
            amounts[-1],
            len(amounts) - 1,
        )
        return amounts

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def set_fee_rate(self, new_rate_bps: int, caller: Address) -> int:
        """
        Change the global swap fee.

        Returns:
            The previous rate

        Raises:
            Unauthorized: If `caller` lacks the fee-setter role
            FeeTooHigh: If the rate exceeds the configured ceiling
        """

        def _body(changes: LedgerChangeSet, _journal: TransferJournal) -> int:
            self.authorization.require_role(caller, self.config.fee_setter_role)
            change = plan_fee_change(
                changes.current_fee_rate(),
                new_rate_bps,
                max_fee_rate_bps=self.config.max_fee_rate_bps,
                fee_denominator_bps=self.config.fee_denominator_bps,
            )
            changes.set_fee_rate(change.new_rate_bps)
            changes.emit(FeeUpdated(change.old_rate_bps, change.new_rate_bps))
            return change.old_rate_bps

        old = self._execute("set_fee_rate", _body)
        logger.info("fee rate changed by %s: %d -> %d bps", caller, old, new_rate_bps)
        return old
