"""
Multi-hop swap routing over a staged ledger.

A path is an ordered asset sequence [a0, a1, ..., an]; hop i trades a(i) into
a(i+1) through the pool of that pair. Every hop is priced against the reserves
staged by the previous hops, so a path that crosses the same pool twice sees
its own earlier trade.

Also provides a deterministic best-route search over direct and 2-hop paths.
Ties are broken by (hop_count, path).

Complexity:
- plan_exact_in / quote_exact_out: O(len(path))
- best_path_exact_in: O(P^2) over P pools
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

from ..errors import InvalidPath, PairDoesNotExist, ZSwapError
from ..state.balances import Amount, AssetId
from ..state.ledger import LedgerChangeSet
from ..state.pools import PairKey, Pool, canonical_pair_key
from .cpmm import FEE_DENOMINATOR_BPS, compute_swap_input, compute_swap_output

logger = logging.getLogger(__name__)

DEFAULT_MAX_PATH_LENGTH = 16


@dataclass(frozen=True)
class RouteHop:
    key: PairKey
    asset_in: AssetId
    asset_out: AssetId
    amount_in: Amount
    amount_out: Amount


@dataclass(frozen=True)
class RouteQuote:
    path: Tuple[AssetId, ...]
    hops: Tuple[RouteHop, ...]

    @property
    def amount_in(self) -> Amount:
        return self.hops[0].amount_in

    @property
    def amount_out(self) -> Amount:
        return self.hops[-1].amount_out

    @property
    def amounts(self) -> List[Amount]:
        """[amount_in, out_1, ..., out_n] in the order of the path."""
        return [self.hops[0].amount_in] + [h.amount_out for h in self.hops]


def validate_path(path: Sequence[AssetId], *, max_path_length: int = DEFAULT_MAX_PATH_LENGTH) -> Tuple[AssetId, ...]:
    """
    Check path shape before any pool is touched.

    Raises:
        InvalidPath: If the path has fewer than 2 assets, more than the limit,
            or two identical consecutive assets
    """
    path = tuple(path)
    if len(path) < 2:
        raise InvalidPath(f"path needs at least 2 assets, got {len(path)}")
    if len(path) > max_path_length:
        raise InvalidPath(f"path longer than {max_path_length} assets")
    for a, b in zip(path, path[1:]):
        if a == b:
            raise InvalidPath(f"consecutive identical assets in path: {a}")
    return path


def plan_exact_in(
    changes: LedgerChangeSet,
    *,
    amount_in: Amount,
    path: Sequence[AssetId],
    fee_rate_bps: int,
    fee_denominator_bps: int = FEE_DENOMINATOR_BPS,
    max_path_length: int = DEFAULT_MAX_PATH_LENGTH,
) -> RouteQuote:
    """
    Price an exact-in swap along `path` and stage every hop's reserve update.

    Raises:
        InvalidPath: If the path shape is invalid
        PairDoesNotExist: If any hop has no pool
        InvalidAmount / InsufficientLiquidity: From the pricing engine
    """
    path = validate_path(path, max_path_length=max_path_length)
    hops: List[RouteHop] = []
    hop_in = amount_in
    for asset_in, asset_out in zip(path, path[1:]):
        key = canonical_pair_key(asset_in, asset_out)
        pool = changes.pool(key)
        reserve_in, reserve_out = pool.reserves_for(asset_in)
        hop_out = compute_swap_output(hop_in, reserve_in, reserve_out, fee_rate_bps, fee_denominator_bps)
        changes.move_reserves(key, asset_in, hop_in, hop_out)
        if changes.pool(key).get_constant_product() < pool.get_constant_product():
            raise AssertionError(f"constant product decreased on ({key.low}, {key.high})")
        logger.debug(
            "hop %s->%s: in=%d out=%d reserves=(%d, %d)",
            asset_in,
            asset_out,
            hop_in,
            hop_out,
            reserve_in,
            reserve_out,
        )
        hops.append(RouteHop(key, asset_in, asset_out, hop_in, hop_out))
        hop_in = hop_out
    return RouteQuote(path=path, hops=tuple(hops))


def quote_exact_out(
    pools: Mapping[PairKey, Pool],
    *,
    amount_out: Amount,
    path: Sequence[AssetId],
    fee_rate_bps: int,
    fee_denominator_bps: int = FEE_DENOMINATOR_BPS,
    max_path_length: int = DEFAULT_MAX_PATH_LENGTH,
) -> List[Amount]:
    """
    Required inputs, walking the path backwards from `amount_out`.

    Uses the given (committed) reserves for every hop without staging.

    Returns:
        [amount_in, ..., amount_out] in path order
    """
    path = validate_path(path, max_path_length=max_path_length)
    amounts = [amount_out]
    for asset_in, asset_out in reversed(list(zip(path, path[1:]))):
        key = canonical_pair_key(asset_in, asset_out)
        pool = pools.get(key)
        if pool is None:
            raise PairDoesNotExist(f"({key.low}, {key.high})")
        reserve_in, reserve_out = pool.reserves_for(asset_in)
        amounts.append(compute_swap_input(amounts[-1], reserve_in, reserve_out, fee_rate_bps, fee_denominator_bps))
    amounts.reverse()
    return amounts


def _quote_direct(
    pool: Pool, asset_in: AssetId, amount_in: Amount, fee_rate_bps: int, fee_denominator_bps: int
) -> Optional[Amount]:
    if pool.is_empty:
        return None
    reserve_in, reserve_out = pool.reserves_for(asset_in)
    try:
        out = compute_swap_output(amount_in, reserve_in, reserve_out, fee_rate_bps, fee_denominator_bps)
    except ZSwapError:
        return None
    return out if out > 0 else None


def best_path_exact_in(
    pools: Mapping[PairKey, Pool],
    *,
    asset_in: AssetId,
    asset_out: AssetId,
    amount_in: Amount,
    fee_rate_bps: int,
    fee_denominator_bps: int = FEE_DENOMINATOR_BPS,
) -> Optional[RouteQuote]:
    """
    Best exact-in route of up to 2 hops, or None when no funded route exists.

    Prefers the larger output, then fewer hops, then the lexicographically
    smaller path.
    """
    if amount_in <= 0 or asset_in == asset_out:
        return None

    best: Optional[RouteQuote] = None

    def _consider(q: RouteQuote) -> None:
        nonlocal best
        if best is None:
            best = q
            return
        if (-q.amount_out, len(q.hops), q.path) < (-best.amount_out, len(best.hops), best.path):
            best = q

    # 1-hop candidate
    try:
        direct_key = canonical_pair_key(asset_in, asset_out)
    except ZSwapError:
        return None
    direct = pools.get(direct_key)
    if direct is not None:
        out = _quote_direct(direct, asset_in, amount_in, fee_rate_bps, fee_denominator_bps)
        if out is not None:
            _consider(
                RouteQuote(
                    path=(asset_in, asset_out),
                    hops=(RouteHop(direct_key, asset_in, asset_out, amount_in, out),),
                )
            )

    # 2-hop candidates: asset_in -> mid -> asset_out
    for key1, p1 in sorted(pools.items()):
        if asset_in not in key1:
            continue
        mid = key1.other(asset_in)
        if mid == asset_out:
            continue
        amt_mid = _quote_direct(p1, asset_in, amount_in, fee_rate_bps, fee_denominator_bps)
        if amt_mid is None:
            continue
        key2 = canonical_pair_key(mid, asset_out)
        p2 = pools.get(key2)
        if p2 is None:
            continue
        amt_out = _quote_direct(p2, mid, amt_mid, fee_rate_bps, fee_denominator_bps)
        if amt_out is None:
            continue
        _consider(
            RouteQuote(
                path=(asset_in, mid, asset_out),
                hops=(
                    RouteHop(key1, asset_in, mid, amount_in, amt_mid),
                    RouteHop(key2, mid, asset_out, amt_mid, amt_out),
                ),
            )
        )

    return best
