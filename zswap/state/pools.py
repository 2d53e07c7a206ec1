"""
Pool state for ZSwap pairs.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import NamedTuple, Tuple

from ..errors import IdenticalAssets, NullAsset
from .balances import Amount, AssetId, NULL_ASSET


class PairKey(NamedTuple):
    """Canonical pair identity: `low < high`, `low` never the null asset."""

    low: AssetId
    high: AssetId

    def side_of(self, asset: AssetId) -> int:
        """Return 0 if `asset` is the low side, 1 if it is the high side."""
        if asset == self.low:
            return 0
        if asset == self.high:
            return 1
        raise ValueError(f"Asset {asset} not in pair ({self.low}, {self.high})")

    def other(self, asset: AssetId) -> AssetId:
        return self.high if self.side_of(asset) == 0 else self.low


def canonical_pair_key(asset_a: AssetId, asset_b: AssetId) -> PairKey:
    """
    Order an unordered asset pair so (A, B) and (B, A) map to one key.

    Raises:
        IdenticalAssets: If both identifiers are equal
        NullAsset: If the low identifier is the null asset (or empty)
    """
    if asset_a == asset_b:
        raise IdenticalAssets(f"{asset_a} == {asset_b}")
    low, high = (asset_a, asset_b) if asset_a < asset_b else (asset_b, asset_a)
    if not low or low == NULL_ASSET:
        raise NullAsset(f"pair ({asset_a}, {asset_b}) contains the null asset")
    return PairKey(low, high)


@dataclass(frozen=True)
class Pool:
    """
    Reserve/share state of one canonical pair.

    Attributes:
        key: Canonical pair identity
        exists: True once the pair has been created
        reserve_low: Pooled balance of `key.low`
        reserve_high: Pooled balance of `key.high`
        total_shares: Sum of all depositor shares (locked shares included)
    """
    key: PairKey
    exists: bool = True
    reserve_low: Amount = 0
    reserve_high: Amount = 0
    total_shares: Amount = 0

    def __post_init__(self):
        """Validate pool state invariants."""
        if self.key.low >= self.key.high:
            raise ValueError(
                f"Assets must be in canonical order: {self.key.low} < {self.key.high}"
            )
        if self.reserve_low < 0 or self.reserve_high < 0:
            raise ValueError(
                f"Reserves must be non-negative: ({self.reserve_low}, {self.reserve_high})"
            )
        if self.total_shares < 0:
            raise ValueError(f"total_shares must be non-negative: {self.total_shares}")

        if self.total_shares == 0:
            if self.reserve_low != 0 or self.reserve_high != 0:
                raise ValueError("Reserves must be zero when total_shares is zero")
        elif self.reserve_low == 0 or self.reserve_high == 0:
            raise ValueError("Reserves must be positive when total_shares is positive")

    @property
    def is_empty(self) -> bool:
        return self.total_shares == 0

    def get_reserve(self, asset: AssetId) -> Amount:
        """
        Get reserve for a specific asset.

        Raises:
            ValueError: If asset is not in this pool
        """
        return self.reserve_low if self.key.side_of(asset) == 0 else self.reserve_high

    def reserves_for(self, asset_in: AssetId) -> Tuple[Amount, Amount]:
        """Return (reserve_in, reserve_out) when trading `asset_in` into this pool."""
        if self.key.side_of(asset_in) == 0:
            return self.reserve_low, self.reserve_high
        return self.reserve_high, self.reserve_low

    def with_reserve_deltas(self, asset: AssetId, delta_asset: int, delta_other: int) -> "Pool":
        """Return a copy with `asset` moved by `delta_asset` and the other side by `delta_other`."""
        if self.key.side_of(asset) == 0:
            return replace(
                self,
                reserve_low=self.reserve_low + delta_asset,
                reserve_high=self.reserve_high + delta_other,
            )
        return replace(
            self,
            reserve_low=self.reserve_low + delta_other,
            reserve_high=self.reserve_high + delta_asset,
        )

    def get_constant_product(self) -> int:
        """k = reserve_low * reserve_high."""
        return self.reserve_low * self.reserve_high

    def __repr__(self) -> str:
        return (
            f"Pool(pair=({self.key.low[:10]}..., {self.key.high[:10]}...), "
            f"reserves=({self.reserve_low}, {self.reserve_high}), "
            f"total_shares={self.total_shares})"
        )
