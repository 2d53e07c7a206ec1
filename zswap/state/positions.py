"""
Depositor share positions for ZSwap pairs.

Positions are scoped per canonical pair and tracked in one flattened table
keyed by (PairKey, depositor).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from .balances import Address, Amount
from .pools import PairKey

# Fixed denominator for DepositorPosition.share_ratio.
SHARE_RATIO_SCALE = 10**18

PositionKey = Tuple[PairKey, Address]


@dataclass(frozen=True)
class DepositorPosition:
    """
    One depositor's ownership of a pool.

    `share_ratio` is `share_amount / total_shares` scaled by SHARE_RATIO_SCALE as of
    the depositor's own last add/remove. It goes stale when other depositors move
    `total_shares` and is never used to price a withdrawal.
    """
    share_amount: Amount = 0
    share_ratio: int = 0

    def __post_init__(self) -> None:
        if self.share_amount < 0:
            raise ValueError(f"share_amount must be non-negative: {self.share_amount}")
        if self.share_ratio < 0:
            raise ValueError(f"share_ratio must be non-negative: {self.share_ratio}")


EMPTY_POSITION = DepositorPosition()


def compute_share_ratio(share_amount: Amount, total_shares: Amount, scale: int = SHARE_RATIO_SCALE) -> int:
    """floor(share_amount * scale / total_shares), zero for an empty position."""
    if share_amount < 0 or total_shares < 0:
        raise ValueError("share amounts must be non-negative")
    if share_amount > total_shares:
        raise ValueError(f"share_amount exceeds total_shares: {share_amount} > {total_shares}")
    if share_amount == 0:
        return 0
    return (share_amount * scale) // total_shares


class PositionTable:
    """
    Position table mapping (pair, depositor) -> DepositorPosition.

    Notes:
    - Share amounts are always non-negative.
    - Empty positions are omitted to keep the table sparse.
    """

    def __init__(self, entries: Optional[Dict[PositionKey, DepositorPosition]] = None) -> None:
        self._positions: Dict[PositionKey, DepositorPosition] = dict(entries or {})

    def get(self, key: PairKey, depositor: Address) -> DepositorPosition:
        """Get the position for (key, depositor). Returns an empty position if not found."""
        return self._positions.get((key, depositor), EMPTY_POSITION)

    def set(self, key: PairKey, depositor: Address, position: DepositorPosition) -> None:
        if position.share_amount == 0 and position.share_ratio == 0:
            self._positions.pop((key, depositor), None)
        else:
            self._positions[(key, depositor)] = position

    def copy(self) -> "PositionTable":
        return PositionTable(self._positions)

    def items(self) -> Iterator[Tuple[PositionKey, DepositorPosition]]:
        return iter(self._positions.items())

    def total_for(self, key: PairKey) -> Amount:
        """Sum of share amounts recorded for one pair."""
        return sum(p.share_amount for (k, _d), p in self._positions.items() if k == key)

    def __len__(self) -> int:
        return len(self._positions)

    def __repr__(self) -> str:
        return f"PositionTable({len(self._positions)} entries)"
