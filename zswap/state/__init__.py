"""
State management for ZSwap pairs
"""

from .balances import BalanceTable, NULL_ASSET
from .pools import PairKey, Pool, canonical_pair_key
from .positions import DepositorPosition, PositionTable, SHARE_RATIO_SCALE
from .ledger import LedgerChangeSet, LedgerState, PairLedger

__all__ = [
    "BalanceTable",
    "NULL_ASSET",
    "PairKey",
    "Pool",
    "canonical_pair_key",
    "DepositorPosition",
    "PositionTable",
    "SHARE_RATIO_SCALE",
    "LedgerChangeSet",
    "LedgerState",
    "PairLedger",
]
