"""
Append-only notification log.

Events are immutable records staged inside an operation's change set and
appended here only after the operation commits, so observers never see events
for aborted work. Observers either subscribe (pushed synchronously after each
commit) or poll with a cursor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple, Union

from ..state.balances import Address, Amount, AssetId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairCreated:
    asset_low: AssetId
    asset_high: AssetId


@dataclass(frozen=True)
class LiquidityAdded:
    provider: Address
    asset_a: AssetId
    asset_b: AssetId
    amount_a: Amount
    amount_b: Amount
    shares: Amount


@dataclass(frozen=True)
class LiquidityRemoved:
    provider: Address
    asset_a: AssetId
    asset_b: AssetId
    amount_a: Amount
    amount_b: Amount
    shares: Amount


@dataclass(frozen=True)
class SwapExecuted:
    sender: Address
    asset_in: AssetId
    asset_out: AssetId
    amount_in: Amount
    amount_out: Amount
    recipient: Address


@dataclass(frozen=True)
class FeeUpdated:
    old_rate_bps: int
    new_rate_bps: int


Event = Union[PairCreated, LiquidityAdded, LiquidityRemoved, SwapExecuted, FeeUpdated]
Subscriber = Callable[[Event], None]


class EventLog:
    """Append-only list of committed events."""

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback`; returns a function that removes it again."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def record(self, events: Sequence[Event]) -> None:
        """Append committed events; called by the writer that committed them."""
        self._events.extend(events)

    def notify(self, events: Sequence[Event]) -> None:
        for event in events:
            for callback in list(self._subscribers):
                try:
                    callback(event)
                except Exception:
                    # Already committed: observer failures are logged, not raised.
                    logger.exception("event subscriber %r failed on %r", callback, event)

    def since(self, cursor: int) -> Tuple[List[Event], int]:
        """Poll: events appended after `cursor`, plus the new cursor."""
        if cursor < 0:
            raise ValueError(f"cursor must be non-negative: {cursor}")
        return list(self._events[cursor:]), len(self._events)

    def of_type(self, kind: type) -> List[Event]:
        return [e for e in self._events if isinstance(e, kind)]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(list(self._events))
