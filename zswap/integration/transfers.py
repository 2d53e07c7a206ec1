"""
Asset transfer collaborator.

`pull` moves value from an external holder into the exchange's custody, `push`
moves it back out. Each call is all-or-nothing and raises TransferFailed on
refusal.

`reclaim` returns a push made earlier in the same operation. It is authorized by
the custody account alone, so reversing a withdrawal never depends on the
recipient's allowance.

`TransferJournal` records the transfers one operation performed so the exchange
can unwind them, in reverse order, when a later step of that operation fails.
A pull is undone by pushing the same amount back; a push is undone by reclaiming
it from the recipient.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from ..errors import CollaboratorError, CompensationFailed, InvalidAmount, TransferFailed
from ..state.balances import Address, Amount, AssetId, BalanceTable

logger = logging.getLogger(__name__)

DEFAULT_CUSTODY_ADDRESS: Address = "0x" + "5a" * 20

MAX_ALLOWANCE = 2**256 - 1


class AssetTransferService(Protocol):
    def pull(self, asset: AssetId, holder: Address, amount: Amount) -> None:
        ...

    def push(self, asset: AssetId, holder: Address, amount: Amount) -> None:
        ...

    def reclaim(self, asset: AssetId, holder: Address, amount: Amount) -> None:
        ...


@dataclass(frozen=True)
class TransferRecord:
    kind: str  # "pull" | "push"
    asset: AssetId
    holder: Address
    amount: Amount


class TransferJournal:
    """Transfers performed by one in-flight operation."""

    def __init__(self, service: AssetTransferService) -> None:
        self.service = service
        self.records: List[TransferRecord] = []

    def pull(self, asset: AssetId, holder: Address, amount: Amount) -> None:
        self.service.pull(asset, holder, amount)
        self.records.append(TransferRecord("pull", asset, holder, amount))

    def push(self, asset: AssetId, holder: Address, amount: Amount) -> None:
        self.service.push(asset, holder, amount)
        self.records.append(TransferRecord("push", asset, holder, amount))

    def unwind(self) -> None:
        """
        Reverse every recorded transfer, newest first.

        A reversal that is refused does not stop the others.

        Raises:
            CompensationFailed: Listing the transfers that are still in place
        """
        stuck: List[TransferRecord] = []
        while self.records:
            record = self.records.pop()
            try:
                if record.kind == "pull":
                    self.service.push(record.asset, record.holder, record.amount)
                else:
                    self.service.reclaim(record.asset, record.holder, record.amount)
            except CollaboratorError:
                logger.exception("could not reverse %r", record)
                stuck.append(record)
                continue
            logger.debug("unwound %s of %d %s for %s", record.kind, record.amount, record.asset, record.holder)
        if stuck:
            stuck.reverse()
            self.records = stuck
            raise CompensationFailed(stuck)


TransferHook = Callable[[str, AssetId, Address, Amount], None]


class InMemoryTransferService:
    """
    Fungible-token ledger with ERC20-style allowances toward one custody account.

    `pull` needs the holder to have approved the custody account; `push` spends
    the custody account's own balance and `reclaim` takes a push back without
    touching allowances. An optional `hook` runs before each
    transfer is applied, the way a token callback would.
    """

    def __init__(self, custody: Address = DEFAULT_CUSTODY_ADDRESS, *, hook: Optional[TransferHook] = None) -> None:
        self.custody = custody
        self.hook = hook
        self.balances = BalanceTable()
        self._allowances: Dict[Tuple[Address, AssetId], Amount] = {}

    def mint(self, asset: AssetId, holder: Address, amount: Amount) -> None:
        if amount <= 0:
            raise InvalidAmount(f"mint amount must be positive: {amount}")
        self.balances.add(holder, asset, amount)

    def approve(self, holder: Address, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise InvalidAmount(f"allowance must be non-negative: {amount}")
        self._allowances[(holder, asset)] = amount

    def allowance(self, holder: Address, asset: AssetId) -> Amount:
        return self._allowances.get((holder, asset), 0)

    def balance_of(self, holder: Address, asset: AssetId) -> Amount:
        return self.balances.get(holder, asset)

    def pull(self, asset: AssetId, holder: Address, amount: Amount) -> None:
        self._check_amount(amount)
        if self.hook is not None:
            self.hook("pull", asset, holder, amount)
        allowance = self.allowance(holder, asset)
        if allowance < amount:
            raise TransferFailed(f"allowance {allowance} < {amount} for {holder} on {asset}")
        balance = self.balances.get(holder, asset)
        if balance < amount:
            raise TransferFailed(f"balance {balance} < {amount} for {holder} on {asset}")
        self.balances.move(asset, holder, self.custody, amount)
        if allowance != MAX_ALLOWANCE:
            self._allowances[(holder, asset)] = allowance - amount

    def push(self, asset: AssetId, holder: Address, amount: Amount) -> None:
        self._check_amount(amount)
        if self.hook is not None:
            self.hook("push", asset, holder, amount)
        balance = self.balances.get(self.custody, asset)
        if balance < amount:
            raise TransferFailed(f"custody balance {balance} < {amount} on {asset}")
        self.balances.move(asset, self.custody, holder, amount)

    def reclaim(self, asset: AssetId, holder: Address, amount: Amount) -> None:
        self._check_amount(amount)
        if self.hook is not None:
            self.hook("reclaim", asset, holder, amount)
        balance = self.balances.get(holder, asset)
        if balance < amount:
            raise TransferFailed(f"balance {balance} < {amount} for {holder} on {asset}, cannot reclaim")
        self.balances.move(asset, holder, self.custody, amount)

    @staticmethod
    def _check_amount(amount: Amount) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise TransferFailed(f"invalid transfer amount: {amount!r}")
