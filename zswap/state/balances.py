"""
Multi-asset balance tracking for external holders.

Implements BalanceTable[Address, AssetId] -> Amount. The ledger itself never
stores holder balances; this table backs the in-memory asset transfer service.
"""

from typing import Dict, Tuple


# Type aliases
Address = str  # 20-byte hex account address (0x...)
AssetId = str  # 20-byte hex asset contract address (0x...)
Amount = int  # Non-negative integer in the asset's smallest unit

# The null identifier. Never valid as an asset; holds locked liquidity shares.
NULL_ASSET = "0x" + "00" * 20
NULL_ADDRESS = NULL_ASSET


class BalanceTable:
    """
    Balance table mapping (holder, asset) -> amount.

    Zero balances are omitted to keep the table sparse.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Address, AssetId], Amount] = {}

    def get(self, holder: Address, asset: AssetId) -> Amount:
        """Get balance for (holder, asset). Returns 0 if not found."""
        return self._balances.get((holder, asset), 0)

    def set(self, holder: Address, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (holder, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((holder, asset), None)
        else:
            self._balances[(holder, asset)] = amount

    def add(self, holder: Address, asset: AssetId, delta: int) -> None:
        """
        Add delta to a balance (delta may be negative).

        Raises:
            ValueError: If the resulting balance would be negative
        """
        current = self.get(holder, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(holder, asset, new_balance)

    def subtract(self, holder: Address, asset: AssetId, delta: Amount) -> None:
        """Subtract a non-negative amount from a balance."""
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(holder, asset, -delta)

    def move(self, asset: AssetId, source: Address, target: Address, amount: Amount) -> None:
        """Move `amount` of `asset` between two holders; nothing changes on failure."""
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        self.subtract(source, asset, amount)
        self.add(target, asset, amount)

    def get_all_balances(self) -> Dict[Tuple[Address, AssetId], Amount]:
        """Return a copy of all balances."""
        return dict(self._balances)

    def total_supply(self, asset: AssetId) -> Amount:
        """Sum of all holder balances for one asset."""
        return sum(amount for (_holder, a), amount in self._balances.items() if a == asset)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
