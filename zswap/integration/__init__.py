"""
Exchange orchestration and external collaborators
"""

from .access import AuthorizationService, RoleRegistry
from .config import ExchangeConfig, FEE_SETTER_ROLE
from .exchange import OperationGuard, ZSwapExchange
from .snapshot import LedgerSnapshot, ledger_from_snapshot, snapshot_from_ledger
from .transfers import AssetTransferService, InMemoryTransferService, MAX_ALLOWANCE, TransferJournal

__all__ = [
    "AuthorizationService",
    "RoleRegistry",
    "ExchangeConfig",
    "FEE_SETTER_ROLE",
    "OperationGuard",
    "ZSwapExchange",
    "LedgerSnapshot",
    "ledger_from_snapshot",
    "snapshot_from_ledger",
    "AssetTransferService",
    "InMemoryTransferService",
    "MAX_ALLOWANCE",
    "TransferJournal",
]
