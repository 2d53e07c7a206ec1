"""Exception types for the ZSwap pair ledger.

Every failure raised by the exchange derives from ``ZSwapError`` and carries a
stable ``reason`` string (``"ZSwap: PAIR_EXISTS"``) so callers can match on it
without depending on the message text.
"""

from __future__ import annotations


class ZSwapError(Exception):
    """Base class for all ledger failures."""

    reason = "ZSwap: FAILED"

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(f"{self.reason}: {message}" if message else self.reason)


# ---------------------------------------------------------------------------
# Input validation (always detected before any state is touched)
# ---------------------------------------------------------------------------


class InputError(ZSwapError, ValueError):
    """Raised when an argument is malformed."""


class IdenticalAssets(InputError):
    reason = "ZSwap: IDENTICAL_ADDRESSES"


class NullAsset(InputError):
    reason = "ZSwap: ZERO_ADDRESS"


class InvalidAmount(InputError):
    reason = "ZSwap: INVALID_AMOUNT"


class InvalidPath(InputError):
    reason = "ZSwap: INVALID_PATH"


class InvalidFee(InputError):
    reason = "ZSwap: INVALID_FEE"


# ---------------------------------------------------------------------------
# Pool / liquidity failures (detected mid-computation)
# ---------------------------------------------------------------------------


class LiquidityError(ZSwapError):
    """Raised when pool state does not admit the requested operation."""


class PairExists(LiquidityError):
    reason = "ZSwap: PAIR_EXISTS"


class PairDoesNotExist(LiquidityError):
    reason = "ZSwap: PAIR_DOES_NOT_EXIST"


class InsufficientLiquidity(LiquidityError):
    reason = "ZSwap: INSUFFICIENT_LIQUIDITY"


class InsufficientLiquidityMinted(LiquidityError):
    reason = "ZSwap: INSUFFICIENT_LIQUIDITY_MINTED"


class InsufficientAmount(LiquidityError):
    """A slippage bound (``*_min``) on a liquidity operation was not met."""

    reason = "ZSwap: INSUFFICIENT_AMOUNT"


class ExcessiveInput(LiquidityError):
    reason = "ZSwap: EXCESSIVE_INPUT_AMOUNT"


class InsufficientOutputAmount(LiquidityError):
    reason = "ZSwap: INSUFFICIENT_OUTPUT_AMOUNT"


class InsufficientShares(LiquidityError):
    reason = "ZSwap: INSUFFICIENT_SHARES"


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


class AuthorizationError(ZSwapError):
    """Raised by privileged operations."""


class Unauthorized(AuthorizationError):
    reason = "ZSwap: UNAUTHORIZED"

    def __init__(self, caller: str, role: str) -> None:
        self.caller = caller
        self.role = role
        super().__init__(f"{caller} lacks role {role}")


class FeeTooHigh(AuthorizationError):
    reason = "ZSwap: FEE_TOO_HIGH"


# ---------------------------------------------------------------------------
# Collaborators / execution
# ---------------------------------------------------------------------------


class CollaboratorError(ZSwapError):
    """Raised when an external collaborator rejects a request."""


class TransferFailed(CollaboratorError):
    reason = "ZSwap: TRANSFER_FAILED"


class ExecutionError(ZSwapError):
    """Raised when the operation boundary itself is violated."""


class ReentrantCall(ExecutionError):
    reason = "ZSwap: REENTRANT_CALL"


class CompensationFailed(ExecutionError):
    """Transfers of an aborted operation that could not be reversed."""

    reason = "ZSwap: COMPENSATION_FAILED"

    def __init__(self, records: list) -> None:
        self.records = list(records)
        super().__init__(f"{len(self.records)} transfer(s) left in place: {self.records!r}")
