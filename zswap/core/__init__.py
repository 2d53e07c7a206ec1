"""
Core pricing and liquidity algorithms
"""

from .cpmm import (
    FEE_DENOMINATOR_BPS,
    quote,
    compute_swap_output,
    compute_swap_input,
)
from .liquidity import (
    MINIMUM_LIQUIDITY,
    MintResult,
    optimal_deposit,
    compute_shares_minted,
    compute_withdrawal,
)
from .fees import DEFAULT_FEE_RATE_BPS, MAX_FEE_RATE_BPS, validate_fee_rate

__all__ = [
    "FEE_DENOMINATOR_BPS",
    "quote",
    "compute_swap_output",
    "compute_swap_input",
    "MINIMUM_LIQUIDITY",
    "MintResult",
    "optimal_deposit",
    "compute_shares_minted",
    "compute_withdrawal",
    "DEFAULT_FEE_RATE_BPS",
    "MAX_FEE_RATE_BPS",
    "validate_fee_rate",
]
