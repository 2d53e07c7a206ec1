"""
Exchange runtime configuration.

Defaults reproduce the deployed contract: 0.3% fee, 5% fee ceiling, 1000 locked
shares per pool. `ExchangeConfig.from_env()` lets an operator override them via
ZSWAP_* environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ..core.cpmm import FEE_DENOMINATOR_BPS
from ..core.fees import DEFAULT_FEE_RATE_BPS, MAX_FEE_RATE_BPS
from ..core.liquidity import MINIMUM_LIQUIDITY
from ..core.routing import DEFAULT_MAX_PATH_LENGTH
from ..state.positions import SHARE_RATIO_SCALE

FEE_SETTER_ROLE = "FEE_SETTER"


def _int_env(env: Mapping[str, str], name: str, *, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        return int(raw.strip(), 10)
    except ValueError as exc:
        raise ValueError(f"{name} must be a base-10 integer, got {raw!r}") from exc


@dataclass(frozen=True)
class ExchangeConfig:
    # Swap fee, in basis points of `fee_denominator_bps`.
    fee_rate_bps: int = DEFAULT_FEE_RATE_BPS
    fee_denominator_bps: int = FEE_DENOMINATOR_BPS
    # Ceiling enforced by set_fee_rate (and by this config).
    max_fee_rate_bps: int = MAX_FEE_RATE_BPS

    # Shares locked on the first deposit of every pool.
    minimum_liquidity: int = MINIMUM_LIQUIDITY
    # Denominator of DepositorPosition.share_ratio.
    share_ratio_scale: int = SHARE_RATIO_SCALE

    # Longest accepted swap path, in assets.
    max_path_length: int = DEFAULT_MAX_PATH_LENGTH

    # Role checked against the authorization service by set_fee_rate.
    fee_setter_role: str = FEE_SETTER_ROLE

    def __post_init__(self) -> None:
        for name in (
            "fee_rate_bps",
            "fee_denominator_bps",
            "max_fee_rate_bps",
            "minimum_liquidity",
            "share_ratio_scale",
            "max_path_length",
        ):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
        if self.fee_denominator_bps <= 0:
            raise ValueError("fee_denominator_bps must be positive")
        if not (0 <= self.max_fee_rate_bps < self.fee_denominator_bps):
            raise ValueError(f"max_fee_rate_bps must be in [0, {self.fee_denominator_bps})")
        if not (0 <= self.fee_rate_bps <= self.max_fee_rate_bps):
            raise ValueError(f"fee_rate_bps must be in [0, {self.max_fee_rate_bps}]")
        if self.minimum_liquidity < 0:
            raise ValueError("minimum_liquidity must be non-negative")
        if self.share_ratio_scale <= 0:
            raise ValueError("share_ratio_scale must be positive")
        if self.max_path_length < 2:
            raise ValueError("max_path_length must be at least 2")
        if not isinstance(self.fee_setter_role, str) or not self.fee_setter_role:
            raise ValueError("fee_setter_role must be a non-empty string")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ExchangeConfig":
        """
        Build a config from ZSWAP_FEE_RATE_BPS, ZSWAP_MAX_FEE_RATE_BPS,
        ZSWAP_MINIMUM_LIQUIDITY and ZSWAP_MAX_PATH_LENGTH.
        """
        env = os.environ if env is None else env
        return cls(
            fee_rate_bps=_int_env(env, "ZSWAP_FEE_RATE_BPS", default=DEFAULT_FEE_RATE_BPS),
            max_fee_rate_bps=_int_env(env, "ZSWAP_MAX_FEE_RATE_BPS", default=MAX_FEE_RATE_BPS),
            minimum_liquidity=_int_env(env, "ZSWAP_MINIMUM_LIQUIDITY", default=MINIMUM_LIQUIDITY),
            max_path_length=_int_env(env, "ZSWAP_MAX_PATH_LENGTH", default=DEFAULT_MAX_PATH_LENGTH),
        )
