# [TESTER] v1

from __future__ import annotations

import pytest

from zswap.integration.config import FEE_SETTER_ROLE, ExchangeConfig


def test_defaults() -> None:
    cfg = ExchangeConfig()
    assert cfg.fee_rate_bps == 30
    assert cfg.fee_denominator_bps == 10_000
    assert cfg.max_fee_rate_bps == 500
    assert cfg.minimum_liquidity == 1000
    assert cfg.share_ratio_scale == 10**18
    assert cfg.fee_setter_role == FEE_SETTER_ROLE


def test_from_env_reads_overrides() -> None:
    cfg = ExchangeConfig.from_env(
        {
            "ZSWAP_FEE_RATE_BPS": "50",
            "ZSWAP_MAX_FEE_RATE_BPS": " 200 ",
            "ZSWAP_MINIMUM_LIQUIDITY": "0",
            "ZSWAP_MAX_PATH_LENGTH": "4",
        }
    )
    assert (cfg.fee_rate_bps, cfg.max_fee_rate_bps, cfg.minimum_liquidity, cfg.max_path_length) == (50, 200, 0, 4)


def test_from_env_ignores_blank_values() -> None:
    assert ExchangeConfig.from_env({"ZSWAP_FEE_RATE_BPS": ""}) == ExchangeConfig()


def test_from_env_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="ZSWAP_FEE_RATE_BPS"):
        ExchangeConfig.from_env({"ZSWAP_FEE_RATE_BPS": "0.3%"})


@pytest.mark.parametrize(
    "kwargs",
    [
        {"fee_rate_bps": 600},
        {"max_fee_rate_bps": 10_000},
        {"minimum_liquidity": -1},
        {"max_path_length": 1},
        {"share_ratio_scale": 0},
        {"fee_setter_role": ""},
    ],
)
def test_invalid_configs_are_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        ExchangeConfig(**kwargs)


def test_non_int_fields_are_type_errors() -> None:
    with pytest.raises(TypeError):
        ExchangeConfig(fee_rate_bps=True)
