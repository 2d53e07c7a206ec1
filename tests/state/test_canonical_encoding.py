# [TESTER] v1

from __future__ import annotations

import pytest

from zswap.state.canonical import canonical_json_bytes, commitment_hex, domain_tag


def test_encoding_ignores_key_order() -> None:
    assert canonical_json_bytes({"b": 1, "a": [2, 3]}) == b'{"a":[2,3],"b":1}'
    assert canonical_json_bytes({"a": [2, 3], "b": 1}) == canonical_json_bytes({"b": 1, "a": [2, 3]})


def test_floats_and_non_str_keys_are_rejected() -> None:
    with pytest.raises(TypeError, match=r"\$\.pools\[0\]"):
        canonical_json_bytes({"pools": [0.5]})
    with pytest.raises(TypeError):
        canonical_json_bytes({1: "x"})


def test_domain_tag_separates_labels_and_versions() -> None:
    assert domain_tag("ledger_snapshot") == b"zswap:ledger_snapshot:v1\x00"
    assert commitment_hex("a", {"x": 1}) != commitment_hex("b", {"x": 1})
    assert commitment_hex("a", {"x": 1}) != commitment_hex("a", {"x": 1}, version=2)
    with pytest.raises(ValueError):
        domain_tag("bad\x00label")
    with pytest.raises(ValueError):
        domain_tag("ok", version=0)
