"""Unit tests for selector/topic hashing and canonical signatures."""

from __future__ import annotations

import pytest

from facetforge.core.hasher import (
    canonical_signature,
    compute_selector,
    compute_topic,
    encode_call,
    split_signature,
)
from tests.conftest import DIAMOND_CUT_FRAGMENT, function_fragment


class TestSelectors:
    """Selectors are the first four bytes of keccak over the signature."""

    def test_known_erc20_selector(self):
        assert compute_selector("transfer(address,uint256)") == "0xa9059cbb"
        assert compute_selector("balanceOf(address)") == "0x70a08231"
        assert compute_selector("totalSupply()") == "0x18160ddd"

    def test_known_erc165_selector(self):
        assert compute_selector("supportsInterface(bytes4)") == "0x01ffc9a7"

    def test_known_ownership_selectors(self):
        assert compute_selector("owner()") == "0x8da5cb5b"
        assert compute_selector("transferOwnership(address)") == "0xf2fde38b"

    def test_known_diamond_cut_selector(self):
        assert compute_selector("diamondCut((address,uint8,bytes4[])[],address,bytes)") == "0x1f931c1c"

    def test_deterministic(self):
        assert compute_selector("MAX_BATCH_SIZE()") == compute_selector("MAX_BATCH_SIZE()")

    def test_shape(self):
        selector = compute_selector("initialize(address)")
        assert selector.startswith("0x")
        assert len(selector) == 10
        assert selector == selector.lower()


class TestTopics:
    def test_transfer_topic(self):
        assert compute_topic("Transfer(address,address,uint256)") == (
            "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
        )

    def test_topic_is_full_digest(self):
        assert len(compute_topic("VaultCollectionCreated(address,uint8,string)")) == 66


class TestCanonicalSignature:
    """ABI fragments become canonical signatures with tuples expanded."""

    def test_plain_function(self):
        fragment = function_fragment("batchMint", "address[]", "uint256[]")
        assert canonical_signature(fragment) == "batchMint(address[],uint256[])"

    def test_no_arguments(self):
        assert canonical_signature(function_fragment("facets")) == "facets()"

    def test_tuple_array_expanded(self):
        assert canonical_signature(DIAMOND_CUT_FRAGMENT) == (
            "diamondCut((address,uint8,bytes4[])[],address,bytes)"
        )


class TestSplitSignature:
    def test_nested_tuple_kept_whole(self):
        name, types = split_signature("diamondCut((address,uint8,bytes4[])[],address,bytes)")
        assert name == "diamondCut"
        assert types == ["(address,uint8,bytes4[])[]", "address", "bytes"]

    def test_empty_argument_list(self):
        assert split_signature("owner()") == ("owner", [])

    def test_fixed_arrays_and_nested_tuples(self):
        name, types = split_signature("settle(uint256[2][],(bool,(address,string)))")
        assert name == "settle"
        assert types == ["uint256[2][]", "(bool,(address,string))"]

    @pytest.mark.parametrize("bad", ["owner", "(address)", "f(address", "f((address)", "f(address,)", "f(()"])
    def test_malformed_rejected(self, bad):
        with pytest.raises(ValueError):
            split_signature(bad)


class TestEncodeCall:
    def test_selector_prefix(self):
        data = encode_call("initialize(address)", ["0x90F79bf6EB2c4f870365E785982E1f101E93b906"])
        assert data[:4].hex() == compute_selector("initialize(address)")[2:]
        assert len(data) == 4 + 32

    def test_argument_count_checked(self):
        with pytest.raises(ValueError, match="takes 1 arguments"):
            encode_call("initialize(address)", [])
