"""Unit tests for the pre-flight affordability check."""

from __future__ import annotations

import logging

import pytest

from facetforge.core.preflight import AffordabilityReport, InsufficientFundsError, check_affordability
from tests.conftest import OPERATOR, FakeChainClient


class TestAffordabilityReport:
    def test_required_is_gas_times_price(self):
        report = AffordabilityReport(
            account=OPERATOR,
            contract="DiamondCutFacet",
            balance_wei=10,
            estimated_gas=3,
            gas_price_wei=4,
        )
        assert report.required_wei == 12
        assert report.affordable is False

    def test_exact_balance_is_enough(self):
        report = AffordabilityReport(
            account=OPERATOR,
            contract="DiamondCutFacet",
            balance_wei=12,
            estimated_gas=3,
            gas_price_wei=4,
        )
        assert report.affordable is True


class TestCheckAffordability:
    def test_passes_with_funds(self):
        client = FakeChainClient(balance=10**18, gas_estimate=2_000_000, gas_price=10**9)
        report = check_affordability(client, "DiamondCutFacet")
        assert report.affordable
        assert report.account == OPERATOR
        assert client.estimates == ["DiamondCutFacet"]
        assert client.remote_calls == 0

    def test_insufficient_funds(self, caplog):
        client = FakeChainClient(balance=10**14, gas_estimate=2_000_000, gas_price=10**9)
        with caplog.at_level(logging.CRITICAL, logger="facetforge.core.preflight"):
            with pytest.raises(InsufficientFundsError) as exc_info:
                check_affordability(client, "DiamondCutFacet")
        err = exc_info.value
        assert err.report.required_wei == 2 * 10**15
        assert "DiamondCutFacet" in str(err)
        assert "gwei" in str(err)
        assert any(r.levelno == logging.CRITICAL for r in caplog.records)
        assert client.remote_calls == 0
