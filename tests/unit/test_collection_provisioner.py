"""Unit tests for CollectionProvisioner — create, discover, configure, record."""

from __future__ import annotations

import logging

import pytest

from facetforge.bridge.client import TransactionFailedError
from facetforge.core.collection_provisioner import CollectionProvisioner
from facetforge.models.collections import CatalogEntry, CollectionKind, ProvisioningFailure
from tests.conftest import FakeChainClient, fake_address

ROUTER = fake_address(1)
TX_1 = "0x" + "0" * 63 + "1"

ALPHA = CatalogEntry(name="Alpha", symbol="ALP", kind=CollectionKind.ERC721)
BETA = CatalogEntry(name="Beta", symbol="BET", kind=CollectionKind.ERC1155)


@pytest.fixture
def created_ledger(ledger):
    ledger.create()
    return ledger


def _provisioner(client, ledger, plan) -> CollectionProvisioner:
    return CollectionProvisioner(client, ledger, plan)


class TestProvisionOne:
    def test_erc721_uses_base_uri_setter(self, fake_client, created_ledger, plan):
        result = _provisioner(fake_client, created_ledger, plan).provision_one(ROUTER, ALPHA)

        create, configure = fake_client.calls
        assert create.address == ROUTER
        assert create.contract == "EmblemVaultCollectionFacet"
        assert create.signature == "createVaultCollection(string,string,uint8)"
        assert create.args == ["Alpha", "ALP", 1]

        address = fake_client.created["Alpha"]
        assert configure.signature == "setCollectionBaseURI(address,string)"
        assert configure.args == [address, f"https://v2.emblemvault.io/v3/meta/{address}/"]
        assert result.address == address
        assert result.configured_with == "setCollectionBaseURI(address,string)"

    def test_erc1155_uses_direct_uri_setter(self, fake_client, created_ledger, plan):
        result = _provisioner(fake_client, created_ledger, plan).provision_one(ROUTER, BETA)
        assert fake_client.calls[0].args == ["Beta", "BET", 2]
        assert fake_client.calls[1].signature == "setCollectionURI(address,string)"
        assert result.configured_with == "setCollectionURI(address,string)"

    def test_ledger_entry_format(self, fake_client, created_ledger, plan):
        _provisioner(fake_client, created_ledger, plan).provision_one(ROUTER, ALPHA)
        address = fake_client.created["Alpha"]
        body = created_ledger.read_section("Priority Collections")
        assert body == (
            "### Alpha (ALP)\n"
            "- Type: ERC721\n"
            f"- Address: [`{address}`](https://testnet-scan.merlinchain.io/address/{address})\n"
            f"- Metadata URI: https://v2.emblemvault.io/v3/meta/{address}/"
        )
        assert created_ledger.read_address("Alpha (ALP)") == address

    def test_missing_event_is_a_failure(self, created_ledger, plan):
        client = FakeChainClient(missing_events=["Alpha"])
        result = _provisioner(client, created_ledger, plan).provision_one(ROUTER, ALPHA)
        assert isinstance(result, ProvisioningFailure)
        assert "VaultCollectionCreated" in result.reason
        assert len(client.calls) == 1  # no setter call
        assert created_ledger.read_section("Priority Collections") is None

    def test_missing_event_names_the_creation_transaction(self, created_ledger, plan, caplog):
        client = FakeChainClient(missing_events=["Alpha"])
        provisioner = _provisioner(client, created_ledger, plan)
        with caplog.at_level(logging.ERROR, logger="facetforge.core.collection_provisioner"):
            result = provisioner.provision_one(ROUTER, ALPHA)

        assert result.tx_hash == TX_1
        assert TX_1 in result.reason
        assert "orphan" in result.reason
        assert TX_1 in caplog.text
        assert created_ledger.read_section("Unresolved Collection Creations") == (
            f"- Alpha (ALP): transaction `{TX_1}`"
        )
        assert created_ledger.read_address("Alpha (ALP)") is None

    def test_retry_keeps_earlier_unresolved_creations(self, created_ledger, plan, caplog):
        first = _provisioner(FakeChainClient(missing_events=["Alpha"]), created_ledger, plan)
        first.provision_one(ROUTER, ALPHA)

        provisioner = _provisioner(FakeChainClient(missing_events=["Alpha"]), created_ledger, plan)
        assert provisioner.unresolved_creations(ALPHA) == [TX_1]
        assert provisioner.unresolved_creations(BETA) == []
        with caplog.at_level(logging.WARNING, logger="facetforge.core.collection_provisioner"):
            provisioner.provision_one(ROUTER, ALPHA)
        assert "already created" in caplog.text
        assert provisioner.unresolved_creations(ALPHA) == [TX_1, TX_1]

        resolved = _provisioner(FakeChainClient(), created_ledger, plan).provision_one(ROUTER, ALPHA)
        assert created_ledger.read_address("Alpha (ALP)") == resolved.address
        assert "Alpha (ALP)" in created_ledger.read_section("Unresolved Collection Creations")

    def test_custom_uri_prefix(self, fake_client, created_ledger, plan):
        custom = plan.model_copy(update={"metadata_uri_prefix": "ipfs://meta/"})
        result = _provisioner(fake_client, created_ledger, custom).provision_one(ROUTER, ALPHA)
        assert result.metadata_uri == f"ipfs://meta/{result.address}/"


class TestProvision:
    def test_all_entries_in_order(self, fake_client, created_ledger, plan):
        provisioned, failures = _provisioner(fake_client, created_ledger, plan).provision(
            ROUTER, [ALPHA, BETA]
        )
        assert failures == []
        assert [p.entry for p in provisioned] == [ALPHA, BETA]
        assert created_ledger.subsection_headings("Priority Collections") == [
            "Alpha (ALP)",
            "Beta (BET)",
        ]

    def test_default_catalog_from_plan(self, fake_client, created_ledger, plan):
        provisioned, _ = _provisioner(fake_client, created_ledger, plan).provision(ROUTER)
        assert [p.entry for p in provisioned] == plan.catalog
        assert len(fake_client.calls) == 2 * len(plan.catalog)

    def test_recorded_entries_not_recreated(self, fake_client, created_ledger, plan):
        provisioner = _provisioner(fake_client, created_ledger, plan)
        provisioner.provision(ROUTER, [ALPHA])
        first_address = fake_client.created["Alpha"]
        calls = len(fake_client.calls)

        provisioned, failures = provisioner.provision(ROUTER, [ALPHA, BETA])
        assert len(fake_client.calls) == calls + 2
        assert [c.args[0] for c in fake_client.calls_to(plan.create_collection_signature)] == [
            "Alpha",
            "Beta",
        ]
        assert provisioned[0].address == first_address
        assert provisioned[0].configured_with == ""
        assert failures == []

    def test_failure_does_not_stop_others(self, created_ledger, plan):
        client = FakeChainClient(missing_events=["Alpha"])
        provisioned, failures = _provisioner(client, created_ledger, plan).provision(
            ROUTER, [ALPHA, BETA]
        )
        assert [f.entry for f in failures] == [ALPHA]
        assert [p.entry for p in provisioned] == [BETA]
        assert created_ledger.subsection_headings("Priority Collections") == ["Beta (BET)"]

    def test_failed_entry_retried_on_next_run(self, created_ledger, plan):
        client = FakeChainClient(missing_events=["Alpha"])
        provisioner = _provisioner(client, created_ledger, plan)
        provisioner.provision(ROUTER, [ALPHA, BETA])

        client.missing_events.clear()
        provisioned, failures = provisioner.provision(ROUTER, [ALPHA, BETA])
        assert failures == []
        assert created_ledger.subsection_headings("Priority Collections") == [
            "Beta (BET)",
            "Alpha (ALP)",
        ]
        assert len(client.calls_to(plan.create_collection_signature)) == 3

    def test_revert_propagates(self, created_ledger, plan):
        client = FakeChainClient(revert_on=[plan.create_collection_signature])
        with pytest.raises(TransactionFailedError):
            _provisioner(client, created_ledger, plan).provision(ROUTER, [ALPHA, BETA])
        assert len(client.calls) == 1
