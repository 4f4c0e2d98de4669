"""Shared test fixtures for facetforge."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any, NamedTuple

import pytest
from eth_abi import encode
from eth_utils import to_checksum_address

from facetforge.bridge.artifacts import ContractArtifactStore
from facetforge.bridge.client import TransactionFailedError
from facetforge.core.deployment_ledger import DeploymentLedger
from facetforge.core.hasher import compute_topic
from facetforge.core.orchestrator import DeploymentOrchestrator
from facetforge.core.prerequisite_graph import PrerequisiteGraph
from facetforge.core.stage_machine import StageMachine
from facetforge.models.config import DeploymentPlan
from facetforge.models.events import COLLECTION_CREATED_EVENT, EventRecord, TransactionReceipt
from facetforge.models.ledger import LedgerEntry, render_entries
from facetforge.models.network import KNOWN_NETWORKS, NetworkProfile
from facetforge.models.stages import DEFAULT_STAGE_DEFINITIONS
from facetforge.stages.base import StageContext

OPERATOR = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"

TRANSFER_TOPIC = compute_topic("Transfer(address,address,uint256)")
OWNERSHIP_TOPIC = compute_topic("OwnershipTransferred(address,address)")


def address_topic(address: str) -> str:
    """An address left-padded to a 32-byte topic."""
    return "0x" + "0" * 24 + address[2:].lower()


def uint_topic(value: int) -> str:
    return f"0x{value:064x}"


# ---------------------------------------------------------------------------
# Fake chain client
# ---------------------------------------------------------------------------


class Deployment(NamedTuple):
    contract: str
    args: list[Any]
    gas_limit: int | None
    address: str


class Call(NamedTuple):
    address: str
    contract: str
    signature: str
    args: list[Any]


class FakeChainClient:
    """Records every deployment and call; emits creation events on demand.

    Parameters
    ----------
    balance:
        Operator balance in wei.
    missing_events:
        Collection names whose creation emits no creation event.
    revert_on:
        Signatures (or contract names for deploys) that fail.
    """

    def __init__(
        self,
        *,
        balance: int = 10**21,
        gas_estimate: int = 3_000_000,
        gas_price: int = 1_000_000_000,
        missing_events: Iterable[str] = (),
        revert_on: Iterable[str] = (),
    ) -> None:
        self._balance = balance
        self._gas_estimate = gas_estimate
        self._gas_price = gas_price
        self.missing_events = set(missing_events)
        self.revert_on = set(revert_on)
        self.deployments: list[Deployment] = []
        self.calls: list[Call] = []
        self.created: dict[str, str] = {}
        self.estimates: list[str] = []
        self._counter = 0

    @property
    def account(self) -> str:
        return OPERATOR

    @property
    def remote_calls(self) -> int:
        return len(self.deployments) + len(self.calls)

    def deployed(self, contract: str) -> str:
        """Address of the latest deployment of ``contract``."""
        return [d.address for d in self.deployments if d.contract == contract][-1]

    def calls_to(self, signature: str) -> list[Call]:
        return [c for c in self.calls if c.signature == signature]

    def _next_address(self) -> str:
        self._counter += 1
        return to_checksum_address(f"0x{0xC0FFEE0000 + self._counter:040x}")

    # ChainClient -------------------------------------------------------

    def deploy(self, contract: str, args: Sequence[Any] = (), *, gas_limit: int | None = None) -> str:
        if contract in self.revert_on:
            raise TransactionFailedError(f"deploy {contract} reverted")
        address = self._next_address()
        self.deployments.append(Deployment(contract, list(args), gas_limit, address))
        return address

    def transact(
        self, address: str, contract: str, signature: str, args: Sequence[Any] = ()
    ) -> TransactionReceipt:
        self.calls.append(Call(address, contract, signature, list(args)))
        tx_hash = f"0x{len(self.calls):064x}"
        if signature in self.revert_on:
            raise TransactionFailedError(f"{signature} reverted", tx_hash=tx_hash)

        events: list[EventRecord] = []
        if signature == "createVaultCollection(string,string,uint8)":
            events = self._creation_events(address, *args)
        return TransactionReceipt(tx_hash=tx_hash, block_number=len(self.calls), events=events)

    def estimate_deploy_gas(self, contract: str, args: Sequence[Any] = ()) -> int:
        self.estimates.append(contract)
        return self._gas_estimate

    def gas_price(self) -> int:
        return self._gas_price

    def get_balance(self, address: str) -> int:
        return self._balance

    # Event synthesis ---------------------------------------------------

    def _creation_events(self, router: str, name: str, symbol: str, kind: int) -> list[EventRecord]:
        collection = self._next_address()
        # Unrelated records emitted by the new proxy during construction
        events = [
            EventRecord(
                emitter=collection,
                topics=[OWNERSHIP_TOPIC, address_topic("0x" + "0" * 40), address_topic(router)],
                log_index=0,
            ),
            EventRecord(
                emitter=collection,
                topics=[TRANSFER_TOPIC, address_topic("0x" + "0" * 40), address_topic(OPERATOR)],
                data="0x" + encode(["uint256"], [1]).hex(),
                log_index=1,
            ),
        ]
        if name in self.missing_events:
            return events

        self.created[name] = collection
        events.append(
            EventRecord(
                emitter=router,
                topics=[
                    COLLECTION_CREATED_EVENT.topic,
                    address_topic(collection),
                    uint_topic(int(kind)),
                ],
                data="0x" + encode(["string"], [name]).hex(),
                log_index=2,
            )
        )
        return events


# ---------------------------------------------------------------------------
# Compiled artifacts
# ---------------------------------------------------------------------------


def function_fragment(name: str, *types: str, outputs: Sequence[str] = ()) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(types)],
        "outputs": [{"name": "", "type": t} for t in outputs],
        "stateMutability": "nonpayable",
    }


DIAMOND_CUT_FRAGMENT: dict[str, Any] = {
    "type": "function",
    "name": "diamondCut",
    "inputs": [
        {
            "name": "_diamondCut",
            "type": "tuple[]",
            "components": [
                {"name": "facetAddress", "type": "address"},
                {"name": "action", "type": "uint8"},
                {"name": "functionSelectors", "type": "bytes4[]"},
            ],
        },
        {"name": "_init", "type": "address"},
        {"name": "_calldata", "type": "bytes"},
    ],
    "outputs": [],
    "stateMutability": "nonpayable",
}

MODULE_ABIS: dict[str, list[dict[str, Any]]] = {
    "DiamondCutFacet": [DIAMOND_CUT_FRAGMENT],
    "DiamondLoupeFacet": [
        function_fragment("facets"),
        function_fragment("facetFunctionSelectors", "address"),
        function_fragment("facetAddresses"),
        function_fragment("facetAddress", "bytes4"),
        function_fragment("supportsInterface", "bytes4", outputs=["bool"]),
    ],
    "OwnershipFacet": [
        function_fragment("owner", outputs=["address"]),
        function_fragment("transferOwnership", "address"),
    ],
    "EmblemVaultCoreFacet": [
        function_fragment("lockVault", "address", "uint256"),
        function_fragment("unlockVault", "address", "uint256"),
        function_fragment("isVaultLocked", "address", "uint256", outputs=["bool"]),
    ],
    "EmblemVaultUnvaultFacet": [
        function_fragment("unvault", "address", "uint256"),
        function_fragment("batchUnvault", "address[]", "uint256[]"),
        function_fragment("MAX_BATCH_SIZE", outputs=["uint256"]),
    ],
    "EmblemVaultMintFacet": [
        function_fragment("mint", "address", "uint256"),
        function_fragment("batchMint", "address[]", "uint256[]"),
        function_fragment("MAX_BATCH_SIZE", outputs=["uint256"]),
    ],
    "EmblemVaultCollectionFacet": [
        function_fragment("setCollectionFactory", "address"),
        function_fragment("createVaultCollection", "string", "string", "uint8"),
        function_fragment("setCollectionBaseURI", "address", "string"),
        function_fragment("setCollectionURI", "address", "string"),
    ],
    "EmblemVaultInitFacet": [
        function_fragment("initialize", "address"),
    ],
}

PLAIN_CONTRACTS = [
    "EmblemVaultDiamond",
    "ERC721VaultImplementation",
    "ERC1155VaultImplementation",
    "ERC721VaultBeacon",
    "ERC1155VaultBeacon",
    "VaultCollectionFactory",
]


def write_artifact(base: Path, contract: str, abi: list[dict[str, Any]], bytecode: Any = "0x6080") -> Path:
    path = base / "contracts" / f"{contract}.sol" / f"{contract}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps({"contractName": contract, "abi": abi, "bytecode": bytecode}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    """A Hardhat-style artifacts tree with every contract the plan names."""
    base = tmp_path / "artifacts"
    for contract, abi in MODULE_ABIS.items():
        write_artifact(base, contract, abi)
    for contract in PLAIN_CONTRACTS:
        write_artifact(base, contract, [])
    return base


@pytest.fixture
def artifacts(artifacts_dir: Path) -> ContractArtifactStore:
    return ContractArtifactStore(artifacts_dir)


# ---------------------------------------------------------------------------
# Ledger, plan, pipeline
# ---------------------------------------------------------------------------


@pytest.fixture
def network() -> NetworkProfile:
    """Testnet profile (has an explorer, so entries carry links)."""
    return KNOWN_NETWORKS["merlinTestnet"]


@pytest.fixture
def ledger_dir(tmp_path: Path) -> Path:
    return tmp_path / "deployment-reports"


@pytest.fixture
def ledger(ledger_dir: Path, network: NetworkProfile) -> DeploymentLedger:
    """A ledger for the test network; not created yet."""
    return DeploymentLedger.for_network(ledger_dir, network)


@pytest.fixture
def plan() -> DeploymentPlan:
    return DeploymentPlan()


@pytest.fixture
def fake_client() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def stage_context(
    ledger: DeploymentLedger,
    fake_client: FakeChainClient,
    plan: DeploymentPlan,
    artifacts: ContractArtifactStore,
) -> StageContext:
    return StageContext(
        ledger=ledger,
        client=fake_client,
        plan=plan,
        artifacts=artifacts,
        operator=OPERATOR,
    )


@pytest.fixture
def graph() -> PrerequisiteGraph:
    return PrerequisiteGraph(DEFAULT_STAGE_DEFINITIONS)


@pytest.fixture
def stage_machine(graph: PrerequisiteGraph) -> StageMachine:
    return StageMachine(graph)


@pytest.fixture
def make_orchestrator(
    network: NetworkProfile,
    ledger: DeploymentLedger,
    artifacts: ContractArtifactStore,
) -> Callable[..., DeploymentOrchestrator]:
    """Factory fixture: orchestrator over the test ledger and a fake client."""

    def _factory(client: FakeChainClient | None = None, **overrides: Any) -> DeploymentOrchestrator:
        kwargs: dict[str, Any] = {"artifacts": artifacts, "ledger": ledger}
        kwargs.update(overrides)
        return DeploymentOrchestrator(network, client or FakeChainClient(), **kwargs)

    return _factory


@pytest.fixture
def seed_ledger(ledger: DeploymentLedger) -> Callable[[str, dict[str, str]], None]:
    """Factory fixture: create the ledger and record a section of roles."""

    def _seed(section: str, addresses: dict[str, str]) -> None:
        ledger.create()
        entries = [LedgerEntry(role=role, address=addr) for role, addr in addresses.items()]
        ledger.upsert_section(section, render_entries(entries))

    return _seed


def fake_address(n: int) -> str:
    return to_checksum_address(f"0x{0xBEEF000000 + n:040x}")
