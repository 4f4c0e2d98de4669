"""Stage state machine models — strictly forward deployment stages."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from facetforge.models.collections import ProvisionedCollection, ProvisioningFailure


class StageState(str, Enum):
    """State of a single deployment stage within one pipeline invocation."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    PASSED = "passed"
    SKIPPED = "skipped"
    FAILED = "failed"
    BLOCKED = "blocked"


# Valid state transitions, enforced by StageMachine.
# SKIPPED covers both "outputs already recorded in the ledger" and
# "before the requested start stage".
VALID_TRANSITIONS: dict[StageState, set[StageState]] = {
    StageState.NOT_STARTED: {StageState.RUNNING, StageState.SKIPPED, StageState.BLOCKED},
    StageState.RUNNING: {StageState.PASSED, StageState.SKIPPED, StageState.FAILED},
    StageState.BLOCKED: {StageState.NOT_STARTED},
    StageState.FAILED: {StageState.NOT_STARTED},  # retry
    StageState.PASSED: set(),  # terminal
    StageState.SKIPPED: set(),  # terminal
}

# States that satisfy a downstream stage's prerequisite.
SATISFIED_STATES: frozenset[StageState] = frozenset({StageState.PASSED, StageState.SKIPPED})


class StageDefinition(BaseModel):
    """Defines a deployment stage and its position in the pipeline.

    ``section`` is the ledger section the stage writes. Stages that only
    cause an on-chain side effect record a marker entry there.
    """

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    ordinal: int
    prerequisites: list[str] = []
    section: str = ""


class StageTransition(BaseModel):
    """Records a single state transition for the run log."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    from_state: StageState
    to_state: StageState
    reason: str | None = None


class StageResult(BaseModel):
    """What a stage produced (or found already recorded)."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    state: StageState
    addresses: dict[str, str] = {}
    remote_calls: int = 0
    provisioned: list[ProvisionedCollection] = []
    failures: list[ProvisioningFailure] = []


class PipelineResult(BaseModel):
    """Outcome of one orchestrator invocation over a range of stages."""

    model_config = ConfigDict(frozen=True)

    network: str
    results: list[StageResult] = []

    @property
    def addresses(self) -> dict[str, str]:
        merged: dict[str, str] = {}
        for result in self.results:
            merged.update(result.addresses)
        return merged

    @property
    def provisioned(self) -> list[ProvisionedCollection]:
        return [p for r in self.results for p in r.provisioned]

    @property
    def failures(self) -> list[ProvisioningFailure]:
        return [f for r in self.results for f in r.failures]


DEFAULT_STAGE_DEFINITIONS: list[StageDefinition] = [
    StageDefinition(
        stage_id="s1_bootstrap_router",
        display_name="Bootstrap Router",
        ordinal=1,
        prerequisites=[],
        section="Core Diamond System",
    ),
    StageDefinition(
        stage_id="s2_install_capabilities",
        display_name="Install Capabilities",
        ordinal=2,
        prerequisites=["s1_bootstrap_router"],
        section="Vault Facets",
    ),
    StageDefinition(
        stage_id="s3_initialize_router",
        display_name="Initialize Router",
        ordinal=3,
        prerequisites=["s2_install_capabilities"],
        section="Router Initialization",
    ),
    StageDefinition(
        stage_id="s4_deploy_implementations",
        display_name="Deploy Implementations",
        ordinal=4,
        prerequisites=["s3_initialize_router"],
        section="Vault Implementation Addresses",
    ),
    StageDefinition(
        stage_id="s5_deploy_beacons",
        display_name="Deploy Beacons",
        ordinal=5,
        prerequisites=["s4_deploy_implementations"],
        section="Beacon System Addresses",
    ),
    StageDefinition(
        stage_id="s6_deploy_factory",
        display_name="Deploy Factory",
        ordinal=6,
        prerequisites=["s5_deploy_beacons"],
        section="Collection Factory",
    ),
    StageDefinition(
        stage_id="s7_wire_factory",
        display_name="Wire Factory",
        ordinal=7,
        prerequisites=["s6_deploy_factory"],
        section="Factory Registration",
    ),
    StageDefinition(
        stage_id="s8_provision_collections",
        display_name="Provision Collections",
        ordinal=8,
        prerequisites=["s7_wire_factory"],
        section="Priority Collections",
    ),
]
