"""Deployment orchestrator — the central coordinator for a pipeline run.

The orchestrator wires together the DeploymentLedger, StageMachine,
PrerequisiteGraph, stage registry and the chain client. Stages run strictly
in order; the first failure halts the run, blocks every later stage and is
re-raised to the caller.
"""

from __future__ import annotations

import logging
from pathlib import Path

from facetforge.bridge.artifacts import ContractArtifactStore
from facetforge.bridge.client import ChainClient
from facetforge.core.deployment_ledger import DeploymentLedger
from facetforge.core.preflight import AffordabilityReport, check_affordability
from facetforge.core.prerequisite_graph import PrerequisiteGraph
from facetforge.core.stage_machine import StageMachine
from facetforge.models.config import DeploymentPlan
from facetforge.models.network import NetworkProfile
from facetforge.models.stages import (
    DEFAULT_STAGE_DEFINITIONS,
    PipelineResult,
    StageResult,
    StageState,
)
from facetforge.stages import (
    STAGE_REGISTRY,
    BaseStage,
    StageContext,
    StagePreconditionError,
    resolve_stage_id,
)

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:
    """Runs the deployment stages against one network.

    Parameters
    ----------
    network:
        Target network profile.
    client:
        Chain client; every remote call goes through it.
    ledger:
        Deployment ledger. Defaults to the network's ledger under
        ``ledger_dir``.
    plan:
        Deployment topology. Defaults to ``DeploymentPlan()``.
    artifacts:
        Compiled artifacts, used for the module operation catalogs.
    operator:
        Router owner and initializer argument. Defaults to the client account.
    preflight:
        Run the affordability check before the first executing stage.
    """

    def __init__(
        self,
        network: NetworkProfile,
        client: ChainClient,
        *,
        artifacts: ContractArtifactStore,
        ledger: DeploymentLedger | None = None,
        ledger_dir: Path | None = None,
        plan: DeploymentPlan | None = None,
        operator: str | None = None,
        preflight: bool = True,
    ) -> None:
        self.network = network
        self.client = client
        self.plan = plan or DeploymentPlan()
        self.artifacts = artifacts
        self.ledger = ledger or DeploymentLedger.for_network(ledger_dir or Path("."), network)
        self.operator = operator or client.account

        self.graph = PrerequisiteGraph(DEFAULT_STAGE_DEFINITIONS)
        self.stage_machine = StageMachine(self.graph)
        self._stages: dict[str, BaseStage] = {
            sid: STAGE_REGISTRY[sid]() for sid in self.graph.stage_ids
        }

        self._preflight_enabled = preflight
        self._preflight_report: AffordabilityReport | None = None

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def run(
        self,
        start_at: str | None = None,
        stop_after: str | None = None,
        *,
        force: bool = False,
    ) -> PipelineResult:
        """Run stages ``start_at`` through ``stop_after`` (inclusive).

        Stages before ``start_at`` are marked SKIPPED; stages after
        ``stop_after`` stay NOT_STARTED. Raises the first stage error after
        marking the stage FAILED and its dependents BLOCKED.
        """
        order = self.graph.stage_ids
        first = order.index(resolve_stage_id(start_at)) if start_at else 0
        last = order.index(resolve_stage_id(stop_after)) if stop_after else len(order) - 1
        if first > last:
            raise ValueError(f"Start stage {order[first]} comes after stop stage {order[last]}")

        self.stage_machine.reset()
        self._preflight_report = None

        for stage_id in order[:first]:
            self.stage_machine.transition(stage_id, StageState.SKIPPED, "before start stage")
        self._check_jumped_stages(order[:first], order[first])

        logger.info(
            "Deploying to %s (chain %d): %s -> %s%s",
            self.network.name,
            self.network.chain_id,
            order[first],
            order[last],
            " [force]" if force else "",
        )
        results: list[StageResult] = []
        for stage_id in order[first : last + 1]:
            results.append(self.run_stage(stage_id, force=force))

        return PipelineResult(network=self.network.name, results=results)

    def run_stage(self, stage_id: str, *, force: bool = False) -> StageResult:
        """Run one stage within the current invocation.

        Lifecycle:
        1. Transition to RUNNING (prerequisites checked by the state machine)
        2. Pre-flight check, once, if the stage will actually execute
        3. Stage lifecycle (skip check, preconditions, execute, record)
        4. Transition to PASSED / SKIPPED, or FAILED on error
        """
        stage_id = resolve_stage_id(stage_id)
        stage = self._stages[stage_id]
        ctx = self._context(force)

        self.stage_machine.transition(stage_id, StageState.RUNNING)
        try:
            if force or stage.recorded_outputs(self.ledger, self.plan) is None:
                self._ensure_preflight()
            result = stage.run_stage(ctx)
        except Exception as exc:
            self.stage_machine.transition(stage_id, StageState.FAILED, str(exc))
            raise

        self.stage_machine.transition(stage_id, result.state)
        return result

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def get_states(self) -> dict[str, StageState]:
        """Current state of all stages in this invocation."""
        return self.stage_machine.get_all_states()

    def get_stage_state(self, stage_id: str) -> StageState:
        return self.stage_machine.get_state(resolve_stage_id(stage_id))

    @property
    def preflight_report(self) -> AffordabilityReport | None:
        return self._preflight_report

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _context(self, force: bool) -> StageContext:
        return StageContext(
            ledger=self.ledger,
            client=self.client,
            plan=self.plan,
            artifacts=self.artifacts,
            operator=self.operator,
            force=force,
        )

    def _check_jumped_stages(self, jumped: list[str], start: str) -> None:
        """Refuse to start past a side-effect stage with no recorded marker.

        Marks ``start`` FAILED (blocking everything after it) and raises
        StagePreconditionError naming the stages that have not run.
        """
        unrecorded = [
            stage_id
            for stage_id in jumped
            if self._stages[stage_id].side_effect
            and self._stages[stage_id].recorded_outputs(self.ledger, self.plan) is None
        ]
        if not unrecorded:
            return
        message = (
            f"Cannot start at {start}: no ledger record that {', '.join(unrecorded)} ran on this "
            f"network; start at {unrecorded[0]} or earlier"
        )
        self.stage_machine.transition(start, StageState.RUNNING)
        self.stage_machine.transition(start, StageState.FAILED, message)
        raise StagePreconditionError(message, stage_id=start, missing=unrecorded)

    def _ensure_preflight(self) -> None:
        if not self._preflight_enabled or self._preflight_report is not None:
            return
        self._preflight_report = check_affordability(
            self.client, self.plan.cut_facet_contract
        )
