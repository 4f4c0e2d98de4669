"""DeploymentProjection — pure read-only view over the DeploymentLedger.

The projection does not compute truth, it displays it. Every call re-reads
the ledger; nothing is cached between snapshots.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from facetforge.core.deployment_ledger import DeploymentLedger
from facetforge.models.config import DeploymentPlan
from facetforge.models.stages import SATISFIED_STATES, StageState
from facetforge.stages import STAGE_ORDER, get_stage


class StageStatus(BaseModel):
    """Point-in-time status of one stage, derived from the ledger."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    state: StageState = StageState.NOT_STARTED
    addresses: dict[str, str] = {}
    missing: list[str] = []
    note: str | None = None


class DeploymentSnapshot(BaseModel):
    """A frozen, point-in-time view of one network's deployment."""

    model_config = ConfigDict(frozen=True)

    network: str
    ledger_path: str
    ledger_exists: bool = False
    stages: list[StageStatus] = []
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def completed_count(self) -> int:
        return sum(1 for s in self.stages if s.state in SATISFIED_STATES)

    @property
    def total_stages(self) -> int:
        return len(self.stages)

    @property
    def addresses(self) -> dict[str, str]:
        merged: dict[str, str] = {}
        for stage in self.stages:
            merged.update(stage.addresses)
        return merged

    @property
    def next_stage(self) -> StageStatus | None:
        """First stage with work left, if any."""
        return next((s for s in self.stages if s.state not in SATISFIED_STATES), None)


class DeploymentProjection:
    """Read-only projection over a DeploymentLedger.

    Parameters
    ----------
    ledger:
        The ledger to project from.
    plan:
        Topology that names the roles each stage produces.
    """

    def __init__(self, ledger: DeploymentLedger, plan: DeploymentPlan | None = None) -> None:
        self._ledger = ledger
        self._plan = plan or DeploymentPlan()

    def snapshot(self) -> DeploymentSnapshot:
        """Re-read the ledger and derive every stage's state."""
        network = self._ledger.network.name if self._ledger.network else ""
        exists = self._ledger.exists()

        stages: list[StageStatus] = []
        for stage_id in STAGE_ORDER:
            stage = get_stage(stage_id)
            if not exists:
                stages.append(StageStatus(stage_id=stage_id, display_name=stage.display_name))
                continue

            produced = stage.produced_roles(self._plan)
            found = self._ledger.read_addresses(produced)
            recorded = stage.recorded_outputs(self._ledger, self._plan)

            if recorded is not None:
                stages.append(
                    StageStatus(
                        stage_id=stage_id,
                        display_name=stage.display_name,
                        state=StageState.PASSED,
                        addresses=recorded,
                    )
                )
                continue

            missing = [role for role in produced if role not in found]
            if len(found) == len(produced):
                note = "stale: recorded for an earlier deployment"
            elif found:
                note = f"{len(found)}/{len(produced)} recorded"
            else:
                note = None
            stages.append(
                StageStatus(
                    stage_id=stage_id,
                    display_name=stage.display_name,
                    addresses=found,
                    missing=missing,
                    note=note,
                )
            )

        return DeploymentSnapshot(
            network=network,
            ledger_path=str(self._ledger.path),
            ledger_exists=exists,
            stages=stages,
        )
