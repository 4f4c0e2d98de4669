"""Stage 7 — Wire Factory.

Tells the router which factory spawns collections and records that factory
under ``Factory Registration``. A registration naming a different factory
than the one in the ledger is stale, so a redeployed factory is wired again.
"""

from __future__ import annotations

from typing import ClassVar

from facetforge.core.deployment_ledger import DeploymentLedger
from facetforge.models.config import DeploymentPlan
from facetforge.models.stages import StageResult
from facetforge.stages.base import BaseStage, StageContext


class WireFactoryStage(BaseStage):
    """Stage 7: register the factory with the router."""

    side_effect: ClassVar[bool] = True

    @property
    def stage_id(self) -> str:
        return "s7_wire_factory"

    @property
    def display_name(self) -> str:
        return "Wire Factory"

    def required_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.router_role, plan.factory_role]

    def produced_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.registered_factory_role]

    def outputs_current(
        self, recorded: dict[str, str], ledger: DeploymentLedger, plan: DeploymentPlan
    ) -> bool:
        return recorded[plan.registered_factory_role] == ledger.read_address(plan.factory_role)

    def execute(self, ctx: StageContext, inputs: dict[str, str]) -> StageResult:
        plan = ctx.plan
        factory = inputs[plan.factory_role]
        ctx.client.transact(
            inputs[plan.router_role],
            plan.collection_contract,
            plan.set_factory_signature,
            [factory],
        )
        marker = {plan.registered_factory_role: factory}
        self.record_addresses(ctx, marker)
        return self.passed(marker)
