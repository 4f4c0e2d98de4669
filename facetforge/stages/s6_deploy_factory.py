"""Stage 6 — Deploy Factory, bound to both beacons and the router."""

from __future__ import annotations

from facetforge.models.config import DeploymentPlan
from facetforge.models.stages import StageResult
from facetforge.stages.base import BaseStage, StageContext


class DeployFactoryStage(BaseStage):
    """Stage 6: collection factory."""

    @property
    def stage_id(self) -> str:
        return "s6_deploy_factory"

    @property
    def display_name(self) -> str:
        return "Deploy Factory"

    def required_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.erc721.beacon_role, plan.erc1155.beacon_role, plan.router_role]

    def produced_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.factory_role]

    def execute(self, ctx: StageContext, inputs: dict[str, str]) -> StageResult:
        plan = ctx.plan
        factory = ctx.client.deploy(
            plan.factory_contract,
            [
                inputs[plan.erc721.beacon_role],
                inputs[plan.erc1155.beacon_role],
                inputs[plan.router_role],
            ],
        )
        addresses = {plan.factory_role: factory}
        self.record_addresses(ctx, addresses)
        return self.passed(addresses)
