"""Stage 5 — Deploy Beacons.

One beacon per collection kind, each pointing at that kind's
implementation. Beacons are deployed with the plan's fixed gas limit.
"""

from __future__ import annotations

from facetforge.models.config import DeploymentPlan
from facetforge.models.stages import StageResult
from facetforge.stages.base import BaseStage, StageContext


class DeployBeaconsStage(BaseStage):
    """Stage 5: ERC721 and ERC1155 beacons."""

    @property
    def stage_id(self) -> str:
        return "s5_deploy_beacons"

    @property
    def display_name(self) -> str:
        return "Deploy Beacons"

    def required_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.erc721.implementation_role, plan.erc1155.implementation_role]

    def produced_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.erc721.beacon_role, plan.erc1155.beacon_role]

    def execute(self, ctx: StageContext, inputs: dict[str, str]) -> StageResult:
        addresses: dict[str, str] = {}
        for kind in (ctx.plan.erc721, ctx.plan.erc1155):
            addresses[kind.beacon_role] = ctx.client.deploy(
                kind.beacon,
                [inputs[kind.implementation_role]],
                gas_limit=ctx.plan.beacon_gas_limit,
            )
        self.record_addresses(ctx, addresses)
        return self.passed(addresses)
