"""Stage 4 — Deploy Implementations (one logic contract per collection kind)."""

from __future__ import annotations

from facetforge.models.config import DeploymentPlan
from facetforge.models.stages import StageResult
from facetforge.stages.base import BaseStage, StageContext


class DeployImplementationsStage(BaseStage):
    """Stage 4: ERC721 and ERC1155 vault implementations."""

    @property
    def stage_id(self) -> str:
        return "s4_deploy_implementations"

    @property
    def display_name(self) -> str:
        return "Deploy Implementations"

    def produced_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.erc721.implementation_role, plan.erc1155.implementation_role]

    def execute(self, ctx: StageContext, inputs: dict[str, str]) -> StageResult:
        addresses: dict[str, str] = {}
        for kind in (ctx.plan.erc721, ctx.plan.erc1155):
            addresses[kind.implementation_role] = ctx.client.deploy(kind.implementation)
        self.record_addresses(ctx, addresses)
        return self.passed(addresses)
