"""Stage 1 — Bootstrap Router.

Creates the ledger if needed, deploys the cut facet and then the router,
constructed with the deploying account as owner and the cut facet as its
only initial capability. The operator is passed to the router in stage 3.
"""

from __future__ import annotations

from typing import ClassVar

from facetforge.models.config import DeploymentPlan
from facetforge.models.stages import StageResult
from facetforge.stages.base import BaseStage, StageContext


class BootstrapRouterStage(BaseStage):
    """Stage 1: cut facet + router."""

    requires_ledger: ClassVar[bool] = False

    @property
    def stage_id(self) -> str:
        return "s1_bootstrap_router"

    @property
    def display_name(self) -> str:
        return "Bootstrap Router"

    def produced_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.router_role, plan.cut_facet_role]

    def execute(self, ctx: StageContext, inputs: dict[str, str]) -> StageResult:
        plan = ctx.plan
        ctx.ledger.create()

        cut_facet = ctx.client.deploy(plan.cut_facet_contract)
        router = ctx.client.deploy(plan.router_contract, [ctx.client.account, cut_facet])

        addresses = {plan.router_role: router, plan.cut_facet_role: cut_facet}
        self.record_addresses(ctx, addresses)
        return self.passed(addresses)
