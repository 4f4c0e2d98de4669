"""Stage 3 — Initialize Router.

Calls the init module's initializer through the router with the operator
as argument, then records the operator under ``Router Initialization`` so
later runs know the call was made.
"""

from __future__ import annotations

from typing import ClassVar

from facetforge.models.config import DeploymentPlan
from facetforge.models.stages import StageResult
from facetforge.stages.base import BaseStage, StageContext


class InitializeRouterStage(BaseStage):
    """Stage 3: one-time router initialization."""

    side_effect: ClassVar[bool] = True

    @property
    def stage_id(self) -> str:
        return "s3_initialize_router"

    @property
    def display_name(self) -> str:
        return "Initialize Router"

    def required_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.router_role, plan.init_role]

    def produced_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.initialized_role]

    def execute(self, ctx: StageContext, inputs: dict[str, str]) -> StageResult:
        plan = ctx.plan
        ctx.client.transact(
            inputs[plan.router_role],
            plan.init_contract,
            plan.initializer_signature,
            [ctx.operator],
        )
        marker = {plan.initialized_role: ctx.operator}
        self.record_addresses(ctx, marker)
        return self.passed(marker)
