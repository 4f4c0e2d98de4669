"""Stage 2 — Install Capabilities.

Resolves every module's selectors first, so an unresolved collision aborts
before anything is deployed. Then deploys each module, builds one batch of
ADD grants and applies it to the router in a single ``diamondCut`` call.
Module addresses are recorded only after the cut succeeds.
"""

from __future__ import annotations

import logging

from facetforge.core.cut_builder import CutBuilder, EmptyGrantError
from facetforge.core.selector_resolver import SelectorResolver
from facetforge.models.config import DeploymentPlan
from facetforge.models.stages import StageResult
from facetforge.stages.base import BaseStage, StageContext

logger = logging.getLogger(__name__)


class InstallCapabilitiesStage(BaseStage):
    """Stage 2: deploy modules and register them with one atomic cut."""

    @property
    def stage_id(self) -> str:
        return "s2_install_capabilities"

    @property
    def display_name(self) -> str:
        return "Install Capabilities"

    def required_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.router_role]

    def produced_roles(self, plan: DeploymentPlan) -> list[str]:
        return plan.module_roles

    def execute(self, ctx: StageContext, inputs: dict[str, str]) -> StageResult:
        plan = ctx.plan
        router = inputs[plan.router_role]

        specs = [ctx.artifacts.module_spec(m.contract, m.role) for m in plan.modules]
        resolution = SelectorResolver(plan.collision_rules).resolve_strict(
            specs, stage_id=self.stage_id
        )
        empty = [contract for contract, selectors in resolution.per_module.items() if not selectors]
        if empty:
            raise EmptyGrantError(
                f"[{self.stage_id}] Modules with no selectors to register: {', '.join(empty)}"
            )

        deployed: dict[str, str] = {}
        for module in plan.modules:
            deployed[module.contract] = ctx.client.deploy(module.contract)

        batch = CutBuilder().from_resolution(resolution, deployed)
        logger.info(
            "Registering %d selectors across %d modules on %s",
            batch.selector_count,
            len(batch.grants),
            router,
        )
        ctx.client.transact(
            router, plan.cut_facet_contract, plan.cut_signature, batch.as_call_args()
        )

        addresses = {m.role: deployed[m.contract] for m in plan.modules}
        self.record_addresses(ctx, addresses)
        return self.passed(addresses)
