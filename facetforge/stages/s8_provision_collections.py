"""Stage 8 — Provision Collections.

Creates every catalog entry not yet in the ledger through the router and
configures its metadata URI. An entry whose creation event cannot be found
is reported as a failure; the others still proceed.
"""

from __future__ import annotations

from facetforge.core.collection_provisioner import CollectionProvisioner
from facetforge.models.config import DeploymentPlan
from facetforge.models.stages import StageResult
from facetforge.stages.base import BaseStage, StageContext


class ProvisionCollectionsStage(BaseStage):
    """Stage 8: create and configure catalog collections."""

    @property
    def stage_id(self) -> str:
        return "s8_provision_collections"

    @property
    def display_name(self) -> str:
        return "Provision Collections"

    def required_roles(self, plan: DeploymentPlan) -> list[str]:
        return [plan.router_role, plan.factory_role]

    def produced_roles(self, plan: DeploymentPlan) -> list[str]:
        return [entry.heading for entry in plan.catalog]

    def execute(self, ctx: StageContext, inputs: dict[str, str]) -> StageResult:
        provisioner = CollectionProvisioner(
            ctx.client, ctx.ledger, ctx.plan, section=self.section
        )
        provisioned, failures = provisioner.provision(inputs[ctx.plan.router_role])
        addresses = {p.entry.heading: p.address for p in provisioned}
        return self.passed(addresses, provisioned=provisioned, failures=failures)
