"""Deployment stages — registry mapping stage_id to stage class.

Usage::

    from facetforge.stages import STAGE_REGISTRY, get_stage

    stage = get_stage("s5_deploy_beacons")
    result = stage.run_stage(ctx)
"""

from __future__ import annotations

from facetforge.stages.base import (
    BaseStage,
    StageContext,
    StageExecutionError,
    StagePreconditionError,
)
from facetforge.stages.s1_bootstrap_router import BootstrapRouterStage
from facetforge.stages.s2_install_capabilities import InstallCapabilitiesStage
from facetforge.stages.s3_initialize_router import InitializeRouterStage
from facetforge.stages.s4_deploy_implementations import DeployImplementationsStage
from facetforge.stages.s5_deploy_beacons import DeployBeaconsStage
from facetforge.stages.s6_deploy_factory import DeployFactoryStage
from facetforge.stages.s7_wire_factory import WireFactoryStage
from facetforge.stages.s8_provision_collections import ProvisionCollectionsStage

STAGE_REGISTRY: dict[str, type[BaseStage]] = {
    "s1_bootstrap_router": BootstrapRouterStage,
    "s2_install_capabilities": InstallCapabilitiesStage,
    "s3_initialize_router": InitializeRouterStage,
    "s4_deploy_implementations": DeployImplementationsStage,
    "s5_deploy_beacons": DeployBeaconsStage,
    "s6_deploy_factory": DeployFactoryStage,
    "s7_wire_factory": WireFactoryStage,
    "s8_provision_collections": ProvisionCollectionsStage,
}

STAGE_ORDER: list[str] = list(STAGE_REGISTRY)


def resolve_stage_id(name: str) -> str:
    """Accept a full stage_id, its ``sN`` prefix or its ordinal.

    ``"s5_deploy_beacons"``, ``"s5"`` and ``"5"`` all name stage 5.
    """
    if name in STAGE_REGISTRY:
        return name
    prefix = name if name.startswith("s") else f"s{name}"
    for stage_id in STAGE_ORDER:
        if stage_id.split("_", 1)[0] == prefix:
            return stage_id
    raise KeyError(
        f"Unknown stage {name!r}. Registered stages: {STAGE_ORDER}"
    )


def get_stage(stage_id: str) -> BaseStage:
    """Instantiate a stage by its ``stage_id`` (or short form)."""
    return STAGE_REGISTRY[resolve_stage_id(stage_id)]()


__all__ = [
    # Base
    "BaseStage",
    "StageContext",
    "StageExecutionError",
    "StagePreconditionError",
    # Registry
    "STAGE_REGISTRY",
    "STAGE_ORDER",
    "get_stage",
    "resolve_stage_id",
    # Concrete stages
    "BootstrapRouterStage",
    "InstallCapabilitiesStage",
    "InitializeRouterStage",
    "DeployImplementationsStage",
    "DeployBeaconsStage",
    "DeployFactoryStage",
    "WireFactoryStage",
    "ProvisionCollectionsStage",
]
