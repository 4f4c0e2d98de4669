"""Facetforge data models — all Pydantic v2, all frozen (immutable)."""

from facetforge.models.collections import (
    PRIORITY_COLLECTIONS,
    CatalogEntry,
    CollectionKind,
    ProvisionedCollection,
    ProvisioningFailure,
    load_catalog,
)
from facetforge.models.config import DeploymentPlan, KindContracts, ModuleDeployment
from facetforge.models.cuts import ZERO_ADDRESS, CapabilityGrant, CutAction, CutBatch
from facetforge.models.events import (
    COLLECTION_CREATED_EVENT,
    EventInput,
    EventRecord,
    EventShape,
    TransactionReceipt,
)
from facetforge.models.ledger import LedgerEntry
from facetforge.models.network import KNOWN_NETWORKS, NetworkProfile, get_network
from facetforge.models.selectors import (
    CollisionRule,
    ModuleSpec,
    Operation,
    SelectorCollision,
    SelectorResolution,
    SelectorRoute,
)
from facetforge.models.stages import (
    DEFAULT_STAGE_DEFINITIONS,
    VALID_TRANSITIONS,
    PipelineResult,
    StageDefinition,
    StageResult,
    StageState,
    StageTransition,
)

__all__ = [
    # collections
    "CollectionKind",
    "CatalogEntry",
    "ProvisionedCollection",
    "ProvisioningFailure",
    "PRIORITY_COLLECTIONS",
    "load_catalog",
    # plan
    "DeploymentPlan",
    "KindContracts",
    "ModuleDeployment",
    # cuts
    "CutAction",
    "CapabilityGrant",
    "CutBatch",
    "ZERO_ADDRESS",
    # events
    "EventInput",
    "EventShape",
    "EventRecord",
    "TransactionReceipt",
    "COLLECTION_CREATED_EVENT",
    # ledger
    "LedgerEntry",
    # network
    "NetworkProfile",
    "KNOWN_NETWORKS",
    "get_network",
    # selectors
    "Operation",
    "ModuleSpec",
    "CollisionRule",
    "SelectorRoute",
    "SelectorCollision",
    "SelectorResolution",
    # stages
    "StageState",
    "StageDefinition",
    "StageTransition",
    "StageResult",
    "PipelineResult",
    "VALID_TRANSITIONS",
    "DEFAULT_STAGE_DEFINITIONS",
]
