"""Deployment plan — which contracts make up the system and how they are wired.

The plan is the static topology of a deployment: contract artifact names,
the ledger role each one is recorded under, the signatures the pipeline
calls, the collision rules and the collection catalog. Defaults describe the
vault system this tool was built for.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator

from facetforge.models.collections import PRIORITY_COLLECTIONS, CatalogEntry, CollectionKind
from facetforge.models.events import COLLECTION_CREATED_EVENT, EventShape
from facetforge.models.selectors import CollisionRule


class ModuleDeployment(BaseModel):
    """A logic module to deploy and register with the router."""

    model_config = ConfigDict(frozen=True)

    contract: str
    role: str


class KindContracts(BaseModel):
    """Implementation and beacon contracts for one collection kind."""

    model_config = ConfigDict(frozen=True)

    implementation: str
    implementation_role: str
    beacon: str
    beacon_role: str


DEFAULT_MODULES: list[ModuleDeployment] = [
    ModuleDeployment(contract="DiamondLoupeFacet", role="DiamondLoupeFacet"),
    ModuleDeployment(contract="OwnershipFacet", role="OwnershipFacet"),
    ModuleDeployment(contract="EmblemVaultCoreFacet", role="VaultCoreFacet"),
    ModuleDeployment(contract="EmblemVaultUnvaultFacet", role="UnvaultFacet"),
    ModuleDeployment(contract="EmblemVaultMintFacet", role="MintFacet"),
    ModuleDeployment(contract="EmblemVaultCollectionFacet", role="CollectionFacet"),
    ModuleDeployment(contract="EmblemVaultInitFacet", role="InitFacet"),
]

# Both the unvault and mint facets declare the MAX_BATCH_SIZE() constant;
# the unvault facet owns batch-size limits.
DEFAULT_COLLISION_RULES: list[CollisionRule] = [
    CollisionRule(signature="MAX_BATCH_SIZE()", keep_on="EmblemVaultUnvaultFacet"),
]


class DeploymentPlan(BaseModel):
    """Static topology of one deployment."""

    model_config = ConfigDict(frozen=True)

    # Router bootstrap
    router_contract: str = "EmblemVaultDiamond"
    router_role: str = "Diamond"
    cut_facet_contract: str = "DiamondCutFacet"
    cut_facet_role: str = "DiamondCutFacet"
    cut_signature: str = "diamondCut((address,uint8,bytes4[])[],address,bytes)"

    # Capability modules, in cut order
    modules: list[ModuleDeployment] = DEFAULT_MODULES
    collision_rules: list[CollisionRule] = DEFAULT_COLLISION_RULES
    init_contract: str = "EmblemVaultInitFacet"
    initializer_signature: str = "initialize(address)"
    initialized_role: str = "Initialized Operator"

    # Collection management, called through the router
    collection_contract: str = "EmblemVaultCollectionFacet"
    set_factory_signature: str = "setCollectionFactory(address)"
    registered_factory_role: str = "Registered Factory"
    create_collection_signature: str = "createVaultCollection(string,string,uint8)"
    base_uri_setter: str = "setCollectionBaseURI(address,string)"
    uri_setter: str = "setCollectionURI(address,string)"
    creation_event: EventShape = COLLECTION_CREATED_EVENT

    # Beacon system
    erc721: KindContracts = KindContracts(
        implementation="ERC721VaultImplementation",
        implementation_role="ERC721 Implementation",
        beacon="ERC721VaultBeacon",
        beacon_role="ERC721 Beacon",
    )
    erc1155: KindContracts = KindContracts(
        implementation="ERC1155VaultImplementation",
        implementation_role="ERC1155 Implementation",
        beacon="ERC1155VaultBeacon",
        beacon_role="ERC1155 Beacon",
    )
    beacon_gas_limit: int | None = 5_000_000
    factory_contract: str = "VaultCollectionFactory"
    factory_role: str = "Collection Factory"

    # Collections
    catalog: list[CatalogEntry] = PRIORITY_COLLECTIONS
    metadata_uri_prefix: str = "https://v2.emblemvault.io/v3/meta/"

    @model_validator(mode="after")
    def _check_wiring(self) -> DeploymentPlan:
        contracts = [m.contract for m in self.modules]
        if len(set(contracts)) != len(contracts):
            raise ValueError("Module contracts must be unique")
        roles = [m.role for m in self.modules]
        if len(set(roles)) != len(roles):
            raise ValueError("Module roles must be unique")
        for attr in ("init_contract", "collection_contract"):
            if getattr(self, attr) not in contracts:
                raise ValueError(f"{attr}={getattr(self, attr)!r} is not one of the modules")
        headings = [entry.heading for entry in self.catalog]
        if len(set(headings)) != len(headings):
            raise ValueError("Catalog entries must have unique name/symbol pairs")
        return self

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def module_role(self, contract: str) -> str:
        for module in self.modules:
            if module.contract == contract:
                return module.role
        raise KeyError(f"{contract} is not a module of this plan")

    @property
    def module_roles(self) -> list[str]:
        return [m.role for m in self.modules]

    @property
    def init_role(self) -> str:
        return self.module_role(self.init_contract)

    def kind_contracts(self, kind: CollectionKind) -> KindContracts:
        return self.erc721 if kind == CollectionKind.ERC721 else self.erc1155

    def uri_setter_for(self, kind: CollectionKind) -> str:
        """Base-URI setter for the proxy-per-token kind, direct URI otherwise."""
        return self.base_uri_setter if kind == CollectionKind.ERC721 else self.uri_setter

    def metadata_uri(self, address: str) -> str:
        return f"{self.metadata_uri_prefix}{address}/"
