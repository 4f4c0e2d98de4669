"""Operation and module models used for selector resolution."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Operation(BaseModel):
    """A module-exposed function, identified by its 4-byte selector."""

    model_config = ConfigDict(frozen=True)

    name: str
    signature: str  # canonical, e.g. "transfer(address,uint256)"
    selector: str  # "0x" + 8 lowercase hex chars


class ModuleSpec(BaseModel):
    """A logic module (facet) and the operations it declares."""

    model_config = ConfigDict(frozen=True)

    contract: str  # artifact name, e.g. "EmblemVaultMintFacet"
    role: str  # ledger label, e.g. "MintFacet"
    operations: list[Operation] = []


class CollisionRule(BaseModel):
    """Keep a shared operation on one designated module, drop it elsewhere."""

    model_config = ConfigDict(frozen=True)

    signature: str
    keep_on: str  # contract name


class SelectorRoute(BaseModel):
    """Where a selector will be routed after resolution."""

    model_config = ConfigDict(frozen=True)

    contract: str
    name: str
    signature: str


class SelectorCollision(BaseModel):
    """A selector declared by more than one module with no rule to settle it."""

    model_config = ConfigDict(frozen=True)

    selector: str
    name: str
    modules: list[str]

    def describe(self) -> str:
        return f"{self.selector} ({self.name}) declared by {', '.join(self.modules)}"


class SelectorResolution(BaseModel):
    """Routing table produced by the SelectorResolver."""

    model_config = ConfigDict(frozen=True)

    routes: dict[str, SelectorRoute] = {}
    per_module: dict[str, list[str]] = {}  # contract -> ordered selectors
    collisions: list[SelectorCollision] = []
    dropped: dict[str, list[str]] = {}  # selector -> contracts it was removed from

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.collisions)
