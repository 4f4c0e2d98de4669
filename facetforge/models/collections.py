"""Collection catalog models — what the factory should spawn."""

from __future__ import annotations

import json
from enum import IntEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator


class CollectionKind(IntEnum):
    """Collection kinds, encoded as the router's ``uint8`` collection type."""

    ERC721 = 1  # proxy-per-token kind, configured with a base URI
    ERC1155 = 2  # shared-metadata kind, configured with a direct URI


class CatalogEntry(BaseModel):
    """One desired collection: name, symbol and kind."""

    model_config = ConfigDict(frozen=True)

    name: str
    symbol: str
    kind: CollectionKind

    @field_validator("kind", mode="before")
    @classmethod
    def _parse_kind(cls, value: object) -> object:
        if isinstance(value, str) and not value.isdigit():
            return CollectionKind[value.upper()]
        return value

    @property
    def heading(self) -> str:
        """Ledger role label for this collection."""
        return f"{self.name} ({self.symbol})"


class ProvisionedCollection(BaseModel):
    """A collection that was created and configured."""

    model_config = ConfigDict(frozen=True)

    entry: CatalogEntry
    address: str
    metadata_uri: str = ""
    configured_with: str = ""  # setter signature, empty if found already recorded


class ProvisioningFailure(BaseModel):
    """A catalog entry whose creation could not be completed."""

    model_config = ConfigDict(frozen=True)

    entry: CatalogEntry
    reason: str
    tx_hash: str | None = None


PRIORITY_COLLECTIONS: list[CatalogEntry] = [
    CatalogEntry(name="Rare Pepe", symbol="PEPE", kind=CollectionKind.ERC1155),
    CatalogEntry(name="Spells of Genesis", symbol="SOG", kind=CollectionKind.ERC1155),
    CatalogEntry(name="Fake Rares", symbol="FAKE", kind=CollectionKind.ERC1155),
    CatalogEntry(name="EmBells", symbol="BELL", kind=CollectionKind.ERC721),
    CatalogEntry(name="Emblem Open", symbol="OPEN", kind=CollectionKind.ERC721),
]


def load_catalog(path: Path) -> list[CatalogEntry]:
    """Load a catalog from a JSON list of ``{name, symbol, kind}`` objects.

    ``kind`` may be given as ``"ERC721"``/``"ERC1155"`` or as the numeric
    collection type.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"Catalog {path} must be a JSON list, got {type(raw).__name__}")
    entries = [CatalogEntry(**item) for item in raw]

    seen: set[str] = set()
    for entry in entries:
        if entry.heading in seen:
            raise ValueError(f"Catalog {path} lists {entry.heading!r} more than once")
        seen.add(entry.heading)
    return entries
