"""Compiled contract artifacts — ABI, bytecode and operation catalogs.

Reads the JSON artifacts a Hardhat or Foundry build leaves behind. Lookup is
by contract name: the first ``**/<Contract>.json`` under the base path that
carries an ``abi`` wins. Hardhat stores bytecode as a hex string, Foundry as
``{"object": "0x…"}``; both are accepted. Debug files (``*.dbg.json``) never
match because their stem differs.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from facetforge.core.hasher import canonical_signature, compute_selector
from facetforge.models.selectors import ModuleSpec, Operation

logger = logging.getLogger(__name__)


class ArtifactNotFoundError(FileNotFoundError):
    """Raised when no compiled artifact exists for a contract name."""


class ContractArtifactStore:
    """Read-only view over a directory of compiled artifacts.

    Parameters
    ----------
    base_path:
        Build output root, e.g. ``artifacts/`` for Hardhat or ``out/`` for
        Foundry. Searched recursively.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._cache: dict[str, dict[str, Any]] = {}

    @property
    def base_path(self) -> Path:
        return self._base

    def load(self, contract: str) -> dict[str, Any]:
        """Parsed artifact JSON for ``contract`` (cached)."""
        if contract in self._cache:
            return self._cache[contract]

        if self._base.is_dir():
            for path in sorted(self._base.rglob(f"{contract}.json")):
                data = json.loads(path.read_text(encoding="utf-8"))
                if isinstance(data, dict) and "abi" in data:
                    logger.debug("Artifact for %s loaded from %s", contract, path)
                    self._cache[contract] = data
                    return data

        raise ArtifactNotFoundError(
            f"No compiled artifact for {contract} under {self._base}. "
            "Compile the contracts first."
        )

    def exists(self, contract: str) -> bool:
        try:
            self.load(contract)
        except ArtifactNotFoundError:
            return False
        return True

    def abi(self, contract: str) -> list[dict[str, Any]]:
        return list(self.load(contract)["abi"])

    def bytecode(self, contract: str) -> str:
        """Creation bytecode as a ``0x`` hex string."""
        raw = self.load(contract).get("bytecode", "")
        if isinstance(raw, dict):
            raw = raw.get("object", "")
        if not raw or raw == "0x":
            raise ArtifactNotFoundError(
                f"Artifact for {contract} has no creation bytecode (abstract or interface?)"
            )
        return raw if raw.startswith("0x") else f"0x{raw}"

    def operations(self, contract: str) -> list[Operation]:
        """Every function the contract's ABI declares, in ABI order."""
        ops: list[Operation] = []
        for fragment in self.abi(contract):
            if fragment.get("type") != "function":
                continue
            signature = canonical_signature(fragment)
            ops.append(
                Operation(
                    name=fragment["name"],
                    signature=signature,
                    selector=compute_selector(signature),
                )
            )
        return ops

    def module_spec(self, contract: str, role: str) -> ModuleSpec:
        return ModuleSpec(contract=contract, role=role, operations=self.operations(contract))
