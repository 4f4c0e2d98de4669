"""Build the atomic capability-grant batch submitted to the router.

Pure transformation: resolved selectors and module addresses in, ordered
``CutBatch`` out. No network I/O happens here.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from eth_utils import is_address, to_checksum_address

from facetforge.models.cuts import ZERO_ADDRESS, CapabilityGrant, CutAction, CutBatch
from facetforge.models.selectors import SelectorResolution


class CutBuildError(ValueError):
    """Raised when grant inputs are malformed."""


class EmptyGrantError(CutBuildError):
    """Raised when a module would be registered with zero selectors."""


class CutBuilder:
    """Turns (module address, selectors, action) triples into a ``CutBatch``."""

    def build(
        self,
        entries: Sequence[tuple[str, Sequence[str], CutAction]],
        *,
        init_address: str | None = None,
        init_calldata: bytes = b"",
    ) -> CutBatch:
        """Build an order-preserving batch.

        Raises ``EmptyGrantError`` for a grant with no selectors and
        ``CutBuildError`` for malformed addresses or a half-specified
        init hook.
        """
        if not entries:
            raise CutBuildError("A cut batch needs at least one grant")

        grants: list[CapabilityGrant] = []
        for module_address, selectors, action in entries:
            if not selectors:
                raise EmptyGrantError(
                    f"Module {module_address} has no selectors to {CutAction(action).name.lower()}"
                )
            if not is_address(module_address):
                raise CutBuildError(f"Invalid module address: {module_address!r}")
            address = to_checksum_address(module_address)
            if action == CutAction.REMOVE and address != ZERO_ADDRESS:
                raise CutBuildError(
                    f"Remove grants must target the zero address, got {address}"
                )
            if action != CutAction.REMOVE and address == ZERO_ADDRESS:
                raise CutBuildError(f"{CutAction(action).name} grant targets the zero address")
            grants.append(
                CapabilityGrant(
                    module_address=address,
                    action=CutAction(action),
                    selectors=list(selectors),
                )
            )

        hook = init_address or ZERO_ADDRESS
        if (hook == ZERO_ADDRESS) != (not init_calldata):
            raise CutBuildError(
                "init_address and init_calldata must be given together or not at all"
            )
        if hook != ZERO_ADDRESS:
            if not is_address(hook):
                raise CutBuildError(f"Invalid init address: {hook!r}")
            hook = to_checksum_address(hook)

        return CutBatch(grants=grants, init_address=hook, init_calldata=init_calldata)

    def from_resolution(
        self,
        resolution: SelectorResolution,
        addresses: Mapping[str, str],
        *,
        init_address: str | None = None,
        init_calldata: bytes = b"",
    ) -> CutBatch:
        """Build ADD grants in module order from a resolved routing table.

        ``addresses`` maps contract name to its deployed address.
        """
        entries: list[tuple[str, Sequence[str], CutAction]] = []
        for contract, selectors in resolution.per_module.items():
            if contract not in addresses:
                raise CutBuildError(f"No deployed address for module {contract}")
            if not selectors:
                raise EmptyGrantError(
                    f"Module {contract} has no selectors left after collision resolution"
                )
            entries.append((addresses[contract], selectors, CutAction.ADD))
        return self.build(entries, init_address=init_address, init_calldata=init_calldata)
