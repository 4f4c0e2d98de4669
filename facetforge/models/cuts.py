"""Capability grant (diamond cut) models."""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class CutAction(IntEnum):
    """Router cut actions, in the router ABI's ``uint8`` encoding."""

    ADD = 0
    REPLACE = 1
    REMOVE = 2


class CapabilityGrant(BaseModel):
    """One add/replace/remove instruction for the router's selector map."""

    model_config = ConfigDict(frozen=True)

    module_address: str
    action: CutAction
    selectors: list[str]

    def as_abi_tuple(self) -> tuple[str, int, list[bytes]]:
        """Encode as the ``(address,uint8,bytes4[])`` struct the router takes."""
        return (
            self.module_address,
            int(self.action),
            [bytes.fromhex(s.removeprefix("0x")) for s in self.selectors],
        )


class CutBatch(BaseModel):
    """An ordered, atomically-applied batch of grants plus the init hook."""

    model_config = ConfigDict(frozen=True)

    grants: list[CapabilityGrant]
    init_address: str = ZERO_ADDRESS
    init_calldata: bytes = b""

    @property
    def selector_count(self) -> int:
        return sum(len(g.selectors) for g in self.grants)

    def as_call_args(self) -> list[object]:
        """Arguments for ``diamondCut((address,uint8,bytes4[])[],address,bytes)``."""
        return [
            [g.as_abi_tuple() for g in self.grants],
            self.init_address,
            self.init_calldata,
        ]
