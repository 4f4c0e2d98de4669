"""Deployment ledger entry model.

A ledger entry is one line of the markdown deployment report: a role label
followed by the address as an inline code span, optionally linked to the
block explorer. The exact rendering is what ``DeploymentLedger`` parses back.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LedgerEntry(BaseModel):
    """One deployed address recorded under a role label."""

    model_config = ConfigDict(frozen=True)

    role: str
    address: str
    explorer_link: str | None = None

    def render_address(self) -> str:
        """The address as ``[`0x…`](link)`` or a bare `` `0x…` ``."""
        if self.explorer_link:
            return f"[`{self.address}`]({self.explorer_link})"
        return f"`{self.address}`"

    def render(self) -> str:
        return f"- {self.role}: {self.render_address()}"


def render_entries(entries: list[LedgerEntry]) -> str:
    """Render entries as a markdown bullet list (no trailing newline)."""
    return "\n".join(entry.render() for entry in entries)
