"""Markdown deployment ledger — one document per network (the pipeline state).

The ledger is the source of truth for what has been deployed. Stages read
their preconditions from it and write their outputs to it; nothing else
derives deployment state.

Design:
- Sections are ``## Name`` blocks inserted immediately before the literal
  ``## Next Steps`` anchor.
- ``upsert_section`` / ``upsert_subsection`` replace an existing block in
  place or insert a new one; every other byte of the document is preserved.
  Applying the same upsert twice yields a byte-identical document.
- Addresses are rendered as inline code spans right after their role label,
  so they can be extracted by exact role label.
- Writes go through a temp file and ``os.replace``.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from facetforge.models.ledger import LedgerEntry
from facetforge.models.network import NetworkProfile

logger = logging.getLogger(__name__)

ANCHOR = "Next Steps"

_ADDRESS = r"0x[0-9a-fA-F]{40}"

DEFAULT_NEXT_STEPS: list[str] = [
    "Bootstrap Router (cut facet + router)",
    "Install Capabilities (deploy modules, one atomic cut)",
    "Initialize Router",
    "Deploy Vault Implementations",
    "Deploy Beacon System (ERC721 & ERC1155 Beacons)",
    "Deploy Collection Factory",
    "Connect Factory to Router",
    "Provision Priority Collections",
]


class LedgerError(RuntimeError):
    """Base class for ledger document errors."""


class LedgerPreconditionError(LedgerError):
    """Raised when roles a stage depends on are not recorded."""

    def __init__(self, message: str, *, stage_id: str = "", missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.stage_id = stage_id
        self.missing = list(missing or [])


class LedgerNotFoundError(LedgerPreconditionError):
    """Raised when the ledger document does not exist."""


class LedgerFormatError(LedgerError):
    """Raised when the document lacks the structure an update needs."""


# ---------------------------------------------------------------------------
# Pure text operations
# ---------------------------------------------------------------------------


def _heading(level: int, title: str) -> re.Pattern[str]:
    return re.compile(rf"^{'#' * level} {re.escape(title)}[ \t]*$", re.MULTILINE)


def _block_end(text: str, pos: int, level: int) -> int:
    """Offset of the next heading at ``level`` or above after ``pos``."""
    match = re.compile(rf"^#{{1,{level}}} ", re.MULTILINE).search(text, pos)
    return match.start() if match else len(text)


def upsert_section_text(text: str, name: str, content: str) -> str:
    """Insert or replace the ``## name`` block.

    A new block goes immediately before the ``## Next Steps`` anchor. An
    existing block is replaced up to the next ``#``/``##`` heading.
    """
    if name == ANCHOR:
        raise LedgerFormatError(f"{ANCHOR!r} is the anchor and cannot be upserted")

    body = content.strip("\n")
    block = f"## {name}\n\n{body}\n\n" if body else f"## {name}\n\n"

    existing = _heading(2, name).search(text)
    if existing:
        end = _block_end(text, existing.end(), 2)
        return text[: existing.start()] + block + text[end:]

    anchor = _heading(2, ANCHOR).search(text)
    if anchor is None:
        raise LedgerFormatError(f"Ledger has no '## {ANCHOR}' anchor to insert {name!r} before")
    return text[: anchor.start()] + block + text[anchor.start() :]


def upsert_subsection_text(text: str, section: str, heading: str, content: str) -> str:
    """Insert or replace ``### heading`` inside the ``## section`` block.

    New subsections are appended at the end of the section; the section is
    created before the anchor if it does not exist yet.
    """
    block = f"### {heading}\n{content.strip(chr(10))}\n\n"

    sec = _heading(2, section).search(text)
    if sec is None:
        return upsert_section_text(text, section, block)

    sec_end = _block_end(text, sec.end(), 2)
    sub = _heading(3, heading).search(text, sec.end(), sec_end)
    if sub:
        sub_end = _block_end(text, sub.end(), 3)
        return text[: sub.start()] + block + text[sub_end:]

    head = text[:sec_end]
    if not head.endswith("\n\n"):
        head = head.rstrip("\n") + "\n\n"
    return head + block + text[sec_end:]


def find_address(text: str, role: str) -> str | None:
    """Extract the address recorded under ``role``.

    Matches a ``- role: `0x…``` line, or a ``### role`` heading followed by
    its ``- Address: `0x…``` line. Labels match exactly, so ``Diamond`` never
    matches ``DiamondCutFacet``.
    """
    line = re.compile(rf"^- {re.escape(role)}: \[?`({_ADDRESS})`", re.MULTILINE).search(text)
    if line:
        return line.group(1)

    sub = _heading(3, role).search(text)
    if sub:
        end = _block_end(text, sub.end(), 3)
        match = re.compile(rf"^- Address: \[?`({_ADDRESS})`", re.MULTILINE).search(
            text, sub.end(), end
        )
        if match:
            return match.group(1)
    return None


def find_section(text: str, name: str) -> str | None:
    """Body of the ``## name`` block, without its heading."""
    existing = _heading(2, name).search(text)
    if existing is None:
        return None
    end = _block_end(text, existing.end(), 2)
    return text[existing.end() : end].strip("\n")


def find_subsection_headings(text: str, section: str) -> list[str]:
    """Titles of the ``###`` subsections inside ``## section``, in order."""
    sec = _heading(2, section).search(text)
    if sec is None:
        return []
    end = _block_end(text, sec.end(), 2)
    pattern = re.compile(r"^### (.+?)[ \t]*$", re.MULTILINE)
    return [m.group(1) for m in pattern.finditer(text, sec.end(), end)]


# ---------------------------------------------------------------------------
# Document store
# ---------------------------------------------------------------------------


class DeploymentLedger:
    """File-backed deployment ledger for one network.

    Parameters
    ----------
    path:
        Location of the markdown document. Not created until ``create()``.
    network:
        Profile used for the title block and explorer links.
    """

    def __init__(self, path: Path, network: NetworkProfile | None = None) -> None:
        self._path = Path(path)
        self._network = network

    @classmethod
    def for_network(cls, ledger_dir: Path, network: NetworkProfile) -> DeploymentLedger:
        """Ledger at ``{ledger_dir}/DEPLOYMENT_REPORT_{NETWORK}.md``."""
        return cls(Path(ledger_dir) / f"DEPLOYMENT_REPORT_{network.ledger_name}.md", network)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def network(self) -> NetworkProfile | None:
        return self._network

    def exists(self) -> bool:
        return self._path.exists()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read_text(self) -> str:
        """Return the full document. Raises ``LedgerNotFoundError`` if absent."""
        if not self._path.exists():
            raise LedgerNotFoundError(f"Deployment ledger not found at {self._path}")
        return self._path.read_bytes().decode("utf-8")

    def read_address(self, role: str) -> str | None:
        """Address recorded under ``role``, or None (also when no document)."""
        if not self.exists():
            return None
        return find_address(self.read_text(), role)

    def read_addresses(self, roles: Iterable[str]) -> dict[str, str]:
        """Addresses for the roles that are recorded; absent roles are omitted."""
        if not self.exists():
            return {}
        text = self.read_text()
        found: dict[str, str] = {}
        for role in roles:
            address = find_address(text, role)
            if address is not None:
                found[role] = address
        return found

    def require(self, roles: Iterable[str], stage_id: str = "") -> dict[str, str]:
        """Addresses for every role, or raise naming all that are missing.

        Raises ``LedgerNotFoundError`` when the document does not exist and
        ``LedgerPreconditionError`` when any role is unrecorded.
        """
        roles = list(roles)
        prefix = f"[{stage_id}] " if stage_id else ""
        if not self.exists():
            raise LedgerNotFoundError(
                f"{prefix}Deployment ledger not found at {self._path}; run the earlier stages first",
                stage_id=stage_id,
                missing=roles,
            )
        found = self.read_addresses(roles)
        missing = [role for role in roles if role not in found]
        if missing:
            raise LedgerPreconditionError(
                f"{prefix}Missing ledger entries: {', '.join(missing)} (in {self._path})",
                stage_id=stage_id,
                missing=missing,
            )
        return found

    def read_section(self, name: str) -> str | None:
        if not self.exists():
            return None
        return find_section(self.read_text(), name)

    def subsection_headings(self, section: str) -> list[str]:
        if not self.exists():
            return []
        return find_subsection_headings(self.read_text(), section)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def create(self, next_steps: list[str] | None = None) -> bool:
        """Write the document skeleton. Returns False if it already exists."""
        if self.exists():
            return False

        network = self._network
        title = network.ledger_name if network else "NETWORK"
        lines = [f"# {title} Deployment Report", ""]
        if network is not None:
            lines += [
                "## Network Information",
                f"- Network: {network.name}",
                f"- Chain ID: {network.chain_id}",
                "",
            ]
        lines += [
            "## Deployment Timestamp",
            datetime.now(timezone.utc).isoformat(),
            "",
            f"## {ANCHOR}",
        ]
        lines += [f"{i}. {step}" for i, step in enumerate(next_steps or DEFAULT_NEXT_STEPS, 1)]
        self._write("\n".join(lines) + "\n")
        logger.info("Created deployment ledger at %s", self._path)
        return True

    def upsert_section(self, name: str, content: str) -> None:
        """Insert ``## name`` before the anchor, or replace it in place."""
        text = self.read_text()
        updated = upsert_section_text(text, name, content)
        if updated != text:
            self._write(updated)
            logger.info("Ledger section %r written to %s", name, self._path)

    def upsert_subsection(self, section: str, heading: str, content: str) -> None:
        """Insert or replace ``### heading`` inside ``## section``."""
        text = self.read_text()
        updated = upsert_subsection_text(text, section, heading, content)
        if updated != text:
            self._write(updated)
            logger.info("Ledger entry %r written under %r", heading, section)

    def entry(self, role: str, address: str) -> LedgerEntry:
        """Build a ledger entry, linking to the explorer when one is known."""
        link = self._network.explorer_link(address) if self._network else None
        return LedgerEntry(role=role, address=address, explorer_link=link)

    def _write(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(text.encode("utf-8"))
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
