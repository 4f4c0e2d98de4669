"""Create catalog collections through the router and configure their metadata.

Per entry, in catalog order:
    1. Skip if the ledger already records the entry's heading.
    2. Call the router's creation operation.
    3. Find the new instance's address in the receipt's event records.
    4. Call the kind-appropriate URI setter with ``prefix + address + "/"``.
    5. Append the entry to the ledger section.

A missing creation event fails that entry only and lists its transaction
under ``Unresolved Collection Creations`` for reconciliation. Transaction failures
propagate and halt the run.
"""

from __future__ import annotations

import logging

from facetforge.bridge.client import ChainClient
from facetforge.core.address_resolver import resolve_address
from facetforge.core.deployment_ledger import DeploymentLedger
from facetforge.models.collections import (
    CatalogEntry,
    ProvisionedCollection,
    ProvisioningFailure,
)
from facetforge.models.config import DeploymentPlan

logger = logging.getLogger(__name__)


class CollectionProvisioner:
    """Provision a catalog of collections against one router.

    Parameters
    ----------
    client:
        Chain client used for creation and configuration calls.
    ledger:
        Where each configured collection is recorded.
    plan:
        Signatures, creation event shape, URI prefix and default catalog.
    section:
        Ledger section the entries go under.
    unresolved_section:
        Ledger section listing creation transactions whose address was not
        found.
    """

    def __init__(
        self,
        client: ChainClient,
        ledger: DeploymentLedger,
        plan: DeploymentPlan,
        *,
        section: str = "Priority Collections",
        unresolved_section: str = "Unresolved Collection Creations",
    ) -> None:
        self._client = client
        self._ledger = ledger
        self._plan = plan
        self._section = section
        self._unresolved_section = unresolved_section

    def provision(
        self, router: str, catalog: list[CatalogEntry] | None = None
    ) -> tuple[list[ProvisionedCollection], list[ProvisioningFailure]]:
        """Provision every entry; returns (provisioned, failures)."""
        entries = self._plan.catalog if catalog is None else catalog
        provisioned: list[ProvisionedCollection] = []
        failures: list[ProvisioningFailure] = []

        for entry in entries:
            existing = self._ledger.read_address(entry.heading)
            if existing:
                logger.info("%s already provisioned at %s", entry.heading, existing)
                provisioned.append(
                    ProvisionedCollection(
                        entry=entry,
                        address=existing,
                        metadata_uri=self._plan.metadata_uri(existing),
                    )
                )
                continue

            result = self.provision_one(router, entry)
            if isinstance(result, ProvisioningFailure):
                failures.append(result)
            else:
                provisioned.append(result)

        logger.info(
            "Provisioned %d/%d collections (%d failed)",
            len(provisioned),
            len(entries),
            len(failures),
        )
        return provisioned, failures

    def provision_one(
        self, router: str, entry: CatalogEntry
    ) -> ProvisionedCollection | ProvisioningFailure:
        """Create, configure and record one entry."""
        plan = self._plan
        earlier = self.unresolved_creations(entry)
        if earlier:
            logger.warning(
                "%s was already created in %s without a known address; creating it again",
                entry.heading,
                ", ".join(earlier),
            )
        logger.info("Creating %s (%s)", entry.heading, entry.kind.name)
        receipt = self._client.transact(
            router,
            plan.collection_contract,
            plan.create_collection_signature,
            [entry.name, entry.symbol, int(entry.kind)],
        )

        address = resolve_address(receipt.events, plan.creation_event)
        if address is None:
            reason = (
                f"Created in transaction {receipt.tx_hash} but no "
                f"{plan.creation_event.name} event gives its address "
                f"({len(receipt.events)} event record(s)); the instance is unconfigured "
                "and a re-run creates another one, orphaning it"
            )
            logger.error("Possible orphan for %s: %s", entry.heading, reason)
            self.record_unresolved(entry, receipt.tx_hash)
            return ProvisioningFailure(entry=entry, reason=reason, tx_hash=receipt.tx_hash)

        metadata_uri = plan.metadata_uri(address)
        setter = plan.uri_setter_for(entry.kind)
        self._client.transact(router, plan.collection_contract, setter, [address, metadata_uri])

        self._ledger.upsert_subsection(
            self._section, entry.heading, self.render_entry(entry, address, metadata_uri)
        )
        logger.info("%s configured at %s", entry.heading, address)
        return ProvisionedCollection(
            entry=entry, address=address, metadata_uri=metadata_uri, configured_with=setter
        )

    def unresolved_creations(self, entry: CatalogEntry) -> list[str]:
        """Transaction hashes of earlier creations of ``entry`` with no known address."""
        body = self._ledger.read_section(self._unresolved_section) or ""
        prefix = f"- {entry.heading}: transaction `"
        return [
            line[len(prefix) :].rstrip("`")
            for line in body.splitlines()
            if line.startswith(prefix)
        ]

    def record_unresolved(self, entry: CatalogEntry, tx_hash: str) -> None:
        """Note a creation whose address is unknown so it can be reconciled by hand."""
        body = self._ledger.read_section(self._unresolved_section) or ""
        line = f"- {entry.heading}: transaction `{tx_hash}`"
        self._ledger.upsert_section(self._unresolved_section, "\n".join(filter(None, [body, line])))

    def render_entry(self, entry: CatalogEntry, address: str, metadata_uri: str) -> str:
        rendered = self._ledger.entry("Address", address).render()
        return "\n".join(
            [
                f"- Type: {entry.kind.name}",
                rendered,
                f"- Metadata URI: {metadata_uri}",
            ]
        )
