"""Selector resolution across logic modules.

Computes every module's selectors and builds the routing table the router
will hold. A selector declared by more than one module is never settled
silently: it is either dropped from all but one module by an explicit
``CollisionRule`` or reported as a ``SelectorCollision``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from facetforge.core.hasher import compute_selector
from facetforge.models.selectors import (
    CollisionRule,
    ModuleSpec,
    SelectorCollision,
    SelectorResolution,
    SelectorRoute,
)

logger = logging.getLogger(__name__)


class SelectorCollisionError(RuntimeError):
    """Raised when modules share a selector and no rule resolves it."""

    def __init__(self, collisions: Sequence[SelectorCollision], stage_id: str = "") -> None:
        self.collisions = list(collisions)
        self.stage_id = stage_id
        prefix = f"[{stage_id}] " if stage_id else ""
        details = "; ".join(c.describe() for c in self.collisions)
        super().__init__(
            f"{prefix}{len(self.collisions)} unresolved selector collision(s): {details}"
        )


class SelectorResolver:
    """Resolve operation selectors to modules.

    Parameters
    ----------
    rules:
        Collision rules. Each names a canonical signature and the contract
        that keeps it; every other declarer has it dropped.
    """

    def __init__(self, rules: Iterable[CollisionRule] = ()) -> None:
        self._rules: dict[str, CollisionRule] = {}
        for rule in rules:
            selector = compute_selector(rule.signature)
            if selector in self._rules:
                raise ValueError(
                    f"Duplicate collision rule for {rule.signature} ({selector})"
                )
            self._rules[selector] = rule

    def resolve(self, modules: Sequence[ModuleSpec]) -> SelectorResolution:
        """Build the routing table, reporting collisions instead of raising."""
        declared: dict[str, list[str]] = {}  # contract -> ordered selectors
        declarers: dict[str, list[str]] = {}  # selector -> contracts
        names: dict[str, tuple[str, str]] = {}  # selector -> (name, signature)

        for module in modules:
            if module.contract in declared:
                raise ValueError(f"Module {module.contract} listed more than once")
            selectors: list[str] = []
            for op in module.operations:
                # Recompute rather than trusting the catalog's value
                selector = compute_selector(op.signature)
                if selector in selectors:
                    continue
                selectors.append(selector)
                declarers.setdefault(selector, []).append(module.contract)
                names.setdefault(selector, (op.name, op.signature))
            declared[module.contract] = selectors

        collisions: list[SelectorCollision] = []
        dropped: dict[str, list[str]] = {}
        owner: dict[str, str] = {}

        for selector, contracts in declarers.items():
            if len(contracts) == 1:
                owner[selector] = contracts[0]
                continue

            name, _ = names[selector]
            rule = self._rules.get(selector)
            if rule is not None and rule.keep_on in contracts:
                owner[selector] = rule.keep_on
                dropped[selector] = [c for c in contracts if c != rule.keep_on]
                logger.info(
                    "Selector %s (%s) kept on %s, dropped from %s",
                    selector,
                    name,
                    rule.keep_on,
                    ", ".join(dropped[selector]),
                )
            else:
                collisions.append(
                    SelectorCollision(selector=selector, name=name, modules=list(contracts))
                )
                logger.error(
                    "Selector %s (%s) collides across %s",
                    selector,
                    name,
                    ", ".join(contracts),
                )

        per_module = {
            contract: [s for s in selectors if owner.get(s) == contract]
            for contract, selectors in declared.items()
        }
        routes = {
            selector: SelectorRoute(
                contract=contract,
                name=names[selector][0],
                signature=names[selector][1],
            )
            for selector, contract in owner.items()
        }

        return SelectorResolution(
            routes=routes,
            per_module=per_module,
            collisions=collisions,
            dropped=dropped,
        )

    def resolve_strict(
        self, modules: Sequence[ModuleSpec], *, stage_id: str = ""
    ) -> SelectorResolution:
        """Like ``resolve()`` but raises ``SelectorCollisionError`` on ambiguity."""
        resolution = self.resolve(modules)
        if resolution.is_ambiguous:
            raise SelectorCollisionError(resolution.collisions, stage_id=stage_id)
        return resolution
