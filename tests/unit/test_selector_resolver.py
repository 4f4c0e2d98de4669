"""Unit tests for SelectorResolver — routing, collision rules, strict mode."""

from __future__ import annotations

import pytest

from facetforge.core.hasher import compute_selector
from facetforge.core.selector_resolver import SelectorCollisionError, SelectorResolver
from facetforge.models.selectors import CollisionRule, ModuleSpec, Operation


def _op(signature: str) -> Operation:
    return Operation(
        name=signature.split("(", 1)[0],
        signature=signature,
        selector=compute_selector(signature),
    )


def _module(contract: str, *signatures: str) -> ModuleSpec:
    return ModuleSpec(contract=contract, role=contract, operations=[_op(s) for s in signatures])


MAX_BATCH = compute_selector("MAX_BATCH_SIZE()")


@pytest.fixture
def shared_constant_modules() -> list[ModuleSpec]:
    return [
        _module("Unvault", "unvault(address,uint256)", "MAX_BATCH_SIZE()"),
        _module("Mint", "mint(address,uint256)", "MAX_BATCH_SIZE()"),
    ]


class TestResolve:
    """Every selector ends up routed to exactly one module."""

    def test_disjoint_modules(self):
        resolution = SelectorResolver().resolve(
            [_module("A", "a()", "b(uint256)"), _module("B", "c(address)")]
        )
        assert not resolution.is_ambiguous
        assert resolution.per_module == {
            "A": [compute_selector("a()"), compute_selector("b(uint256)")],
            "B": [compute_selector("c(address)")],
        }
        assert resolution.routes[compute_selector("c(address)")].contract == "B"

    def test_declaration_order_preserved(self):
        resolution = SelectorResolver().resolve([_module("A", "z()", "a()", "m()")])
        assert resolution.per_module["A"] == [
            compute_selector("z()"),
            compute_selector("a()"),
            compute_selector("m()"),
        ]

    def test_duplicate_within_module_counted_once(self):
        resolution = SelectorResolver().resolve([_module("A", "a()", "a()")])
        assert resolution.per_module["A"] == [compute_selector("a()")]
        assert not resolution.is_ambiguous

    def test_stale_catalog_selector_recomputed(self):
        bad = Operation(name="a", signature="a()", selector="0xdeadbeef")
        resolution = SelectorResolver().resolve([ModuleSpec(contract="A", role="A", operations=[bad])])
        assert resolution.per_module["A"] == [compute_selector("a()")]

    def test_module_listed_twice_rejected(self):
        with pytest.raises(ValueError, match="more than once"):
            SelectorResolver().resolve([_module("A", "a()"), _module("A", "b()")])


class TestCollisions:
    """Shared selectors are never settled silently."""

    def test_unruled_collision_reported(self, shared_constant_modules):
        resolution = SelectorResolver().resolve(shared_constant_modules)
        assert resolution.is_ambiguous
        (collision,) = resolution.collisions
        assert collision.selector == MAX_BATCH
        assert collision.name == "MAX_BATCH_SIZE"
        assert collision.modules == ["Unvault", "Mint"]
        assert MAX_BATCH not in resolution.routes

    def test_rule_keeps_designated_module(self, shared_constant_modules):
        rules = [CollisionRule(signature="MAX_BATCH_SIZE()", keep_on="Unvault")]
        resolution = SelectorResolver(rules).resolve(shared_constant_modules)
        assert not resolution.is_ambiguous
        assert resolution.routes[MAX_BATCH].contract == "Unvault"
        assert MAX_BATCH in resolution.per_module["Unvault"]
        assert MAX_BATCH not in resolution.per_module["Mint"]
        assert resolution.dropped == {MAX_BATCH: ["Mint"]}

    def test_rule_for_absent_module_does_not_resolve(self, shared_constant_modules):
        rules = [CollisionRule(signature="MAX_BATCH_SIZE()", keep_on="Elsewhere")]
        resolution = SelectorResolver(rules).resolve(shared_constant_modules)
        assert resolution.is_ambiguous

    def test_rule_without_collision_is_inert(self):
        rules = [CollisionRule(signature="MAX_BATCH_SIZE()", keep_on="Unvault")]
        resolution = SelectorResolver(rules).resolve([_module("Unvault", "MAX_BATCH_SIZE()")])
        assert resolution.dropped == {}
        assert resolution.per_module["Unvault"] == [MAX_BATCH]

    def test_duplicate_rules_rejected(self):
        rules = [
            CollisionRule(signature="MAX_BATCH_SIZE()", keep_on="A"),
            CollisionRule(signature="MAX_BATCH_SIZE()", keep_on="B"),
        ]
        with pytest.raises(ValueError, match="Duplicate collision rule"):
            SelectorResolver(rules)


class TestResolveStrict:
    def test_raises_on_collision(self, shared_constant_modules):
        with pytest.raises(SelectorCollisionError) as exc_info:
            SelectorResolver().resolve_strict(shared_constant_modules, stage_id="s2_install_capabilities")
        assert exc_info.value.stage_id == "s2_install_capabilities"
        assert len(exc_info.value.collisions) == 1
        assert MAX_BATCH in str(exc_info.value)

    def test_returns_resolution_when_clean(self):
        resolution = SelectorResolver().resolve_strict([_module("A", "a()")])
        assert list(resolution.routes) == [compute_selector("a()")]
