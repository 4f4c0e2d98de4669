"""Tests for the PrerequisiteGraph — DAG, ordering, cascade blocking."""

from __future__ import annotations

import pytest

from facetforge.core.prerequisite_graph import CyclicDependencyError, PrerequisiteGraph
from facetforge.models.stages import StageDefinition, StageState


class TestPrerequisiteGraph:
    def test_builds_from_defaults(self, graph: PrerequisiteGraph):
        assert len(graph.stage_ids) == 8

    def test_order_is_strictly_forward(self, graph: PrerequisiteGraph):
        assert graph.stage_ids == [
            "s1_bootstrap_router",
            "s2_install_capabilities",
            "s3_initialize_router",
            "s4_deploy_implementations",
            "s5_deploy_beacons",
            "s6_deploy_factory",
            "s7_wire_factory",
            "s8_provision_collections",
        ]

    def test_first_stage_has_no_prerequisites(self, graph: PrerequisiteGraph):
        states = {sid: StageState.NOT_STARTED for sid in graph.stage_ids}
        assert graph.are_prerequisites_met("s1_bootstrap_router", states) is True

    def test_prerequisites_not_met(self, graph: PrerequisiteGraph):
        states = {sid: StageState.NOT_STARTED for sid in graph.stage_ids}
        assert graph.are_prerequisites_met("s2_install_capabilities", states) is False

    def test_skipped_satisfies_prerequisite(self, graph: PrerequisiteGraph):
        states = {sid: StageState.NOT_STARTED for sid in graph.stage_ids}
        states["s4_deploy_implementations"] = StageState.SKIPPED
        assert graph.are_prerequisites_met("s5_deploy_beacons", states) is True

    def test_blocking_reasons_name_the_prerequisite(self, graph: PrerequisiteGraph):
        states = {sid: StageState.NOT_STARTED for sid in graph.stage_ids}
        states["s5_deploy_beacons"] = StageState.FAILED
        reasons = graph.get_blocking_reasons("s6_deploy_factory", states)
        assert reasons == ["Deploy Beacons (s5_deploy_beacons) is failed"]

    def test_dependents_are_transitive(self, graph: PrerequisiteGraph):
        assert graph.get_dependents("s6_deploy_factory") == [
            "s7_wire_factory",
            "s8_provision_collections",
        ]
        assert graph.get_dependents("s8_provision_collections") == []

    def test_cascade_block(self, graph: PrerequisiteGraph):
        states = {sid: StageState.NOT_STARTED for sid in graph.stage_ids}
        states["s1_bootstrap_router"] = StageState.PASSED
        states["s2_install_capabilities"] = StageState.FAILED
        blocked = graph.cascade_block("s2_install_capabilities", states)
        assert blocked == graph.stage_ids[2:]
        assert states["s1_bootstrap_router"] == StageState.PASSED
        assert all(states[sid] == StageState.BLOCKED for sid in blocked)


class TestGraphValidation:
    def test_cycle_detected(self):
        defs = [
            StageDefinition(stage_id="a", display_name="A", ordinal=1, prerequisites=["b"]),
            StageDefinition(stage_id="b", display_name="B", ordinal=2, prerequisites=["a"]),
        ]
        with pytest.raises(CyclicDependencyError):
            PrerequisiteGraph(defs)

    def test_unknown_prerequisite_rejected(self):
        defs = [StageDefinition(stage_id="a", display_name="A", ordinal=1, prerequisites=["ghost"])]
        with pytest.raises(ValueError, match="ghost"):
            PrerequisiteGraph(defs)

    def test_ties_broken_by_ordinal(self):
        defs = [
            StageDefinition(stage_id="late", display_name="Late", ordinal=3),
            StageDefinition(stage_id="early", display_name="Early", ordinal=1),
            StageDefinition(stage_id="mid", display_name="Mid", ordinal=2),
        ]
        assert PrerequisiteGraph(defs).stage_ids == ["early", "mid", "late"]
