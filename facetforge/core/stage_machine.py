"""Deterministic stage state machine for one pipeline invocation.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- Prerequisites checked before RUNNING
- Cascade blocking on failure, unblocking on retry
- Every transition recorded in the transition log
"""

from __future__ import annotations

import logging

from facetforge.core.prerequisite_graph import PrerequisiteGraph, PrerequisiteNotMetError
from facetforge.models.stages import VALID_TRANSITIONS, StageState, StageTransition

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class StageMachine:
    """Tracks stage states and enforces the transition table.

    Parameters
    ----------
    graph:
        The prerequisite graph for dependency checking.
    """

    def __init__(self, graph: PrerequisiteGraph) -> None:
        self._graph = graph
        self._states: dict[str, StageState] = {}
        self._history: list[StageTransition] = []
        self.reset()

    def reset(self) -> None:
        """Set every stage to NOT_STARTED and clear the log."""
        self._states = {sid: StageState.NOT_STARTED for sid in self._graph.stage_ids}
        self._history = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_state(self, stage_id: str) -> StageState:
        return self._states[stage_id]

    def get_all_states(self) -> dict[str, StageState]:
        return dict(self._states)

    @property
    def history(self) -> list[StageTransition]:
        return list(self._history)

    def can_start(self, stage_id: str) -> tuple[bool, list[str]]:
        """Whether a stage can enter RUNNING, with blocking reasons."""
        current = self._states[stage_id]
        if current != StageState.NOT_STARTED:
            return False, [f"Stage is currently {current.value}, not not_started"]
        if not self._graph.are_prerequisites_met(stage_id, self._states):
            return False, self._graph.get_blocking_reasons(stage_id, self._states)
        return True, []

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def transition(
        self, stage_id: str, target_state: StageState, reason: str | None = None
    ) -> StageTransition:
        """Move a stage to ``target_state``.

        Validates:
        1. The transition is allowed by VALID_TRANSITIONS.
        2. If target is RUNNING, prerequisites are met.
        3. If target is FAILED, dependents are cascade-blocked.
        """
        if stage_id not in self._states:
            raise KeyError(f"Unknown stage_id {stage_id!r}")
        current = self._states[stage_id]

        allowed = VALID_TRANSITIONS.get(current, set())
        if target_state not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition {stage_id} from {current.value} to {target_state.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )

        if target_state == StageState.RUNNING:
            if not self._graph.are_prerequisites_met(stage_id, self._states):
                reasons = self._graph.get_blocking_reasons(stage_id, self._states)
                raise PrerequisiteNotMetError(
                    f"Cannot start {stage_id}: prerequisites not met. "
                    f"Blocked by: {'; '.join(reasons)}"
                )

        record = self._record(stage_id, current, target_state, reason)

        if target_state == StageState.FAILED:
            for blocked_id in self._graph.cascade_block(stage_id, self._states):
                self._record(
                    blocked_id,
                    StageState.NOT_STARTED,
                    StageState.BLOCKED,
                    f"upstream {stage_id} failed",
                    update=False,
                )
        return record

    def retry(self, stage_id: str) -> list[str]:
        """Return a FAILED stage and its blocked dependents to NOT_STARTED.

        Returns the stage_ids that were reset.
        """
        self.transition(stage_id, StageState.NOT_STARTED, "retry")
        reset = [stage_id]
        for dep in self._graph.get_dependents(stage_id):
            if self._states[dep] == StageState.BLOCKED:
                self.transition(dep, StageState.NOT_STARTED, f"{stage_id} retried")
                reset.append(dep)
        return reset

    def _record(
        self,
        stage_id: str,
        from_state: StageState,
        to_state: StageState,
        reason: str | None,
        *,
        update: bool = True,
    ) -> StageTransition:
        record = StageTransition(
            stage_id=stage_id, from_state=from_state, to_state=to_state, reason=reason
        )
        self._history.append(record)
        if update:
            self._states[stage_id] = to_state
        logger.debug(
            "%s: %s -> %s%s",
            stage_id,
            from_state.value,
            to_state.value,
            f" ({reason})" if reason else "",
        )
        return record
