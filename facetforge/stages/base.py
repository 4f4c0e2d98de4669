"""Abstract base stage with an enforced lifecycle.

Every concrete stage inherits from BaseStage and implements ``execute()``
plus the role declarations. The ``run_stage()`` wrapper is **not
overridable**; it enforces the canonical ordering:

    skip check -> preconditions -> execute (stage records its outputs)

so that no stage issues a remote call when its outputs are already in the
ledger, or when the roles it depends on are missing.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Sequence
from typing import Any, ClassVar, final

from pydantic import BaseModel, ConfigDict

from facetforge.bridge.artifacts import ArtifactNotFoundError, ContractArtifactStore
from facetforge.bridge.client import ChainClient, TransactionFailedError
from facetforge.core.address_resolver import AddressNotFoundError
from facetforge.core.cut_builder import CutBuildError
from facetforge.core.deployment_ledger import DeploymentLedger, LedgerError
from facetforge.core.preflight import InsufficientFundsError
from facetforge.core.selector_resolver import SelectorCollisionError
from facetforge.models.config import DeploymentPlan
from facetforge.models.events import TransactionReceipt
from facetforge.models.ledger import render_entries
from facetforge.models.stages import DEFAULT_STAGE_DEFINITIONS, StageResult, StageState

logger = logging.getLogger(__name__)

_DEFINITIONS = {sd.stage_id: sd for sd in DEFAULT_STAGE_DEFINITIONS}


class StagePreconditionError(RuntimeError):
    """Raised when a stage's ledger preconditions are not satisfied."""

    def __init__(self, message: str, *, stage_id: str = "", missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.stage_id = stage_id
        self.missing = list(missing or [])


class StageExecutionError(RuntimeError):
    """Raised when a stage's execute() fails unexpectedly."""


# Errors that already carry stage-level meaning; run_stage lets them through.
PASSTHROUGH_ERRORS: tuple[type[BaseException], ...] = (
    StagePreconditionError,
    LedgerError,
    SelectorCollisionError,
    CutBuildError,
    TransactionFailedError,
    AddressNotFoundError,
    InsufficientFundsError,
    ArtifactNotFoundError,
)


class StageContext(BaseModel):
    """Everything a stage needs: the ledger, the chain and the plan."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ledger: DeploymentLedger
    client: Any  # ChainClient
    plan: DeploymentPlan
    artifacts: ContractArtifactStore
    operator: str
    force: bool = False


class _CountingClient:
    """Delegates to a ChainClient, counting deployments and transactions."""

    def __init__(self, inner: ChainClient) -> None:
        self._inner = inner
        self.calls = 0

    @property
    def account(self) -> str:
        return self._inner.account

    def deploy(self, contract: str, args: Sequence[Any] = (), *, gas_limit: int | None = None) -> str:
        self.calls += 1
        return self._inner.deploy(contract, args, gas_limit=gas_limit)

    def transact(
        self, address: str, contract: str, signature: str, args: Sequence[Any] = ()
    ) -> TransactionReceipt:
        self.calls += 1
        return self._inner.transact(address, contract, signature, args)

    def estimate_deploy_gas(self, contract: str, args: Sequence[Any] = ()) -> int:
        return self._inner.estimate_deploy_gas(contract, args)

    def gas_price(self) -> int:
        return self._inner.gas_price()

    def get_balance(self, address: str) -> int:
        return self._inner.get_balance(address)


class BaseStage(abc.ABC):
    """Abstract base for all deployment stages.

    Subclasses **must** implement:
        * ``stage_id`` and ``display_name``.
        * ``execute(ctx, inputs)`` — remote calls plus recording outputs.

    Subclasses **may** override:
        * ``required_roles(plan)`` — ledger roles read on entry.
        * ``produced_roles(plan)`` — ledger roles the stage writes.
        * ``outputs_current(recorded, ledger, plan)`` — whether recorded
          outputs still describe the deployment.
        * ``side_effect`` — True for stages whose only output is a marker
          proving an on-chain call was made.
        * ``requires_ledger`` — False only for the stage that creates it.

    Subclasses **must not** override ``run_stage()``.
    """

    requires_ledger: ClassVar[bool] = True
    side_effect: ClassVar[bool] = False

    @property
    @abc.abstractmethod
    def stage_id(self) -> str:
        ...

    @property
    @abc.abstractmethod
    def display_name(self) -> str:
        ...

    @property
    def section(self) -> str:
        """Ledger section this stage writes."""
        return _DEFINITIONS[self.stage_id].section

    def required_roles(self, plan: DeploymentPlan) -> list[str]:
        return []

    def produced_roles(self, plan: DeploymentPlan) -> list[str]:
        return []

    def outputs_current(
        self, recorded: dict[str, str], ledger: DeploymentLedger, plan: DeploymentPlan
    ) -> bool:
        return True

    @abc.abstractmethod
    def execute(self, ctx: StageContext, inputs: dict[str, str]) -> StageResult:
        """Perform the stage's remote operations and record its outputs.

        ``inputs`` holds the required roles' addresses, read from the ledger.
        """
        ...

    # ------------------------------------------------------------------
    # Lifecycle (not overridable)
    # ------------------------------------------------------------------

    @final
    def recorded_outputs(self, ledger: DeploymentLedger, plan: DeploymentPlan) -> dict[str, str] | None:
        """Outputs already in the ledger, or None if the stage still has work.

        A stage is complete when every role it produces is recorded and
        the recorded values are still current.
        """
        if not ledger.exists():
            return None
        produced = self.produced_roles(plan)
        found = ledger.read_addresses(produced)
        if len(found) != len(produced) or not self.outputs_current(found, ledger, plan):
            return None
        return found

    @final
    def check_preconditions(self, ctx: StageContext) -> dict[str, str]:
        """Read required roles from the ledger before any remote call."""
        roles = self.required_roles(ctx.plan)
        if not self.requires_ledger and not roles:
            return {}
        try:
            return ctx.ledger.require(roles, self.stage_id)
        except LedgerError as exc:
            missing = getattr(exc, "missing", [])
            raise StagePreconditionError(
                str(exc), stage_id=self.stage_id, missing=missing
            ) from exc

    @final
    def run_stage(self, ctx: StageContext) -> StageResult:
        """Execute the full stage lifecycle.  **Do not override.**"""
        recorded = self.recorded_outputs(ctx.ledger, ctx.plan)
        if recorded is not None:
            if not ctx.force:
                logger.info(
                    "%s [%s] already recorded in %s, skipping",
                    self.display_name,
                    self.stage_id,
                    ctx.ledger.path.name,
                )
                return StageResult(
                    stage_id=self.stage_id, state=StageState.SKIPPED, addresses=recorded
                )
            logger.warning(
                "%s [%s] forced re-run: contracts recorded earlier may be orphaned",
                self.display_name,
                self.stage_id,
            )

        inputs = self.check_preconditions(ctx)

        counting = _CountingClient(ctx.client)
        try:
            result = self.execute(ctx.model_copy(update={"client": counting}), inputs)
        except PASSTHROUGH_ERRORS:
            logger.error("%s [%s] failed", self.display_name, self.stage_id)
            raise
        except Exception as exc:
            logger.error("%s [%s] execution failed: %s", self.display_name, self.stage_id, exc)
            raise StageExecutionError(f"Stage {self.stage_id} failed: {exc}") from exc

        logger.info(
            "%s [%s] done with %d remote call(s)", self.display_name, self.stage_id, counting.calls
        )
        return result.model_copy(update={"remote_calls": counting.calls})

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def record_addresses(self, ctx: StageContext, addresses: dict[str, str]) -> None:
        """Write ``role -> address`` pairs as this stage's ledger section."""
        entries = [ctx.ledger.entry(role, address) for role, address in addresses.items()]
        ctx.ledger.upsert_section(self.section, render_entries(entries))

    def passed(self, addresses: dict[str, str] | None = None, **extra: Any) -> StageResult:
        return StageResult(
            stage_id=self.stage_id, state=StageState.PASSED, addresses=addresses or {}, **extra
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} stage_id={self.stage_id!r}>"
