"""Chain client protocol — what the pipeline needs from a network.

Every call blocks until it is confirmed. A reverted or rejected transaction
raises ``TransactionFailedError``; nothing is retried at this layer.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from facetforge.models.events import TransactionReceipt


class TransactionFailedError(RuntimeError):
    """Raised when a deployment or call reverts or cannot be submitted."""

    def __init__(self, message: str, *, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


@runtime_checkable
class ChainClient(Protocol):
    """Deploy contracts and send transactions as one operator account."""

    @property
    def account(self) -> str:
        """Checksum address of the deploying account."""
        ...

    def deploy(
        self, contract: str, args: Sequence[Any] = (), *, gas_limit: int | None = None
    ) -> str:
        """Deploy ``contract`` with constructor ``args``; return its address."""
        ...

    def transact(
        self,
        address: str,
        contract: str,
        signature: str,
        args: Sequence[Any] = (),
    ) -> TransactionReceipt:
        """Call ``signature`` on the contract at ``address`` and wait for it.

        ``contract`` names the artifact whose ABI describes the function.
        """
        ...

    def estimate_deploy_gas(self, contract: str, args: Sequence[Any] = ()) -> int:
        ...

    def gas_price(self) -> int:
        ...

    def get_balance(self, address: str) -> int:
        ...
