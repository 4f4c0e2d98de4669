"""Pre-flight affordability check.

Runs once before the first stage that will actually execute. It estimates
the cost of the first deployment (the cut facet) at the current gas price and
fails hard when the operator cannot pay for it. The node is used only as a
read-only oracle; this is a floor, not a budget for the whole pipeline.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict
from web3 import Web3

from facetforge.bridge.client import ChainClient

logger = logging.getLogger(__name__)


class InsufficientFundsError(RuntimeError):
    """Raised when the operator balance cannot cover the first deployment.

    The pipeline must not proceed: nothing has been sent yet.
    """

    def __init__(self, report: AffordabilityReport) -> None:
        self.report = report
        super().__init__(
            f"Insufficient funds: {report.account} holds "
            f"{Web3.from_wei(report.balance_wei, 'ether')} but deploying "
            f"{report.contract} needs about {Web3.from_wei(report.required_wei, 'ether')} "
            f"({report.estimated_gas} gas at {Web3.from_wei(report.gas_price_wei, 'gwei')} gwei)"
        )


class AffordabilityReport(BaseModel):
    """Outcome of a pre-flight check."""

    model_config = ConfigDict(frozen=True)

    account: str
    contract: str
    balance_wei: int
    estimated_gas: int
    gas_price_wei: int

    @property
    def required_wei(self) -> int:
        return self.estimated_gas * self.gas_price_wei

    @property
    def affordable(self) -> bool:
        return self.balance_wei >= self.required_wei


def check_affordability(client: ChainClient, contract: str) -> AffordabilityReport:
    """Estimate deploying ``contract`` and compare with the operator balance.

    Raises
    ------
    InsufficientFundsError
        If the balance is below estimated gas times gas price.
    """
    report = AffordabilityReport(
        account=client.account,
        contract=contract,
        balance_wei=client.get_balance(client.account),
        estimated_gas=client.estimate_deploy_gas(contract),
        gas_price_wei=client.gas_price(),
    )
    if not report.affordable:
        error = InsufficientFundsError(report)
        logger.critical("%s", error)
        raise error

    logger.info(
        "Pre-flight passed: balance %s ETH, %s estimated at %d gas",
        Web3.from_wei(report.balance_wei, "ether"),
        contract,
        report.estimated_gas,
    )
    return report
