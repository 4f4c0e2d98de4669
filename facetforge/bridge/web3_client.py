"""web3.py implementation of the ``ChainClient`` protocol.

Transactions are built from the compiled ABI, signed locally with the
operator key and sent raw. Each call waits for its receipt; a receipt with
``status == 0`` or any web3 error becomes ``TransactionFailedError``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import Web3Exception

from facetforge.bridge.artifacts import ContractArtifactStore
from facetforge.bridge.client import TransactionFailedError
from facetforge.models.events import EventRecord, TransactionReceipt
from facetforge.models.network import NetworkProfile

logger = logging.getLogger(__name__)


class Web3ChainClient:
    """Deploys and calls contracts over JSON-RPC as a single signer.

    Parameters
    ----------
    network:
        Target network profile (RPC URL, chain id, optional fixed gas price).
    private_key:
        Operator key, hex encoded.
    artifacts:
        Source of ABIs and bytecode.
    receipt_timeout:
        Seconds to wait for each receipt.
    """

    def __init__(
        self,
        network: NetworkProfile,
        private_key: str,
        artifacts: ContractArtifactStore,
        *,
        receipt_timeout: float = 300.0,
        web3: Web3 | None = None,
    ) -> None:
        self._network = network
        self._artifacts = artifacts
        self._receipt_timeout = receipt_timeout
        self._w3 = web3 or Web3(
            Web3.HTTPProvider(network.rpc_url, request_kwargs={"timeout": 30})
        )
        self._signer: LocalAccount = Account.from_key(private_key)

    @property
    def account(self) -> str:
        return self._signer.address

    @property
    def web3(self) -> Web3:
        return self._w3

    # ------------------------------------------------------------------
    # ChainClient
    # ------------------------------------------------------------------

    def deploy(
        self, contract: str, args: Sequence[Any] = (), *, gas_limit: int | None = None
    ) -> str:
        factory = self._w3.eth.contract(
            abi=self._artifacts.abi(contract),
            bytecode=self._artifacts.bytecode(contract),
        )
        logger.info("Deploying %s", contract)
        try:
            tx = factory.constructor(*args).build_transaction(self._tx_params(gas_limit))
        except Web3Exception as exc:
            raise TransactionFailedError(f"Deploying {contract} failed: {exc}") from exc

        receipt = self._send(tx, f"deploy {contract}")
        if not receipt.contract_address:
            raise TransactionFailedError(
                f"Deploying {contract} produced no contract address", tx_hash=receipt.tx_hash
            )
        logger.info("%s deployed at %s", contract, receipt.contract_address)
        return receipt.contract_address

    def transact(
        self,
        address: str,
        contract: str,
        signature: str,
        args: Sequence[Any] = (),
    ) -> TransactionReceipt:
        instance = self._w3.eth.contract(
            address=Web3.to_checksum_address(address),
            abi=self._artifacts.abi(contract),
        )
        logger.info("Calling %s on %s", signature, address)
        try:
            function = instance.get_function_by_signature(signature)(*args)
            tx = function.build_transaction(self._tx_params())
        except Web3Exception as exc:
            raise TransactionFailedError(f"{signature} on {address} failed: {exc}") from exc
        return self._send(tx, signature)

    def estimate_deploy_gas(self, contract: str, args: Sequence[Any] = ()) -> int:
        factory = self._w3.eth.contract(
            abi=self._artifacts.abi(contract),
            bytecode=self._artifacts.bytecode(contract),
        )
        return int(factory.constructor(*args).estimate_gas({"from": self.account}))

    def gas_price(self) -> int:
        if self._network.gas_price_wei is not None:
            return self._network.gas_price_wei
        return int(self._w3.eth.gas_price)

    def get_balance(self, address: str) -> int:
        return int(self._w3.eth.get_balance(Web3.to_checksum_address(address)))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _tx_params(self, gas_limit: int | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {
            "from": self.account,
            "chainId": self._network.chain_id,
            "nonce": self._w3.eth.get_transaction_count(self.account, "pending"),
        }
        if self._network.gas_price_wei is not None:
            params["gasPrice"] = self._network.gas_price_wei
        if gas_limit is not None:
            params["gas"] = gas_limit
        return params

    def _send(self, tx: dict[str, Any], label: str) -> TransactionReceipt:
        signed = self._signer.sign_transaction(tx)
        try:
            tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
            raw = self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._receipt_timeout
            )
        except Web3Exception as exc:
            raise TransactionFailedError(f"{label} failed: {exc}") from exc

        receipt = self._convert_receipt(raw)
        if receipt.status != 1:
            raise TransactionFailedError(
                f"{label} reverted in transaction {receipt.tx_hash}", tx_hash=receipt.tx_hash
            )
        logger.debug("%s confirmed in block %d (%s)", label, receipt.block_number, receipt.tx_hash)
        return receipt

    @staticmethod
    def _convert_receipt(raw: Any) -> TransactionReceipt:
        events = [
            EventRecord(
                emitter=Web3.to_checksum_address(log["address"]),
                topics=[Web3.to_hex(t) for t in log["topics"]],
                data=Web3.to_hex(log["data"]),
                log_index=int(log["logIndex"]),
            )
            for log in raw["logs"]
        ]
        contract_address = raw.get("contractAddress")
        return TransactionReceipt(
            tx_hash=Web3.to_hex(raw["transactionHash"]),
            block_number=int(raw["blockNumber"]),
            status=int(raw["status"]),
            contract_address=(
                Web3.to_checksum_address(contract_address) if contract_address else None
            ),
            events=events,
        )
