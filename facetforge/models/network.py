"""Target network profiles."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class UnknownNetworkError(KeyError):
    """Raised when a network name has no profile."""


class NetworkProfile(BaseModel):
    """Connection and explorer settings for one EVM network."""

    model_config = ConfigDict(frozen=True)

    name: str
    chain_id: int
    rpc_url: str
    explorer_url: str | None = None
    gas_price_wei: int | None = None  # fixed gas price; None asks the node

    def explorer_link(self, address: str) -> str | None:
        """Block-explorer URL for an address, if the network has an explorer."""
        if not self.explorer_url:
            return None
        return f"{self.explorer_url.rstrip('/')}/address/{address}"

    @property
    def ledger_name(self) -> str:
        """Upper-cased network name used in the ledger file name and title."""
        return self.name.upper()


KNOWN_NETWORKS: dict[str, NetworkProfile] = {
    "hardhat": NetworkProfile(
        name="hardhat",
        chain_id=31337,
        rpc_url="http://127.0.0.1:8545",
    ),
    "merlin": NetworkProfile(
        name="merlin",
        chain_id=4200,
        rpc_url="https://rpc.merlinchain.io",
        explorer_url="https://scan.merlinchain.io",
        gas_price_wei=1_000_000_000,  # 1 gwei
    ),
    "merlinTestnet": NetworkProfile(
        name="merlinTestnet",
        chain_id=686868,
        rpc_url="https://testnet-rpc.merlinchain.io",
        explorer_url="https://testnet-scan.merlinchain.io",
        gas_price_wei=1_000_000_000,
    ),
}


def get_network(name: str, *, rpc_url: str | None = None) -> NetworkProfile:
    """Look up a network profile, optionally overriding its RPC URL."""
    try:
        profile = KNOWN_NETWORKS[name]
    except KeyError:
        raise UnknownNetworkError(
            f"Unknown network {name!r}. Known networks: {sorted(KNOWN_NETWORKS)}"
        ) from None
    if rpc_url:
        profile = profile.model_copy(update={"rpc_url": rpc_url})
    return profile
