"""Runtime configuration — env-driven via pydantic-settings.

Reads from a .env file and FACETFORGE_* environment variables. Deployment
topology (contract names, roles, signatures) is not configured here; it
lives in ``facetforge.models.config.DeploymentPlan``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class DeployConfig(BaseSettings):
    """Operator configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export FACETFORGE_NETWORK=merlinTestnet
        export FACETFORGE_PRIVATE_KEY=0x...
        export FACETFORGE_LEDGER_DIR=deployment-reports

    Or via .env file::

        FACETFORGE_NETWORK=merlin
        FACETFORGE_RPC_URL=https://rpc.merlinchain.io
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FACETFORGE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Target network
    network: str = "hardhat"
    rpc_url: str | None = None  # overrides the network profile's RPC URL

    # Operator
    private_key: str = ""
    operator_address: str | None = None  # initialize() argument; defaults to the signer

    # Paths
    ledger_dir: Path = Path("deployment-reports")
    artifacts_path: Path = Path("artifacts")

    # Collections
    metadata_uri_prefix: str | None = None  # overrides the plan's prefix

    # Transactions
    receipt_timeout_seconds: float = 300.0

    # Observability
    log_level: str = "INFO"


# Module-level singleton; import as `from facetforge.config import config`
config = DeployConfig()
