"""facetforge: staged, resumable deployment of a modular on-chain router system.

Deploys a router (diamond) with its logic modules, two beacons, a
collection factory and a catalog of collections, recording every address in
a per-network markdown ledger that doubles as the pipeline's state.
"""

__version__ = "0.1.0"
__description__ = "Staged, ledger-driven deployment of a router + modules + beacon collection system"

from facetforge.core.orchestrator import DeploymentOrchestrator
from facetforge.core.deployment_ledger import DeploymentLedger
from facetforge.cli.app import app as cli

__all__ = ["DeploymentOrchestrator", "DeploymentLedger", "cli", "__version__"]
