"""``facetforge collections`` — provision catalog collections only.

Equivalent to ``deploy --from s8 --to s8``: entries already in the ledger
are left alone, new ones are created and configured.
"""

from __future__ import annotations

from pathlib import Path

import typer

from facetforge.cli.commands.deploy import build_orchestrator, run_pipeline

_PROVISION_STAGE = "s8_provision_collections"


def collections_cmd(
    network: str = typer.Option(None, "--network", "-n", help="Target network (default from config)."),
    catalog: Path = typer.Option(None, "--catalog", help="JSON collection catalog."),
    skip_preflight: bool = typer.Option(
        False, "--skip-preflight", help="Skip the balance check before deploying."
    ),
    ledger_dir: Path = typer.Option(None, "--ledger-dir", help="Directory of deployment reports."),
    artifacts_path: Path = typer.Option(None, "--artifacts", help="Compiled artifacts directory."),
) -> None:
    """Create and configure every catalog collection not yet recorded."""
    orchestrator = build_orchestrator(
        network,
        ledger_dir=ledger_dir,
        artifacts_path=artifacts_path,
        catalog=catalog,
        skip_preflight=skip_preflight,
    )
    run_pipeline(orchestrator, start_at=_PROVISION_STAGE, stop_after=_PROVISION_STAGE)
