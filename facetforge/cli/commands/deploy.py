"""``facetforge deploy`` — run the deployment pipeline.

Runs every stage in order, or the ``--from``/``--to`` range. Stages whose
outputs are already in the ledger are skipped unless ``--force`` is given.
Exits 1 on any stage failure or unprovisioned catalog entry.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from facetforge.bridge.artifacts import ContractArtifactStore
from facetforge.bridge.web3_client import Web3ChainClient
from facetforge.config import config
from facetforge.core.orchestrator import DeploymentOrchestrator
from facetforge.models.collections import load_catalog
from facetforge.models.config import DeploymentPlan
from facetforge.models.network import UnknownNetworkError, get_network
from facetforge.monitor.renderer import DeploymentRenderer

console = Console()


def build_orchestrator(
    network: str | None,
    *,
    ledger_dir: Path | None = None,
    artifacts_path: Path | None = None,
    catalog: Path | None = None,
    skip_preflight: bool = False,
) -> DeploymentOrchestrator:
    """Assemble an orchestrator from CLI options and ``config``.

    Prints the problem and exits 1 when the configuration is unusable.
    """
    try:
        profile = get_network(network or config.network, rpc_url=config.rpc_url)
    except UnknownNetworkError as exc:
        console.print(f"[bold red]{escape(exc.args[0])}[/bold red]")
        raise typer.Exit(code=1)

    if not config.private_key:
        console.print("[bold red]No operator key configured.[/bold red]")
        console.print("[dim]Set FACETFORGE_PRIVATE_KEY in the environment or .env[/dim]")
        raise typer.Exit(code=1)

    updates: dict[str, object] = {}
    if catalog is not None:
        try:
            updates["catalog"] = load_catalog(catalog)
        except (OSError, ValueError) as exc:
            console.print(f"[bold red]Invalid catalog {catalog}:[/bold red] {escape(str(exc))}")
            raise typer.Exit(code=1)
    if config.metadata_uri_prefix:
        updates["metadata_uri_prefix"] = config.metadata_uri_prefix
    plan = DeploymentPlan().model_copy(update=updates) if updates else DeploymentPlan()

    artifacts = ContractArtifactStore(artifacts_path or config.artifacts_path)
    client = Web3ChainClient(
        profile,
        config.private_key,
        artifacts,
        receipt_timeout=config.receipt_timeout_seconds,
    )
    return DeploymentOrchestrator(
        profile,
        client,
        artifacts=artifacts,
        ledger_dir=ledger_dir or config.ledger_dir,
        plan=plan,
        operator=config.operator_address,
        preflight=not skip_preflight,
    )


def run_pipeline(
    orchestrator: DeploymentOrchestrator,
    *,
    start_at: str | None = None,
    stop_after: str | None = None,
    force: bool = False,
) -> None:
    """Run the orchestrator, render the outcome and map it to an exit code."""
    renderer = DeploymentRenderer(console=console)
    console.print(
        f"[bold cyan]Deploying to {orchestrator.network.name}[/bold cyan] "
        f"[dim](chain {orchestrator.network.chain_id}, operator {orchestrator.operator})[/dim]"
    )
    try:
        result = orchestrator.run(start_at, stop_after, force=force)
    except Exception as exc:
        console.print(f"[bold red]Deployment failed:[/bold red] {escape(str(exc))}")
        for stage_id, state in orchestrator.get_states().items():
            console.print(f"  [dim]{stage_id}: {state.value}[/dim]")
        raise typer.Exit(code=1)

    renderer.print_result(result)
    console.print(f"[dim]Ledger: {orchestrator.ledger.path}[/dim]")
    if result.failures:
        console.print(
            f"[bold yellow]{len(result.failures)} collection(s) not provisioned; "
            "re-run to retry them.[/bold yellow]"
        )
        raise typer.Exit(code=1)


def deploy_cmd(
    network: str = typer.Option(None, "--network", "-n", help="Target network (default from config)."),
    from_stage: str = typer.Option(None, "--from", help="First stage to run, e.g. s4 or 4."),
    to_stage: str = typer.Option(None, "--to", help="Last stage to run."),
    force: bool = typer.Option(
        False, "--force", help="Re-run stages whose outputs are already recorded."
    ),
    catalog: Path = typer.Option(None, "--catalog", help="JSON collection catalog."),
    skip_preflight: bool = typer.Option(
        False, "--skip-preflight", help="Skip the balance check before deploying."
    ),
    ledger_dir: Path = typer.Option(None, "--ledger-dir", help="Directory of deployment reports."),
    artifacts_path: Path = typer.Option(None, "--artifacts", help="Compiled artifacts directory."),
) -> None:
    """Run the deployment pipeline against a network."""
    orchestrator = build_orchestrator(
        network,
        ledger_dir=ledger_dir,
        artifacts_path=artifacts_path,
        catalog=catalog,
        skip_preflight=skip_preflight,
    )
    run_pipeline(orchestrator, start_at=from_stage, stop_after=to_stage, force=force)
