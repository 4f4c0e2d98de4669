"""``facetforge status`` — show a network's deployment state.

Pure read-only projection over the ledger: no network access.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from facetforge.config import config
from facetforge.core.deployment_ledger import DeploymentLedger
from facetforge.models.network import UnknownNetworkError, get_network
from facetforge.monitor.projection import DeploymentProjection
from facetforge.monitor.renderer import DeploymentRenderer

console = Console()


def status_cmd(
    network: str = typer.Option(None, "--network", "-n", help="Network whose ledger to read."),
    ledger_dir: Path = typer.Option(None, "--ledger-dir", help="Directory of deployment reports."),
) -> None:
    """Show stage states and recorded addresses."""
    try:
        profile = get_network(network or config.network)
    except UnknownNetworkError as exc:
        console.print(f"[bold red]{escape(exc.args[0])}[/bold red]")
        raise typer.Exit(code=1)

    ledger = DeploymentLedger.for_network(ledger_dir or config.ledger_dir, profile)
    if not ledger.exists():
        console.print(f"[bold red]Ledger not found:[/bold red] {ledger.path}")
        console.print("[dim]Start a deployment with: facetforge deploy[/dim]")
        raise typer.Exit(code=1)

    snapshot = DeploymentProjection(ledger).snapshot()
    DeploymentRenderer(console=console).print_snapshot(snapshot)
