"""``facetforge selectors`` — offline selector resolution report.

Reads the module artifacts, applies the collision rules and prints the
routing table. Exits 1 when any collision is left unresolved, so it can
gate a deployment in CI.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from facetforge.bridge.artifacts import ArtifactNotFoundError, ContractArtifactStore
from facetforge.config import config
from facetforge.core.selector_resolver import SelectorResolver
from facetforge.models.config import DeploymentPlan
from facetforge.monitor.renderer import DeploymentRenderer

console = Console()


def selectors_cmd(
    artifacts_path: Path = typer.Option(None, "--artifacts", help="Compiled artifacts directory."),
) -> None:
    """Resolve module selectors and report routes, drops and collisions."""
    plan = DeploymentPlan()
    store = ContractArtifactStore(artifacts_path or config.artifacts_path)
    try:
        specs = [store.module_spec(m.contract, m.role) for m in plan.modules]
    except ArtifactNotFoundError as exc:
        console.print(f"[bold red]Artifact missing:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    resolution = SelectorResolver(plan.collision_rules).resolve(specs)
    DeploymentRenderer(console=console).print_resolution(resolution)

    if resolution.is_ambiguous:
        console.print(
            f"[bold red]{len(resolution.collisions)} unresolved collision(s).[/bold red] "
            "Add a collision rule or remove the duplicate operation."
        )
        raise typer.Exit(code=1)
    console.print(
        f"[green]{len(resolution.routes)} selectors routed across {len(specs)} modules.[/green]"
    )
