"""Rich terminal renderer for deployment status and results.

Color scheme
------------
- green     : PASSED
- cyan      : SKIPPED
- red       : FAILED
- yellow    : RUNNING
- dim       : NOT_STARTED
- bold red  : BLOCKED
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from facetforge.models.stages import StageState

if TYPE_CHECKING:
    from facetforge.models.selectors import SelectorResolution
    from facetforge.models.stages import PipelineResult
    from facetforge.monitor.projection import DeploymentSnapshot


_STATE_STYLES: dict[StageState, str] = {
    StageState.PASSED: "bold green",
    StageState.SKIPPED: "cyan",
    StageState.FAILED: "bold red",
    StageState.RUNNING: "bold yellow",
    StageState.NOT_STARTED: "dim",
    StageState.BLOCKED: "bold red",
}

_STATE_LABELS: dict[StageState, str] = {
    StageState.PASSED: "[green]PASSED[/green]",
    StageState.SKIPPED: "[cyan]SKIPPED[/cyan]",
    StageState.FAILED: "[bold red]FAILED[/bold red]",
    StageState.RUNNING: "[yellow]RUNNING[/yellow]",
    StageState.NOT_STARTED: "[dim]NOT STARTED[/dim]",
    StageState.BLOCKED: "[bold red]BLOCKED[/bold red]",
}


class DeploymentRenderer:
    """Renders deployment views as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance. A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Ledger snapshot
    # ------------------------------------------------------------------

    def render_snapshot(self, snapshot: DeploymentSnapshot) -> Panel:
        """Stage table plus recorded addresses, wrapped in a Panel."""
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=3, justify="right")
        table.add_column("Stage", min_width=24)
        table.add_column("State", min_width=12, justify="center")
        table.add_column("Details", min_width=20)

        for i, stage in enumerate(snapshot.stages, 1):
            style = _STATE_STYLES.get(stage.state, "")
            details: list[str] = []
            if stage.note:
                details.append(f"[dim]{stage.note}[/dim]")
            if stage.missing and stage.state == StageState.NOT_STARTED and stage.addresses:
                details.append(f"[yellow]missing: {', '.join(stage.missing)}[/yellow]")
            table.add_row(
                str(i),
                f"[{style}]{stage.display_name}[/{style}]",
                _STATE_LABELS.get(stage.state, stage.state.value),
                " | ".join(details) if details else "[dim]-[/dim]",
            )

        parts: list[object] = [table]
        addresses = snapshot.addresses
        if addresses:
            addr_table = Table(show_header=True, header_style="bold cyan", expand=True)
            addr_table.add_column("Role")
            addr_table.add_column("Address", style="green")
            for role, address in addresses.items():
                addr_table.add_row(role, address)
            parts += [Text(""), addr_table]

        if not snapshot.ledger_exists:
            summary = f"[yellow]No ledger at {snapshot.ledger_path}[/yellow]"
        else:
            next_stage = snapshot.next_stage
            summary = "  |  ".join(
                [
                    f"[bold]Network:[/bold] {snapshot.network}",
                    f"[bold]Progress:[/bold] {snapshot.completed_count}/{snapshot.total_stages}",
                    f"[bold]Next:[/bold] {next_stage.stage_id if next_stage else 'complete'}",
                ]
            )
        parts += [Text(""), Text.from_markup(summary)]

        return Panel(
            Group(*parts),
            title="[bold]Deployment Status[/bold]",
            subtitle=f"{snapshot.ledger_path}",
            border_style="blue",
            padding=(1, 2),
        )

    def print_snapshot(self, snapshot: DeploymentSnapshot) -> None:
        self.console.print(self.render_snapshot(snapshot))

    # ------------------------------------------------------------------
    # Pipeline result
    # ------------------------------------------------------------------

    def render_result(self, result: PipelineResult) -> Table:
        """One row per executed stage, then one per provisioning failure."""
        table = Table(
            title=f"Deployment to {result.network}",
            show_header=True,
            header_style="bold cyan",
            expand=True,
        )
        table.add_column("Stage", min_width=24)
        table.add_column("State", justify="center")
        table.add_column("Calls", justify="right", width=6)
        table.add_column("Outputs")

        for stage in result.results:
            outputs = ", ".join(f"{role}={addr}" for role, addr in stage.addresses.items())
            table.add_row(
                stage.stage_id,
                _STATE_LABELS.get(stage.state, stage.state.value),
                str(stage.remote_calls),
                outputs or "[dim]-[/dim]",
            )
        for failure in result.failures:
            table.add_row(
                f"[red]{failure.entry.heading}[/red]",
                _STATE_LABELS[StageState.FAILED],
                "",
                f"[red]{failure.reason}[/red]",
            )
        return table

    def print_result(self, result: PipelineResult) -> None:
        self.console.print(self.render_result(result))

    # ------------------------------------------------------------------
    # Selector resolution
    # ------------------------------------------------------------------

    def render_resolution(self, resolution: SelectorResolution) -> Group:
        """Routing table, rule-based drops and unresolved collisions."""
        routes = Table(title="Selector Routes", show_header=True, header_style="bold cyan")
        routes.add_column("Selector", style="green")
        routes.add_column("Operation")
        routes.add_column("Module")
        for selector, route in sorted(
            resolution.routes.items(), key=lambda kv: (kv[1].contract, kv[1].signature)
        ):
            routes.add_row(selector, route.signature, route.contract)

        parts: list[object] = [routes]

        if resolution.dropped:
            dropped = Table(title="Dropped by Rule", show_header=True, header_style="bold yellow")
            dropped.add_column("Selector")
            dropped.add_column("Operation")
            dropped.add_column("Kept on")
            dropped.add_column("Dropped from")
            for selector, contracts in resolution.dropped.items():
                route = resolution.routes[selector]
                dropped.add_row(selector, route.signature, route.contract, ", ".join(contracts))
            parts.append(dropped)

        if resolution.collisions:
            collisions = Table(
                title="Unresolved Collisions", show_header=True, header_style="bold red"
            )
            collisions.add_column("Selector", style="red")
            collisions.add_column("Operation")
            collisions.add_column("Declared by")
            for collision in resolution.collisions:
                collisions.add_row(collision.selector, collision.name, ", ".join(collision.modules))
            parts.append(collisions)

        return Group(*parts)

    def print_resolution(self, resolution: SelectorResolution) -> None:
        self.console.print(self.render_resolution(resolution))
