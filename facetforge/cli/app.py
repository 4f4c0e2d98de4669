"""Main Typer application — imports and registers all CLI commands.

Entry point: ``facetforge`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from facetforge.cli.commands.collections import collections_cmd
from facetforge.cli.commands.deploy import deploy_cmd
from facetforge.cli.commands.selectors import selectors_cmd
from facetforge.cli.commands.status import status_cmd
from facetforge.config import config

app = typer.Typer(
    name="facetforge",
    help="facetforge: staged, resumable deployment of a router + modules + beacon collection system.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(name="deploy", help="Run the deployment pipeline.")(deploy_cmd)
app.command(name="status", help="Show stage states and addresses from the ledger.")(status_cmd)
app.command(name="selectors", help="Resolve module selectors offline.")(selectors_cmd)
app.command(name="collections", help="Provision catalog collections (stage 8 only).")(
    collections_cmd
)


@app.callback()
def configure(
    log_level: str = typer.Option(
        config.log_level,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    ),
) -> None:
    """Install the Rich log handler before any command runs."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
