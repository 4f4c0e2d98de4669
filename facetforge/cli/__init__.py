"""facetforge CLI — Typer-based command-line interface.

Provides the ``facetforge`` command with subcommands for running the
deployment pipeline, inspecting a network's ledger, checking selector
routing offline and provisioning collections.

All output uses Rich for formatted terminal display.
"""
