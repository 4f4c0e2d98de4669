"""Deployment status views — pure read-only projections over the ledger.

Modules
-------
projection
    ``DeploymentProjection`` reads the ledger and produces a frozen
    ``DeploymentSnapshot``: per-stage state derived from recorded roles.
renderer
    ``DeploymentRenderer`` turns snapshots, pipeline results and selector
    resolutions into Rich renderables.
"""
