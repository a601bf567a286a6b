from __future__ import annotations

import os

import typer

from geode_release import __version__
from geode_release.cli.commands._helpers import unwrap_or_exit
from geode_release.cli.context import build_context
from geode_release.core.errors import ErrorCode
from geode_release.services.publish.constants import DEFAULT_BRANCH, DEFAULT_WORKFLOW_FILE
from geode_release.services.publish.service import run_publish


def publish(
    owner: str | None = typer.Option(None, "--owner", help="GitHub repo owner (required)"),
    repo: str | None = typer.Option(None, "--repo", help="GitHub repo name (required)"),
    branch: str = typer.Option(
        DEFAULT_BRANCH, "--branch", help="Branch name to look for workflow runs"
    ),
    workflow: str = typer.Option(DEFAULT_WORKFLOW_FILE, "--workflow", help="Workflow filename"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose debug output"),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Tag and release the .geode module built by the latest completed CI run.

    Requires GITHUB_TOKEN in the environment.
    """
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=ErrorCode.OK)

    ctx = build_context(
        owner=owner,
        repo=repo,
        branch=branch,
        workflow_file=workflow,
        verbose=verbose,
        env=os.environ,
    )

    released = unwrap_or_exit(
        run_publish(ctx.config, http=ctx.http, console=ctx.console),
        ctx.console,
    )
    ctx.console.debug(f"Release {released.release_id} has asset {released.asset_name}")
    ctx.console.success("Release created and asset uploaded successfully")
