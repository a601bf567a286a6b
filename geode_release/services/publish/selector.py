from __future__ import annotations

from typing import TYPE_CHECKING

from geode_release.api.github import (
    Artifact,
    GitHubRepo,
    WorkflowRun,
    list_artifacts,
    list_completed_runs,
)
from geode_release.core.result import Err, Ok, Result
from geode_release.services.publish.constants import ARTIFACT_NAME, ARTIFACTS_PER_PAGE
from geode_release.services.publish.errors import (
    ArtifactNotFound,
    NoRunsFound,
    PublishError,
    RemoteCallFailed,
)

if TYPE_CHECKING:
    from geode_release.api.http import HttpClient
    from geode_release.output.console import ConsoleProtocol


def select_latest_run(
    http: HttpClient,
    repo: GitHubRepo,
    *,
    workflow_file: str,
    branch: str,
    console: ConsoleProtocol,
) -> Result[WorkflowRun, PublishError]:
    """Pick the newest completed run of a workflow on a branch.

    GitHub returns runs newest first; the first entry is taken as is.
    """
    console.debug(f"Listing workflow runs for workflow file {workflow_file!r} on branch {branch!r}")
    runs = list_completed_runs(http, repo, workflow_file=workflow_file, branch=branch)
    if isinstance(runs, Err):
        return Err(RemoteCallFailed(step="list workflow runs", cause=str(runs.error)))

    if not runs.value:
        return Err(NoRunsFound(workflow_file=workflow_file, branch=branch))

    console.debug(f"Found {len(runs.value)} completed workflow runs")
    latest = runs.value[0]
    console.debug(
        f"Latest run ID: {latest.id}, Head SHA: {latest.head_sha}, Created at: {latest.created_at}"
    )
    return Ok(latest)


def select_artifact(
    http: HttpClient,
    repo: GitHubRepo,
    *,
    run: WorkflowRun,
    console: ConsoleProtocol,
    name: str = ARTIFACT_NAME,
) -> Result[Artifact, PublishError]:
    """Find the build artifact produced by a run.

    Artifacts are listed for the whole repository; the first one with the
    expected name and owning run id wins.
    """
    console.debug(f"Listing artifacts for repo {repo.slug}")
    artifacts = list_artifacts(http, repo, per_page=ARTIFACTS_PER_PAGE)
    if isinstance(artifacts, Err):
        return Err(RemoteCallFailed(step="list artifacts", cause=str(artifacts.error)))

    console.debug(f"Found {len(artifacts.value)} artifacts total")
    for artifact in artifacts.value:
        console.debug(
            f"Artifact: ID={artifact.id}, Name={artifact.name!r}, "
            f"WorkflowRunID={artifact.workflow_run_id}"
        )
        if artifact.name == name and artifact.workflow_run_id == run.id:
            if artifact.expired:
                console.warning(f"artifact {artifact.id} is marked expired; download may fail")
            console.debug(f"Selected artifact ID: {artifact.id}")
            return Ok(artifact)

    return Err(ArtifactNotFound(name=name, run_id=run.id))
