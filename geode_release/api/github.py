"""GitHub REST operations used by the publish pipeline.

All functions take an HttpClient so tests can run against MockHttpClient.
Payload shape problems are reported as HttpError with status 0, the same
way transport problems are.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote, urlencode

from geode_release.api.http import HttpError
from geode_release.core.result import Err, Ok, Result
from geode_release.core.structured import (
    as_str_dict,
    get_bool,
    get_int,
    get_list,
    get_str,
    get_table,
)

if TYPE_CHECKING:
    from pathlib import Path

    from geode_release.api.http import HttpClient

__all__ = [
    "DEFAULT_API_URL",
    "Artifact",
    "CreatedRelease",
    "GitHubRepo",
    "TagObject",
    "WorkflowRun",
    "artifact_download_url",
    "create_release",
    "create_tag_object",
    "create_tag_ref",
    "get_branch_head_sha",
    "list_artifacts",
    "list_completed_runs",
    "upload_release_asset",
]

DEFAULT_API_URL = "https://api.github.com"


@dataclass(frozen=True, slots=True)
class WorkflowRun:
    """A completed GitHub Actions run."""

    id: int
    head_sha: str
    created_at: str | None
    status: str | None
    head_branch: str | None


@dataclass(frozen=True, slots=True)
class Artifact:
    id: int
    name: str
    # None when the API omits the owning run (never selected).
    workflow_run_id: int | None
    expired: bool


@dataclass(frozen=True, slots=True)
class TagObject:
    sha: str
    tag: str


@dataclass(frozen=True, slots=True)
class CreatedRelease:
    id: int
    tag: str
    upload_url: str | None


@dataclass(frozen=True, slots=True)
class GitHubRepo:
    owner: str
    name: str
    api_url: str = DEFAULT_API_URL

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"

    def endpoint(self, path: str) -> str:
        base = self.api_url.rstrip("/")
        return f"{base}/repos/{quote(self.owner, safe='')}/{quote(self.name, safe='')}/{path}"


def _payload_error(url: str, message: str) -> Err[HttpError]:
    return Err(HttpError(url=url, status=0, message=message))


def _parse_run(obj: object) -> WorkflowRun | None:
    d = as_str_dict(obj)
    if d is None:
        return None
    run_id = get_int(d, "id")
    if run_id is None:
        return None
    return WorkflowRun(
        id=run_id,
        head_sha=get_str(d, "head_sha") or "",
        created_at=get_str(d, "created_at"),
        status=get_str(d, "status"),
        head_branch=get_str(d, "head_branch"),
    )


def _parse_artifact(obj: object) -> Artifact | None:
    d = as_str_dict(obj)
    if d is None:
        return None
    artifact_id = get_int(d, "id")
    name = d.get("name")
    if artifact_id is None or not isinstance(name, str):
        return None
    run_id: int | None = None
    run_tbl = get_table(d, "workflow_run")
    if run_tbl is not None:
        run_id = get_int(run_tbl, "id")
    return Artifact(
        id=artifact_id,
        name=name,
        workflow_run_id=run_id,
        expired=get_bool(d, "expired") or False,
    )


def list_completed_runs(
    http: HttpClient,
    repo: GitHubRepo,
    *,
    workflow_file: str,
    branch: str,
) -> Result[list[WorkflowRun], HttpError]:
    """List completed runs of a workflow on a branch, newest first."""
    # workflow_file may contain slashes; GitHub requires it URL-encoded.
    wf = quote(workflow_file, safe="")
    query = urlencode({"status": "completed", "branch": branch})
    url = repo.endpoint(f"actions/workflows/{wf}/runs?{query}")

    obj = http.get_json(url)
    if isinstance(obj, Err):
        return obj

    data = as_str_dict(obj.value)
    if data is None:
        return _payload_error(url, "unexpected workflow runs payload")
    raw = get_list(data, "workflow_runs")
    if raw is None:
        return _payload_error(url, "missing workflow_runs")

    runs: list[WorkflowRun] = []
    for index, item in enumerate(raw):
        run = _parse_run(item)
        if run is None:
            # A malformed entry fails the whole listing.
            return _payload_error(url, f"workflow run at index {index} has no id")
        runs.append(run)
    return Ok(runs)


def list_artifacts(
    http: HttpClient, repo: GitHubRepo, *, per_page: int = 100
) -> Result[list[Artifact], HttpError]:
    """List the repository's artifacts (most recent page)."""
    url = repo.endpoint(f"actions/artifacts?per_page={per_page}")

    obj = http.get_json(url)
    if isinstance(obj, Err):
        return obj

    data = as_str_dict(obj.value)
    if data is None:
        return _payload_error(url, "unexpected artifacts payload")
    raw = get_list(data, "artifacts")
    if raw is None:
        return _payload_error(url, "missing artifacts")

    artifacts: list[Artifact] = []
    for index, item in enumerate(raw):
        artifact = _parse_artifact(item)
        if artifact is None:
            return _payload_error(url, f"artifact at index {index} has no id or name")
        artifacts.append(artifact)
    return Ok(artifacts)


def artifact_download_url(
    http: HttpClient, repo: GitHubRepo, *, artifact_id: int
) -> Result[str, HttpError]:
    """Get the short-lived, pre-signed zip URL for an artifact."""
    return http.get_redirect(repo.endpoint(f"actions/artifacts/{artifact_id}/zip"))


def get_branch_head_sha(
    http: HttpClient, repo: GitHubRepo, *, branch: str
) -> Result[str, HttpError]:
    url = repo.endpoint(f"git/ref/heads/{quote(branch, safe='/')}")
    obj = http.get_json(url)
    if isinstance(obj, Err):
        return obj

    data = as_str_dict(obj.value)
    obj_tbl = get_table(data, "object") if data is not None else None
    sha = get_str(obj_tbl, "sha") if obj_tbl is not None else None
    if sha is None:
        return _payload_error(url, f"missing object.sha for refs/heads/{branch}")
    return Ok(sha)


def create_tag_object(
    http: HttpClient,
    repo: GitHubRepo,
    *,
    tag: str,
    message: str,
    commit_sha: str,
    tagger_name: str,
    tagger_email: str,
) -> Result[TagObject, HttpError]:
    """Create an annotated tag object pointing at a commit."""
    url = repo.endpoint("git/tags")
    payload = {
        "tag": tag,
        "message": message,
        "object": commit_sha,
        "type": "commit",
        "tagger": {"name": tagger_name, "email": tagger_email},
    }
    obj = http.post_json(url, payload)
    if isinstance(obj, Err):
        return obj

    data = as_str_dict(obj.value)
    sha = get_str(data, "sha") if data is not None else None
    if sha is None:
        return _payload_error(url, "missing sha in created tag")
    return Ok(TagObject(sha=sha, tag=tag))


def create_tag_ref(
    http: HttpClient, repo: GitHubRepo, *, tag: str, tag_sha: str
) -> Result[str, HttpError]:
    """Create refs/tags/<tag> pointing at a tag object."""
    ref = f"refs/tags/{tag}"
    obj = http.post_json(repo.endpoint("git/refs"), {"ref": ref, "sha": tag_sha})
    if isinstance(obj, Err):
        return obj
    return Ok(ref)


def create_release(
    http: HttpClient, repo: GitHubRepo, *, tag: str, title: str
) -> Result[CreatedRelease, HttpError]:
    url = repo.endpoint("releases")
    obj = http.post_json(url, {"tag_name": tag, "name": title})
    if isinstance(obj, Err):
        return obj

    data = as_str_dict(obj.value)
    release_id = get_int(data, "id") if data is not None else None
    if data is None or release_id is None:
        return _payload_error(url, "missing id in created release")
    return Ok(CreatedRelease(id=release_id, tag=tag, upload_url=get_str(data, "upload_url")))


def _asset_upload_url(repo: GitHubRepo, release: CreatedRelease, name: str) -> str:
    base = release.upload_url
    if base is None:
        uploads = repo.api_url.rstrip("/").replace("://api.", "://uploads.", 1)
        base = (
            f"{uploads}/repos/{quote(repo.owner, safe='')}/{quote(repo.name, safe='')}"
            f"/releases/{release.id}/assets"
        )
    # upload_url is a URI template: ".../assets{?name,label}"
    base = base.split("{", 1)[0]
    return f"{base}?{urlencode({'name': name})}"


def upload_release_asset(
    http: HttpClient,
    repo: GitHubRepo,
    *,
    release: CreatedRelease,
    name: str,
    source: Path,
) -> Result[int | None, HttpError]:
    """Upload a file as a release asset.

    Returns:
        Ok with the asset id (None if GitHub omitted it).
    """
    url = _asset_upload_url(repo, release, name)
    obj = http.upload(url, source, content_type="application/octet-stream")
    if isinstance(obj, Err):
        return obj

    data = as_str_dict(obj.value)
    return Ok(get_int(data, "id") if data is not None else None)

