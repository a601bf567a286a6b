"""Typed configuration for a publish run.

Values come from CLI flags plus the process environment. Everything is
resolved once at startup into a frozen PublishConfig; nothing downstream
reads the environment again.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from geode_release.api.github import DEFAULT_API_URL, GitHubRepo
from geode_release.core.result import Err, Ok, Result
from geode_release.services.publish.constants import DEFAULT_BRANCH, DEFAULT_WORKFLOW_FILE
from geode_release.services.publish.errors import ConfigMissing

__all__ = [
    "API_URL_ENV",
    "PublishConfig",
    "TOKEN_ENV",
    "load_publish_config",
]

TOKEN_ENV = "GITHUB_TOKEN"
API_URL_ENV = "GITHUB_API_URL"


@dataclass(frozen=True, slots=True)
class PublishConfig:
    owner: str
    repo: str
    token: str = ""
    branch: str = DEFAULT_BRANCH
    workflow_file: str = DEFAULT_WORKFLOW_FILE
    api_url: str = DEFAULT_API_URL
    verbose: bool = False

    @property
    def github_repo(self) -> GitHubRepo:
        return GitHubRepo(owner=self.owner, name=self.repo, api_url=self.api_url)

    def __repr__(self) -> str:
        # Never leak the token into logs or tracebacks.
        return (
            f"PublishConfig(owner={self.owner!r}, repo={self.repo!r}, branch={self.branch!r}, "
            f"workflow_file={self.workflow_file!r}, api_url={self.api_url!r}, "
            f"verbose={self.verbose!r})"
        )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    s = value.strip()
    return s or None


def load_publish_config(
    *,
    owner: str | None,
    repo: str | None,
    branch: str | None = None,
    workflow_file: str | None = None,
    verbose: bool = False,
    env: Mapping[str, str],
) -> Result[PublishConfig, ConfigMissing]:
    """Build the run configuration.

    Args:
        owner: Repository owner (required).
        repo: Repository name (required).
        branch: Branch to look for runs on; defaults to DEFAULT_BRANCH.
        workflow_file: Workflow file name; defaults to DEFAULT_WORKFLOW_FILE.
        verbose: Enable debug output.
        env: Environment mapping holding GITHUB_TOKEN and optionally GITHUB_API_URL.

    Returns:
        Ok(PublishConfig), or Err(ConfigMissing) naming the first missing value.
    """
    owner_value = _clean(owner)
    if owner_value is None:
        return Err(ConfigMissing(name="--owner", hint="Pass the GitHub repo owner: --owner <owner>"))

    repo_value = _clean(repo)
    if repo_value is None:
        return Err(ConfigMissing(name="--repo", hint="Pass the GitHub repo name: --repo <name>"))

    token = _clean(env.get(TOKEN_ENV))
    if token is None:
        return Err(
            ConfigMissing(
                name=TOKEN_ENV,
                hint=f"{TOKEN_ENV} environment variable must be set",
            )
        )

    return Ok(
        PublishConfig(
            owner=owner_value,
            repo=repo_value,
            token=token,
            branch=_clean(branch) or DEFAULT_BRANCH,
            workflow_file=_clean(workflow_file) or DEFAULT_WORKFLOW_FILE,
            api_url=_clean(env.get(API_URL_ENV)) or DEFAULT_API_URL,
            verbose=verbose,
        )
    )
