"""Tests for services/publish/selector.py - run and artifact selection."""

from __future__ import annotations

from geode_release.api.github import GitHubRepo, WorkflowRun
from geode_release.api.http import HttpError, MockHttpClient
from geode_release.core.result import Err, Ok
from geode_release.output.console import MockConsole, Style
from geode_release.services.publish.errors import (
    ArtifactNotFound,
    NoRunsFound,
    RemoteCallFailed,
)
from geode_release.services.publish.selector import select_artifact, select_latest_run

REPO = GitHubRepo(owner="acme", name="mod")
RUNS_URL = (
    "https://api.github.com/repos/acme/mod/actions/workflows/multi-platform.yml/runs"
    "?status=completed&branch=main"
)
ARTIFACTS_URL = "https://api.github.com/repos/acme/mod/actions/artifacts?per_page=100"


def _run(run_id: int) -> WorkflowRun:
    return WorkflowRun(
        id=run_id, head_sha="a" * 40, created_at=None, status="completed", head_branch="main"
    )


def _artifact(artifact_id: int, name: str, run_id: int | None) -> dict[str, object]:
    data: dict[str, object] = {"id": artifact_id, "name": name, "expired": False}
    if run_id is not None:
        data["workflow_run"] = {"id": run_id}
    return data


class TestSelectLatestRun:
    def test_first_run_is_latest(self) -> None:
        http = MockHttpClient()
        http.set_json(
            RUNS_URL,
            {
                "total_count": 2,
                "workflow_runs": [
                    {"id": 20, "head_sha": "b" * 40, "created_at": "2024-01-01T00:00:00Z"},
                    {"id": 30, "head_sha": "c" * 40, "created_at": "2024-06-01T00:00:00Z"},
                ],
            },
        )

        result = select_latest_run(
            http, REPO, workflow_file="multi-platform.yml", branch="main", console=MockConsole()
        )

        # Order from the API is trusted; timestamps are not compared.
        assert isinstance(result, Ok)
        assert result.value.id == 20
        assert result.value.head_sha == "b" * 40

    def test_empty_run_list_stops_before_artifacts(self) -> None:
        http = MockHttpClient()
        http.set_json(RUNS_URL, {"total_count": 0, "workflow_runs": []})

        result = select_latest_run(
            http, REPO, workflow_file="multi-platform.yml", branch="main", console=MockConsole()
        )

        assert isinstance(result, Err)
        assert result.error == NoRunsFound(workflow_file="multi-platform.yml", branch="main")
        assert http.calls == [("get_json", RUNS_URL)]

    def test_api_failure_is_remote_call_failed(self) -> None:
        http = MockHttpClient()
        http.set_json(RUNS_URL, HttpError(url=RUNS_URL, status=401, message="Bad credentials"))

        result = select_latest_run(
            http, REPO, workflow_file="multi-platform.yml", branch="main", console=MockConsole()
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, RemoteCallFailed)
        assert result.error.step == "list workflow runs"
        assert "Bad credentials" in result.error.cause

    def test_malformed_first_run_is_not_skipped(self) -> None:
        http = MockHttpClient()
        http.set_json(
            RUNS_URL,
            {"workflow_runs": [{"head_sha": "b" * 40}, {"id": 30, "head_sha": "c" * 40}]},
        )

        result = select_latest_run(
            http, REPO, workflow_file="multi-platform.yml", branch="main", console=MockConsole()
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, RemoteCallFailed)
        assert "has no id" in result.error.cause

    def test_verbose_console_gets_debug_lines(self) -> None:
        http = MockHttpClient()
        http.set_json(RUNS_URL, {"workflow_runs": [{"id": 5, "head_sha": "d" * 40}]})
        console = MockConsole(verbose=True)

        select_latest_run(
            http, REPO, workflow_file="multi-platform.yml", branch="main", console=console
        )

        assert console.count(Style.DEBUG) >= 2
        assert console.find("Latest run ID: 5")


class TestSelectArtifact:
    def test_matches_name_and_run(self) -> None:
        http = MockHttpClient()
        http.set_json(
            ARTIFACTS_URL,
            {
                "artifacts": [
                    _artifact(1, "Build Output", 41),
                    _artifact(2, "Logs", 42),
                    _artifact(3, "Build Output", 42),
                    _artifact(4, "Build Output", 42),
                ]
            },
        )

        result = select_artifact(http, REPO, run=_run(42), console=MockConsole())

        assert isinstance(result, Ok)
        assert result.value.id == 3

    def test_no_match_is_artifact_not_found(self) -> None:
        http = MockHttpClient()
        http.set_json(
            ARTIFACTS_URL,
            {"artifacts": [_artifact(1, "Build Output", 41), _artifact(2, "Logs", 42)]},
        )

        result = select_artifact(http, REPO, run=_run(42), console=MockConsole())

        assert isinstance(result, Err)
        assert result.error == ArtifactNotFound(name="Build Output", run_id=42)

    def test_artifact_without_run_is_never_selected(self) -> None:
        http = MockHttpClient()
        http.set_json(ARTIFACTS_URL, {"artifacts": [_artifact(9, "Build Output", None)]})

        result = select_artifact(http, REPO, run=_run(42), console=MockConsole())

        assert isinstance(result, Err)
        assert isinstance(result.error, ArtifactNotFound)

    def test_expired_artifact_warns(self) -> None:
        http = MockHttpClient()
        expired = _artifact(3, "Build Output", 42)
        expired["expired"] = True
        http.set_json(ARTIFACTS_URL, {"artifacts": [expired]})
        console = MockConsole()

        result = select_artifact(http, REPO, run=_run(42), console=console)

        assert isinstance(result, Ok)
        assert console.count(Style.WARNING) == 1

    def test_api_failure_is_remote_call_failed(self) -> None:
        http = MockHttpClient()

        result = select_artifact(http, REPO, run=_run(42), console=MockConsole())

        assert isinstance(result, Err)
        assert isinstance(result.error, RemoteCallFailed)
        assert result.error.step == "list artifacts"
