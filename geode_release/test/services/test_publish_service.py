"""Integration tests for the publish pipeline.

Tests the complete flow: runs -> artifact -> download -> module -> tag -> release
Using MockHttpClient to avoid real network calls.
"""

from __future__ import annotations

import io
import zipfile
from pathlib import Path

import pytest

from geode_release.api.http import HttpError, MockHttpClient
from geode_release.core.result import Err, Ok
from geode_release.output.console import MockConsole
from geode_release.services.publish import service as service_mod
from geode_release.services.publish.config import PublishConfig
from geode_release.services.publish.errors import (
    AssetUploadFailed,
    DownloadFailed,
    MissingVersion,
    ModuleNotFound,
    NoRunsFound,
    TagOrReleaseCreationFailed,
)

API = "https://api.github.com/repos/acme/mod"
RUNS_URL = f"{API}/actions/workflows/multi-platform.yml/runs?status=completed&branch=main"
ARTIFACTS_URL = f"{API}/actions/artifacts?per_page=100"
ZIP_URL = f"{API}/actions/artifacts/777/zip"
SIGNED_URL = "https://blob.example.net/artifact-777.zip?sig=abc"
UPLOAD_URL = "https://uploads.github.com/repos/acme/mod/releases/9001/assets"

CONFIG = PublishConfig(owner="acme", repo="mod", token="t0ken")


def make_zip(entries: list[tuple[str, bytes | str]]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in entries:
            zf.writestr(name, content)
    return buffer.getvalue()


def make_artifact_zip(mod_json: str = '{"version":"2.0.0"}') -> bytes:
    geode = make_zip([("mod.json", mod_json), ("binary.dll", b"\x00\x01")])
    return make_zip([("release/", ""), ("release/mod-final.geode", geode)])


def mock_github(artifact_zip: bytes) -> MockHttpClient:
    http = MockHttpClient()
    http.set_json(
        RUNS_URL,
        {"workflow_runs": [{"id": 42, "head_sha": "f" * 40, "status": "completed"}]},
    )
    http.set_json(
        ARTIFACTS_URL,
        {
            "artifacts": [
                {"id": 776, "name": "Build Output", "workflow_run": {"id": 41}},
                {"id": 777, "name": "Build Output", "workflow_run": {"id": 42}},
            ]
        },
    )
    http.set_redirect(ZIP_URL, SIGNED_URL)
    http.set_download(SIGNED_URL, artifact_zip)
    http.set_json(f"{API}/git/ref/heads/main", {"object": {"sha": "e" * 40, "type": "commit"}})
    http.set_post(f"{API}/git/tags", {"sha": "1" * 40, "tag": "2.0.0"})
    http.set_post(f"{API}/git/refs", {"ref": "refs/tags/2.0.0"})
    http.set_post(
        f"{API}/releases",
        {"id": 9001, "upload_url": UPLOAD_URL + "{?name,label}"},
    )
    http.set_upload(f"{UPLOAD_URL}?name=mod-final.geode", {"id": 5, "name": "mod-final.geode"})
    return http


class TestRunPublish:
    def test_end_to_end(self) -> None:
        artifact_zip = make_artifact_zip()
        http = mock_github(artifact_zip)
        console = MockConsole()

        result = service_mod.run_publish(CONFIG, http=http, console=console)

        assert isinstance(result, Ok)
        assert result.value.tag == "2.0.0"
        assert result.value.title == "Release 2.0.0"
        assert result.value.asset_name == "mod-final.geode"
        assert result.value.release_id == 9001

        posted = dict(http.posted)
        assert posted[f"{API}/git/tags"] == {
            "tag": "2.0.0",
            "message": "Tag for version 2.0.0",
            "object": "e" * 40,
            "type": "commit",
            "tagger": {"name": "GitHub Actions Bot", "email": "actions@github.com"},
        }
        assert posted[f"{API}/git/refs"] == {"ref": "refs/tags/2.0.0", "sha": "1" * 40}
        assert posted[f"{API}/releases"] == {"tag_name": "2.0.0", "name": "Release 2.0.0"}

        [(url, body, content_type)] = http.uploaded
        assert url == f"{UPLOAD_URL}?name=mod-final.geode"
        assert content_type == "application/octet-stream"
        with zipfile.ZipFile(io.BytesIO(body)) as zf:
            assert zf.read("mod.json") == b'{"version":"2.0.0"}'

        assert console.messages == [
            "Found .geode file: mod-final.geode",
            "Parsed version: 2.0.0",
            "Created tag 2.0.0",
        ]

    def test_remote_calls_are_sequential_and_complete(self) -> None:
        http = mock_github(make_artifact_zip())

        service_mod.run_publish(CONFIG, http=http, console=MockConsole())

        assert [kind for kind, _ in http.calls] == [
            "get_json",
            "get_json",
            "get_redirect",
            "download",
            "get_json",
            "post_json",
            "post_json",
            "post_json",
            "upload",
        ]

    def test_verbose_lists_both_archives(self) -> None:
        http = mock_github(make_artifact_zip())
        console = MockConsole(verbose=True)

        result = service_mod.run_publish(CONFIG, http=http, console=console)

        assert isinstance(result, Ok)
        assert console.find("  release/mod-final.geode")
        assert console.find("  binary.dll")
        assert console.find("Downloading artifact from: " + SIGNED_URL)

    def test_no_runs(self) -> None:
        http = mock_github(make_artifact_zip())
        http.set_json(RUNS_URL, {"workflow_runs": []})

        result = service_mod.run_publish(CONFIG, http=http, console=MockConsole())

        assert isinstance(result, Err)
        assert isinstance(result.error, NoRunsFound)
        assert http.posted == []

    def test_download_failure(self) -> None:
        http = mock_github(b"")
        http.set_download(SIGNED_URL, HttpError(url=SIGNED_URL, status=410, message="Gone"))

        result = service_mod.run_publish(CONFIG, http=http, console=MockConsole())

        assert isinstance(result, Err)
        assert isinstance(result.error, DownloadFailed)
        assert result.error.artifact_id == 777

    def test_artifact_without_module(self) -> None:
        http = mock_github(make_zip([("readme.md", "nothing here")]))

        result = service_mod.run_publish(CONFIG, http=http, console=MockConsole())

        assert isinstance(result, Err)
        assert isinstance(result.error, ModuleNotFound)
        assert http.posted == []

    def test_missing_version_stops_before_tagging(self) -> None:
        http = mock_github(make_artifact_zip('{"name": "x"}'))

        result = service_mod.run_publish(CONFIG, http=http, console=MockConsole())

        assert isinstance(result, Err)
        assert isinstance(result.error, MissingVersion)
        assert http.posted == []

    def test_release_failure_leaves_tag(self) -> None:
        http = mock_github(make_artifact_zip())
        http.set_post(
            f"{API}/releases",
            HttpError(url=f"{API}/releases", status=422, message="Validation Failed"),
        )

        result = service_mod.run_publish(CONFIG, http=http, console=MockConsole())

        assert isinstance(result, Err)
        assert result.error == TagOrReleaseCreationFailed(
            step="create release",
            cause=f"HTTP 422: Validation Failed ({API}/releases)",
        )
        # No rollback: the tag and its ref were already created.
        assert [url for url, _ in http.posted] == [
            f"{API}/git/tags",
            f"{API}/git/refs",
            f"{API}/releases",
        ]
        assert http.uploaded == []

    def test_existing_tag_fails_ref_creation(self) -> None:
        http = mock_github(make_artifact_zip())
        http.set_post(
            f"{API}/git/refs",
            HttpError(url=f"{API}/git/refs", status=422, message="Reference already exists"),
        )

        result = service_mod.run_publish(CONFIG, http=http, console=MockConsole())

        assert isinstance(result, Err)
        assert isinstance(result.error, TagOrReleaseCreationFailed)
        assert result.error.step == "create tag ref"

    def test_upload_failure(self) -> None:
        http = mock_github(make_artifact_zip())
        http.set_upload(
            f"{UPLOAD_URL}?name=mod-final.geode",
            HttpError(url=UPLOAD_URL, status=500, message="Server Error"),
        )

        result = service_mod.run_publish(CONFIG, http=http, console=MockConsole())

        assert isinstance(result, Err)
        assert isinstance(result.error, AssetUploadFailed)
        assert result.error.name == "mod-final.geode"


class TestTempFiles:
    def test_temp_files_removed_after_success(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setattr("tempfile.tempdir", str(tmp_path))
        http = mock_github(make_artifact_zip())

        result = service_mod.run_publish(CONFIG, http=http, console=MockConsole())

        assert isinstance(result, Ok)
        assert list(tmp_path.iterdir()) == []

    def test_temp_files_removed_after_failure(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setattr("tempfile.tempdir", str(tmp_path))
        http = mock_github(make_artifact_zip())
        http.set_upload(
            f"{UPLOAD_URL}?name=mod-final.geode",
            HttpError(url=UPLOAD_URL, status=500, message="Server Error"),
        )

        result = service_mod.run_publish(CONFIG, http=http, console=MockConsole())

        assert isinstance(result, Err)
        assert list(tmp_path.iterdir()) == []

    def test_corrupt_download_removes_temp_file(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setattr("tempfile.tempdir", str(tmp_path))
        http = mock_github(b"this is not a zip")

        result = service_mod.run_publish(CONFIG, http=http, console=MockConsole())

        assert isinstance(result, Err)
        assert list(tmp_path.iterdir()) == []
