"""Publish pipeline: latest CI build -> .geode module -> tag + release.

Each step returns a Result and the pipeline stops at the first Err. Nothing is
retried or rolled back: a tag created before a failing release stays in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from geode_release.api.github import (
    Artifact,
    GitHubRepo,
    TagObject,
    artifact_download_url,
    create_release,
    create_tag_object,
    create_tag_ref,
    get_branch_head_sha,
    upload_release_asset,
)
from geode_release.core.result import Err, Ok, Result
from geode_release.platform.files import scoped_temp_file
from geode_release.services.publish.archive import (
    list_entry_names,
    locate_module,
    open_archive,
    read_module_version,
)
from geode_release.services.publish.constants import (
    TAGGER_EMAIL,
    TAGGER_NAME,
    release_title,
    tag_message,
)
from geode_release.services.publish.errors import (
    AssetUploadFailed,
    DownloadFailed,
    PublishError,
    RemoteCallFailed,
    TagOrReleaseCreationFailed,
)
from geode_release.services.publish.model import ModuleFile, ModuleMetadata, PublishedRelease
from geode_release.services.publish.selector import select_artifact, select_latest_run

if TYPE_CHECKING:
    from geode_release.api.http import HttpClient
    from geode_release.output.console import ConsoleProtocol
    from geode_release.services.publish.config import PublishConfig


@dataclass(frozen=True, slots=True)
class ResolvedModule:
    module: ModuleFile
    metadata: ModuleMetadata

    @property
    def version(self) -> str:
        return self.metadata.version


def download_artifact(
    http: HttpClient,
    repo: GitHubRepo,
    *,
    artifact: Artifact,
    console: ConsoleProtocol,
) -> Result[bytes, PublishError]:
    """Download an artifact zip through a scoped temp file and return its bytes."""
    console.debug("Getting artifact download URL")
    url = artifact_download_url(http, repo, artifact_id=artifact.id)
    if isinstance(url, Err):
        return Err(RemoteCallFailed(step="get artifact download URL", cause=str(url.error)))
    console.debug(f"Downloading artifact from: {url.value}")

    try:
        with scoped_temp_file(prefix="artifact-", suffix=".zip") as zip_path:
            console.debug(f"Downloading artifact to temp file: {zip_path}")
            written = http.download(url.value, zip_path)
            if isinstance(written, Err):
                return Err(DownloadFailed(artifact_id=artifact.id, cause=str(written.error)))
            console.debug(f"Downloaded {written.value} bytes to {zip_path}")
            return Ok(zip_path.read_bytes())
    except OSError as e:
        return Err(DownloadFailed(artifact_id=artifact.id, cause=f"temp file: {e}"))


def _debug_list_archive(data: bytes, *, label: str, console: ConsoleProtocol) -> None:
    if not console.verbose:
        return
    console.debug(f"Listing contents of {label}:")
    opened = open_archive(data, source=label)
    if isinstance(opened, Err):
        console.debug(f"Failed to list {label} contents: {opened.error.reason}")
        return
    for name in list_entry_names(opened.value):
        console.debug(f"  {name}")


def resolve_module(
    artifact_bytes: bytes, *, console: ConsoleProtocol
) -> Result[ResolvedModule, PublishError]:
    """Extract the .geode module from an artifact zip and read its version."""
    opened = open_archive(artifact_bytes, source="artifact zip")
    if isinstance(opened, Err):
        return opened

    module = locate_module(opened.value)
    if isinstance(module, Err):
        return module
    console.debug(f"Extracted module from zip: {module.value.filename} ({module.value.size} bytes)")
    console.print(f"Found .geode file: {module.value.filename}")

    _debug_list_archive(artifact_bytes, label="artifact zip", console=console)
    _debug_list_archive(module.value.data, label=".geode zip", console=console)

    metadata = read_module_version(module.value)
    if isinstance(metadata, Err):
        return metadata
    console.debug(f"Found mod.json inside .geode at path: {metadata.value.path}")
    console.print(f"Parsed version: {metadata.value.version}")

    return Ok(ResolvedModule(module=module.value, metadata=metadata.value))


def create_tag(
    http: HttpClient,
    repo: GitHubRepo,
    *,
    tag: str,
    version: str,
    branch: str,
    console: ConsoleProtocol,
) -> Result[TagObject, PublishError]:
    """Create an annotated tag on the branch head and its refs/tags ref."""
    console.debug(f"Getting branch ref 'refs/heads/{branch}'")
    sha = get_branch_head_sha(http, repo, branch=branch)
    if isinstance(sha, Err):
        return Err(RemoteCallFailed(step="get branch ref", cause=str(sha.error)))
    console.debug(f"Latest commit SHA on branch {branch}: {sha.value}")

    console.debug(f"Creating git tag object {tag}")
    tag_obj = create_tag_object(
        http,
        repo,
        tag=tag,
        message=tag_message(version),
        commit_sha=sha.value,
        tagger_name=TAGGER_NAME,
        tagger_email=TAGGER_EMAIL,
    )
    if isinstance(tag_obj, Err):
        return Err(
            TagOrReleaseCreationFailed(step="create git tag object", cause=str(tag_obj.error))
        )
    console.debug(f"Created tag object SHA: {tag_obj.value.sha}")

    ref = create_tag_ref(http, repo, tag=tag, tag_sha=tag_obj.value.sha)
    if isinstance(ref, Err):
        return Err(TagOrReleaseCreationFailed(step="create tag ref", cause=str(ref.error)))
    console.print(f"Created tag {tag}")

    return Ok(tag_obj.value)


def publish_release(
    http: HttpClient,
    repo: GitHubRepo,
    *,
    tag: str,
    module: ModuleFile,
    console: ConsoleProtocol,
) -> Result[PublishedRelease, PublishError]:
    """Create the release for an existing tag and attach the module file."""
    title = release_title(tag)
    console.debug(f"Creating release for tag {tag}")
    release = create_release(http, repo, tag=tag, title=title)
    if isinstance(release, Err):
        return Err(TagOrReleaseCreationFailed(step="create release", cause=str(release.error)))
    console.debug(f"Created release ID: {release.value.id}")

    try:
        with scoped_temp_file(prefix="mod-", suffix=".geode") as geode_path:
            geode_path.write_bytes(module.data)
            console.debug(f"Wrote .geode data to temp file {geode_path}")

            console.debug(f"Uploading release asset {module.filename}")
            uploaded = upload_release_asset(
                http, repo, release=release.value, name=module.filename, source=geode_path
            )
    except OSError as e:
        return Err(AssetUploadFailed(name=module.filename, cause=f"temp file: {e}"))

    if isinstance(uploaded, Err):
        return Err(AssetUploadFailed(name=module.filename, cause=str(uploaded.error)))

    return Ok(
        PublishedRelease(
            tag=tag,
            title=title,
            release_id=release.value.id,
            asset_name=module.filename,
        )
    )


def run_publish(
    config: PublishConfig,
    *,
    http: HttpClient,
    console: ConsoleProtocol,
) -> Result[PublishedRelease, PublishError]:
    """Run the whole pipeline for one repository."""
    repo = config.github_repo

    run = select_latest_run(
        http,
        repo,
        workflow_file=config.workflow_file,
        branch=config.branch,
        console=console,
    )
    if isinstance(run, Err):
        return run

    artifact = select_artifact(http, repo, run=run.value, console=console)
    if isinstance(artifact, Err):
        return artifact

    artifact_bytes = download_artifact(http, repo, artifact=artifact.value, console=console)
    if isinstance(artifact_bytes, Err):
        return artifact_bytes

    resolved = resolve_module(artifact_bytes.value, console=console)
    if isinstance(resolved, Err):
        return resolved

    # The version is used verbatim as the tag name.
    tag = resolved.value.version
    tag_obj = create_tag(
        http,
        repo,
        tag=tag,
        version=resolved.value.version,
        branch=config.branch,
        console=console,
    )
    if isinstance(tag_obj, Err):
        return tag_obj

    return publish_release(http, repo, tag=tag, module=resolved.value.module, console=console)
