"""Error presentation utilities.

Centralized error formatting and exit code mapping: every PublishError is
rendered as a single line naming the failing step and its cause.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from geode_release.core.errors import ErrorCode
from geode_release.services.publish.errors import (
    ArtifactNotFound,
    AssetUploadFailed,
    ConfigMissing,
    CorruptArchive,
    DownloadFailed,
    MetadataCorrupt,
    MetadataNotFound,
    MissingVersion,
    ModuleNotFound,
    NoRunsFound,
    PublishError,
    RemoteCallFailed,
    TagOrReleaseCreationFailed,
)

if TYPE_CHECKING:
    from geode_release.output.console import ConsoleProtocol

__all__ = ["describe_publish_error", "print_publish_error", "publish_error_exit_code"]


def describe_publish_error(error: PublishError) -> str:
    match error:
        case ConfigMissing(name=name, hint=hint):
            return f"configuration: missing {name} ({hint})"
        case RemoteCallFailed(step=step, cause=cause):
            return f"{step}: {cause}"
        case NoRunsFound(workflow_file=wf, branch=branch):
            return (
                f"list workflow runs: no completed runs found for workflow '{wf}'"
                f" on branch '{branch}'"
            )
        case ArtifactNotFound(name=name, run_id=run_id):
            return f"select artifact: artifact '{name}' not found for run {run_id}"
        case DownloadFailed(artifact_id=artifact_id, cause=cause):
            return f"download artifact {artifact_id}: {cause}"
        case CorruptArchive(source=source, reason=reason):
            return f"open {source}: not a valid zip archive ({reason})"
        case ModuleNotFound(suffix=suffix):
            return f"extract module: no {suffix} file found in artifact zip"
        case MetadataNotFound(filename=filename):
            return f"read metadata: {filename} not found inside module file"
        case MetadataCorrupt(path=path, reason=reason):
            return f"read metadata: failed to decode {path}: {reason}"
        case MissingVersion(path=path):
            return f"read metadata: version key not found in {path}"
        case TagOrReleaseCreationFailed(step=step, cause=cause):
            return f"{step}: {cause}"
        case AssetUploadFailed(name=name, cause=cause):
            return f"upload release asset {name}: {cause}"
    return str(error)


def print_publish_error(error: PublishError, console: ConsoleProtocol) -> None:
    console.error(describe_publish_error(error))


def publish_error_exit_code(error: PublishError) -> int:
    """Get exit code for a publish error."""
    match error:
        case ConfigMissing():
            return int(ErrorCode.USER_ERROR)
        case NoRunsFound() | ArtifactNotFound():
            return int(ErrorCode.ENV_ERROR)
        case (
            CorruptArchive()
            | ModuleNotFound()
            | MetadataNotFound()
            | MetadataCorrupt()
            | MissingVersion()
        ):
            return int(ErrorCode.BUILD_ERROR)
        case (
            RemoteCallFailed()
            | DownloadFailed()
            | TagOrReleaseCreationFailed()
            | AssetUploadFailed()
        ):
            return int(ErrorCode.NETWORK_ERROR)
    # Fallback for exhaustiveness
    return int(ErrorCode.BUILD_ERROR)
