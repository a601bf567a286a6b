from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ConfigMissing:
    name: str
    hint: str


@dataclass(frozen=True, slots=True)
class RemoteCallFailed:
    step: str
    cause: str


@dataclass(frozen=True, slots=True)
class NoRunsFound:
    workflow_file: str
    branch: str


@dataclass(frozen=True, slots=True)
class ArtifactNotFound:
    name: str
    run_id: int


@dataclass(frozen=True, slots=True)
class DownloadFailed:
    artifact_id: int
    cause: str


@dataclass(frozen=True, slots=True)
class CorruptArchive:
    source: str
    reason: str


@dataclass(frozen=True, slots=True)
class ModuleNotFound:
    suffix: str


@dataclass(frozen=True, slots=True)
class MetadataNotFound:
    filename: str


@dataclass(frozen=True, slots=True)
class MetadataCorrupt:
    path: str
    reason: str


@dataclass(frozen=True, slots=True)
class MissingVersion:
    path: str


@dataclass(frozen=True, slots=True)
class TagOrReleaseCreationFailed:
    step: str
    cause: str


@dataclass(frozen=True, slots=True)
class AssetUploadFailed:
    name: str
    cause: str


PublishError = (
    ConfigMissing
    | RemoteCallFailed
    | NoRunsFound
    | ArtifactNotFound
    | DownloadFailed
    | CorruptArchive
    | ModuleNotFound
    | MetadataNotFound
    | MetadataCorrupt
    | MissingVersion
    | TagOrReleaseCreationFailed
    | AssetUploadFailed
)
