"""In-memory zip access for the build artifact and the module file inside it.

The artifact downloaded from GitHub is a zip that contains the packaged
``.geode`` module, and the module is itself a zip that contains ``mod.json``.
Both layers are opened from bytes with the same accessor:

    archive = open_archive(artifact_bytes, source="artifact")
    module = locate_module(archive.value)
    metadata = read_module_version(module.value)
"""

from __future__ import annotations

import io
import json
import zipfile
import zlib
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from geode_release.core.result import Err, Ok, Result
from geode_release.core.structured import as_str_dict
from geode_release.services.publish.constants import METADATA_FILENAME, MODULE_SUFFIX
from geode_release.services.publish.errors import (
    CorruptArchive,
    MetadataCorrupt,
    MetadataNotFound,
    MissingVersion,
    ModuleNotFound,
    PublishError,
)
from geode_release.services.publish.model import ModuleFile, ModuleMetadata

__all__ = [
    "Archive",
    "ArchiveEntry",
    "list_entry_names",
    "locate_module",
    "open_archive",
    "read_module_version",
]

_READ_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, OSError, NotImplementedError)


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """A read-only view of one zip member.

    Attributes:
        name: Forward-slash separated path inside the archive.
        is_dir: True for directory entries.
    """

    name: str
    is_dir: bool
    info: zipfile.ZipInfo = field(repr=False, compare=False)


class Archive:
    """A zip archive opened over an immutable byte buffer."""

    def __init__(self, zf: zipfile.ZipFile, *, source: str) -> None:
        self._zf = zf
        self.source = source

    def entries(self) -> Iterator[ArchiveEntry]:
        """Yield entries in central directory order."""
        for info in self._zf.infolist():
            yield ArchiveEntry(name=info.filename, is_dir=info.is_dir(), info=info)

    def read(self, entry: ArchiveEntry) -> Result[bytes, CorruptArchive]:
        """Read an entry's full content, verifying its CRC."""
        try:
            return Ok(self._zf.read(entry.info))
        except _READ_ERRORS as e:
            return Err(CorruptArchive(source=self.source, reason=f"{entry.name}: {e}"))


def open_archive(data: bytes, *, source: str) -> Result[Archive, CorruptArchive]:
    """Open bytes as a zip archive.

    The buffer is never modified, so the same bytes can be opened again.

    Args:
        data: Raw archive bytes.
        source: Human-readable label used in error messages.

    Returns:
        Ok(Archive), or Err(CorruptArchive) when the bytes are not a valid zip.
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(data), "r")
    except (zipfile.BadZipFile, EOFError, OSError, ValueError) as e:
        return Err(CorruptArchive(source=source, reason=str(e)))
    return Ok(Archive(zf, source=source))


def _basename(name: str) -> str:
    return PurePosixPath(name).name


def _first_file_with_suffix(archive: Archive, suffix: str) -> ArchiveEntry | None:
    # First match in archive order wins; later matches are ignored.
    for entry in archive.entries():
        if entry.is_dir:
            continue
        if entry.name.endswith(suffix):
            return entry
    return None


def locate_module(
    archive: Archive, *, suffix: str = MODULE_SUFFIX
) -> Result[ModuleFile, PublishError]:
    """Find the packaged module inside the build artifact.

    The match is a case-sensitive suffix match on the entry path. If several
    entries qualify, the first one in archive order is returned.

    Returns:
        Ok(ModuleFile) with the entry content and its base filename, or
        Err(ModuleNotFound) / Err(CorruptArchive).
    """
    entry = _first_file_with_suffix(archive, suffix)
    if entry is None:
        return Err(ModuleNotFound(suffix=suffix))

    data = archive.read(entry)
    if isinstance(data, Err):
        return data
    return Ok(ModuleFile(data=data.value, filename=_basename(entry.name)))


def _decode_first_value(raw: bytes) -> object:
    # Only the first JSON value counts; anything after it is ignored.
    text = raw.decode("utf-8").lstrip(" \t\r\n")
    obj, _ = json.JSONDecoder().raw_decode(text)
    return obj


def _version_field(data: dict[str, object]) -> object:
    # Key match is case-insensitive; the last matching non-null key wins.
    version: object = None
    for key, value in data.items():
        if key.casefold() == "version" and value is not None:
            version = value
    return version


def read_module_version(
    module: ModuleFile, *, filename: str = METADATA_FILENAME
) -> Result[ModuleMetadata, PublishError]:
    """Read the version from the metadata file embedded in a module.

    The module bytes are opened as a second zip. The first file whose path
    ends with ``filename`` is decoded as a JSON object; trailing data after
    that object is ignored and the ``version`` key is matched regardless of
    case. The version string is returned exactly as written.
    """
    opened = open_archive(module.data, source=module.filename)
    if isinstance(opened, Err):
        return opened
    archive = opened.value

    entry = _first_file_with_suffix(archive, filename)
    if entry is None:
        return Err(MetadataNotFound(filename=filename))

    raw = archive.read(entry)
    if isinstance(raw, Err):
        return raw

    try:
        obj = _decode_first_value(raw.value)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(MetadataCorrupt(path=entry.name, reason=str(e)))

    data = as_str_dict(obj)
    if data is None:
        return Err(MetadataCorrupt(path=entry.name, reason="expected a JSON object"))

    version = _version_field(data)
    if version is None or version == "":
        return Err(MissingVersion(path=entry.name))
    if not isinstance(version, str):
        return Err(MetadataCorrupt(path=entry.name, reason="version must be a string"))

    return Ok(ModuleMetadata(version=version, path=entry.name))


def list_entry_names(archive: Archive) -> list[str]:
    """All entry names in archive order, for verbose output."""
    return [entry.name for entry in archive.entries()]
