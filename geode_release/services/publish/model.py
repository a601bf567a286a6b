from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ModuleFile:
    """The packaged .geode module pulled out of the build artifact."""

    data: bytes
    filename: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class ModuleMetadata:
    version: str
    # Entry path of mod.json inside the module archive.
    path: str


@dataclass(frozen=True, slots=True)
class PublishedRelease:
    tag: str
    title: str
    release_id: int
    asset_name: str
