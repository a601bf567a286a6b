from __future__ import annotations

# Artifact shape
ARTIFACT_NAME = "Build Output"
MODULE_SUFFIX = ".geode"
METADATA_FILENAME = "mod.json"

# CLI defaults
DEFAULT_BRANCH = "main"
DEFAULT_WORKFLOW_FILE = "multi-platform.yml"

# Tag identity
TAGGER_NAME = "GitHub Actions Bot"
TAGGER_EMAIL = "actions@github.com"

# Network
HTTP_TIMEOUT_SECONDS = 60.0
UPLOAD_TIMEOUT_SECONDS = 5 * 60.0
ARTIFACTS_PER_PAGE = 100


def tag_message(version: str) -> str:
    return f"Tag for version {version}"


def release_title(tag: str) -> str:
    return f"Release {tag}"
