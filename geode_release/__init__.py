"""Publish a GitHub release from the latest CI build of a Geode mod."""

__version__ = "0.1.0"
