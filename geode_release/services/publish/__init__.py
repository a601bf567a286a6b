"""Artifact-to-release publish pipeline."""
