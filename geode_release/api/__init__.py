"""GitHub API access layer."""
