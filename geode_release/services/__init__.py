"""Services: domain logic built on top of the GitHub API layer."""
