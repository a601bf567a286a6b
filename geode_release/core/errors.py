"""Process exit codes.

Every publish failure maps to one of these values; they are the only
machine-readable signal the tool gives to the CI job that runs it.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for the publish command.

    - 0: Success
    - 1: User error (missing flag or credential)
    - 2: Environment error (no matching run or artifact on GitHub)
    - 3: Build error (artifact content is not what the pipeline expects)
    - 4: Network error (GitHub API call, download or upload failed)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
