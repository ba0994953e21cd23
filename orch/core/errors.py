"""Process exit codes.

Each aborted release run maps to one of these codes so that scripts wrapping
``orchestrator release-iso`` can tell an operator mistake from a flaky
network without parsing output.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad version string, invalid config file)
    - 2: Environment error (missing token, repo layout, wrong origin)
    - 3: Preflight error (dirty tree, detached HEAD, diverged, tag exists)
    - 4: Network error (push failed, release API failed, assets timed out)
    - 130: Interrupted by the operator
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    PREFLIGHT_ERROR = 3
    NETWORK_ERROR = 4
    INTERRUPTED = 130

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
