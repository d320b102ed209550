"""Exit codes for CLI commands.

Every command maps its outcome onto one of these values so that CI jobs
wrapping ``rel`` can tell a failed action apart from a broken setup.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values are stable and must not be renumbered.

    - 0: Success (including runs where only allowed failures occurred)
    - 1: User error (bad arguments, invalid action declarations)
    - 2: Environment error (no project config found, cache unreadable)
    - 3: Actions failed (at least one failed action without allow_failure)
    - 5: I/O error (report file could not be written)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    ACTIONS_FAILED = 3
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
