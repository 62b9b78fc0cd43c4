"""Process exit codes for the publish command.

A failed step terminates the CI job with one of these codes; the values are
stable so workflows can branch on them.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for the publish command.

    - 0: Success
    - 1: User error (missing or invalid action inputs)
    - 4: Network error (object storage upload failed)
    - 5: I/O error (manifest unreadable, archive not written)
    """

    OK = 0
    USER_ERROR = 1
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")
