"""Error presentation utilities.

Centralized error formatting and exit code mapping for the publish command.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pubdist.core.errors import ErrorCode
from pubdist.output.console import Style
from pubdist.services.deploy.errors import DeployError

if TYPE_CHECKING:
    from pubdist.output.console import ConsoleProtocol

__all__ = [
    "deploy_error_exit_code",
    "deploy_error_title",
    "github_annotation",
    "print_deploy_error",
]

_TITLES = {
    "manifest_invalid": "Invalid pubspec",
    "archive_failed": "Archive failed",
    "upload_failed": "Upload failed",
    "index_upload_failed": "Index update failed",
}


def github_annotation(title: str, message: str) -> str:
    """Format a workflow command that shows up as an error annotation."""
    # Workflow commands end at the first newline.
    flat = message.replace("\r", " ").replace("\n", " ")
    return f"::error title={title}::{flat}"


def print_deploy_error(error: DeployError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def deploy_error_exit_code(error: DeployError) -> int:
    match error.kind:
        case "manifest_invalid" | "archive_failed":
            return int(ErrorCode.IO_ERROR)
        case "upload_failed" | "index_upload_failed":
            return int(ErrorCode.NETWORK_ERROR)
    return int(ErrorCode.USER_ERROR)


def deploy_error_title(error: DeployError) -> str:
    return _TITLES.get(error.kind, "Publish failed")
