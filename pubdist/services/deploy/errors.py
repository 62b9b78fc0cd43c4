"""Error types for the deploy pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

DeployErrorKind = Literal[
    "manifest_invalid",
    "archive_failed",
    "upload_failed",
    "index_upload_failed",
]


@dataclass(frozen=True, slots=True)
class DeployError:
    """Failure of one publish step.

    ``kind`` names the step that failed; steps after it were not run.
    """

    kind: DeployErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
