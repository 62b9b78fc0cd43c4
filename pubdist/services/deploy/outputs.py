"""GitHub Actions step outputs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from pubdist.core.result import Err, Ok, Result

__all__ = ["OutputError", "write_step_outputs"]


@dataclass(frozen=True, slots=True)
class OutputError:
    path: Path
    message: str


def write_step_outputs(path: Path, values: Mapping[str, str]) -> Result[None, OutputError]:
    """Append ``key=value`` lines to the ``GITHUB_OUTPUT`` file."""
    for key, value in values.items():
        if "\n" in value or "\r" in value:
            return Err(OutputError(path=path, message=f"multi-line value for output {key!r}"))
    lines = "".join(f"{key}={value}\n" for key, value in values.items())
    try:
        with path.open("a", encoding="utf-8") as fh:
            fh.write(lines)
    except OSError as e:
        return Err(OutputError(path=path, message=str(e)))
    return Ok(None)
