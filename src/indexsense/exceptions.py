"""
Errors raised by the outer layers of IndexSense.

The advisor core never raises; malformed SQL just yields empty results.
Only configuration loading, source scanning and report writing fail
loudly, and the CLI turns these into a message plus exit code 1.

    IndexSenseError
    ├── ConfigurationError   bad or unreadable settings
    ├── ScanError            scan root missing or unusable
    └── ReportError          scripts could not be written
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


def _as_str(value: Path | str | None) -> str | None:
    return None if value is None else str(value)


class IndexSenseError(Exception):
    """Root of the IndexSense error tree."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def context(self) -> dict[str, Any]:
        """Extra fields describing where the failure happened."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Flat mapping used for --json error output."""
        return {"error_type": type(self).__name__, "message": self.message, **self.context()}


class ConfigurationError(IndexSenseError):
    """Settings could not be loaded; `config_key` names the culprit when known."""

    def __init__(self, message: str, config_key: str | None = None) -> None:
        super().__init__(message)
        self.config_key = config_key

    def context(self) -> dict[str, Any]:
        return {"config_key": self.config_key}


class ScanError(IndexSenseError):
    """
    The scan root does not exist, or is a file without a scanned extension.

    Unreadable files found while walking a directory are logged and skipped
    rather than raised.
    """

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = _as_str(path)

    def context(self) -> dict[str, Any]:
        return {"path": self.path}


class ReportError(IndexSenseError):
    """Writing the create/drop scripts to `output_dir` failed."""

    def __init__(self, message: str, output_dir: Path | str | None = None) -> None:
        super().__init__(message)
        self.output_dir = _as_str(output_dir)

    def context(self) -> dict[str, Any]:
        return {"output_dir": self.output_dir}
