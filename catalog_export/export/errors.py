"""
Export error taxonomy.

- ExportAlreadyRunningError: a trigger was rejected because a non-stale run
  is in progress (HTTP 409, never recorded as a failure).
- ExportPipelineError: a fatal step failed (catalog query, encoding, local
  write); the run is marked failed with this message.
- InvalidTimestampTokenError: caller supplied a malformed shared timestamp.

Upload problems are not errors here: the storage adapter reports them as an
unsuccessful UploadResult and the run continues with the local artifact.
"""

from typing import Optional


class ExportError(Exception):
    """Base class for export pipeline errors."""


class ExportAlreadyRunningError(ExportError):
    """Raised when a trigger is rejected because an export is in progress."""

    def __init__(self, status=None, message: str = "Export already in progress"):
        super().__init__(message)
        self.status = status


class ExportPipelineError(ExportError):
    """Fatal failure of one pipeline step."""

    def __init__(self, step: str, message: str, fmt: Optional[str] = None):
        self.step = step
        self.format = fmt
        prefix = f"{step} ({fmt})" if fmt else step
        super().__init__(f"{prefix} failed: {message}")


class InvalidTimestampTokenError(ExportError, ValueError):
    """Raised for a shared timestamp token not shaped YYYY-MM-DD-HH-MM-SS."""
