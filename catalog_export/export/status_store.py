"""
Export Status Store — file-backed export state machine.

    idle --(trigger accepted)--> running --(success)--> completed
                                 running --(exception)--> failed
    completed/failed --(next trigger accepted)--> running
    running --(reader finds it older than the staleness threshold)--> idle

The record is read fresh from disk on every call so that the HTTP process,
the Celery worker and the cron process all observe the same state. A missing
or corrupt file reads as idle.
"""

import json
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Optional, Union

from catalog_export.core.logging import setup_logger
from catalog_export.export.errors import ExportAlreadyRunningError
from catalog_export.export.files import atomic_write_bytes
from catalog_export.export.models import ExportState, ExportStatus, utc_now

logger = setup_logger("INFO")

STATUS_FILENAME = ".export-status"
DEFAULT_STALE_AFTER = timedelta(minutes=30)

StatusListener = Callable[[ExportStatus], None]


class ExportStatusStore:
    """Persisted ExportStatus with staleness detection."""

    def __init__(
        self,
        path: Union[str, Path],
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            path: Status file location (usually <EXPORT_DIR>/.export-status)
            stale_after: Age after which a running record counts as abandoned
            clock: Source of the current time (UTC)
        """
        self.path = Path(path)
        self.stale_after = stale_after
        self.clock = clock
        self._listeners: List[StatusListener] = []
        self._lock = threading.Lock()

    def get_status(self) -> ExportStatus:
        """Read the stored status; idle if absent or unparsable."""
        if not self.path.exists():
            return ExportStatus.idle()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return ExportStatus.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"⚠️ Unreadable export status file {self.path}: {str(e)} - treating as idle")
            return ExportStatus.idle()

    def save_status(self, status: ExportStatus) -> None:
        """Atomically overwrite the stored status and notify subscribers."""
        body = json.dumps(status.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")
        atomic_write_bytes(self.path, body)
        logger.debug(f"Export status saved: {status.status.value}")

        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as e:
                logger.error(f"Export status listener failed: {str(e)}")

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """
        Register a callback invoked with every saved status.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def is_stale(self, status: ExportStatus, now: Optional[datetime] = None) -> bool:
        """True for a running record older than the threshold (or with no start time)."""
        if status.status is not ExportState.RUNNING:
            return False
        if status.started_at is None:
            return True
        now = now or self.clock()
        return (now - status.started_at) > self.stale_after

    def is_running(self) -> bool:
        """
        Whether a live export is in progress.

        A stale running record is reset to idle on disk so later checks are
        cheap and the next trigger is accepted.
        """
        status = self.get_status()
        if status.status is not ExportState.RUNNING:
            return False

        if self.is_stale(status):
            logger.warning(
                f"⚠️ Export marked running since {status.started_at} exceeded "
                f"{self.stale_after} - resetting status to idle"
            )
            self.save_status(ExportStatus.idle())
            return False

        return True

    def effective_status(self) -> ExportStatus:
        """
        Status as callers should see it: a stale running record reads as idle.

        Unlike is_running() this never writes.
        """
        status = self.get_status()
        if self.is_stale(status):
            return ExportStatus(
                status=ExportState.IDLE,
                started_at=status.started_at,
                error=status.error,
            )
        return status

    def begin(self, status: ExportStatus) -> ExportStatus:
        """
        Guarded transition into `status` (normally running).

        The running check and the write happen under one lock, so two
        triggers in the same process cannot both be accepted. Separate
        processes are only serialized by the staleness-checked file record.

        Raises:
            ExportAlreadyRunningError: a non-stale run is in progress (nothing written)
        """
        with self._lock:
            if self.is_running():
                raise ExportAlreadyRunningError(self.get_status())
            self.save_status(status)
        return status
