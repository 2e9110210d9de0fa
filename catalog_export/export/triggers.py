"""
Trigger Adapters — the two ways an export run starts.

ManualTrigger (operator, via the admin API):
    guarded "running" write (status_store.begin) -> dispatch the job
    to a worker -> return immediately; callers poll the status.

run_scheduled_export (daily, unattended):
    same guard -> run in-process -> retention cleanup; failures propagate so
    the process exits non-zero for the supervisor.

run_export_job is the shared unit of work: it publishes progress and writes
the terminal completed/failed status.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from catalog_export.core.logging import setup_logger
from catalog_export.export.engine import EXPORT_FORMATS, ExportEngine
from catalog_export.export.errors import ExportAlreadyRunningError
from catalog_export.export.files import make_timestamp_token
from catalog_export.export.models import (
    ExportProgress,
    ExportState,
    ExportStatus,
    parse_iso,
    to_iso,
    utc_now,
)
from catalog_export.export.retention import RetentionCleaner
from catalog_export.export.status_store import ExportStatusStore

logger = setup_logger("INFO")


@dataclass(frozen=True)
class ExportJob:
    """An accepted export request, as handed to a worker."""
    started_at: datetime
    only_new: Optional[bool] = None
    shared_timestamp: Optional[str] = None

    @classmethod
    def create(cls, started_at: datetime, only_new: Optional[bool] = None) -> "ExportJob":
        return cls(
            started_at=started_at,
            only_new=only_new,
            shared_timestamp=make_timestamp_token(started_at),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "started_at": to_iso(self.started_at),
            "only_new": self.only_new,
            "shared_timestamp": self.shared_timestamp,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ExportJob":
        started_at = parse_iso(payload.get("started_at"))
        if started_at is None:
            raise ValueError(f"Export job payload without a valid started_at: {payload!r}")
        return cls(
            started_at=started_at,
            only_new=payload.get("only_new"),
            shared_timestamp=payload.get("shared_timestamp"),
        )


JobDispatcher = Callable[[ExportJob], None]


async def run_export_job(
    engine: ExportEngine,
    status_store: ExportStatusStore,
    job: ExportJob,
    clock: Callable[[], datetime] = utc_now,
) -> ExportStatus:
    """
    Execute an accepted job and record its terminal status.

    Returns:
        The completed status

    Raises:
        Whatever the engine raised, after the failed status is saved
    """
    total = len(EXPORT_FORMATS)

    def publish_progress(current: int, total_steps: int, message: str) -> None:
        status_store.save_status(ExportStatus.running(
            job.started_at,
            ExportProgress(current=current, total=total_steps, message=message),
        ))

    logger.info(
        f"Running export job started at {to_iso(job.started_at)} "
        f"(only_new={job.only_new}, timestamp={job.shared_timestamp}, formats={total})"
    )

    try:
        run = await engine.run(
            only_new=job.only_new,
            shared_timestamp=job.shared_timestamp,
            on_progress=publish_progress,
        )
    except Exception as e:
        logger.error(f"❌ Error during product export: {str(e)}", exc_info=True)
        status_store.save_status(ExportStatus(
            status=ExportState.FAILED,
            started_at=job.started_at,
            completed_at=clock(),
            error=str(e) or type(e).__name__,
        ))
        raise

    completed = ExportStatus(
        status=ExportState.COMPLETED,
        started_at=job.started_at,
        completed_at=clock(),
        result=dict(run.results),
    )
    status_store.save_status(completed)
    logger.info(f"✅ Export job completed: {run.record_count} products exported")
    return completed


class ManualTrigger:
    """Operator-initiated export, guarded against overlapping runs."""

    def __init__(
        self,
        status_store: ExportStatusStore,
        dispatch: JobDispatcher,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            status_store: Shared status record
            dispatch: Hands the accepted job to a background executor
            clock: Source of the current time (UTC)
        """
        self.status_store = status_store
        self.dispatch = dispatch
        self.clock = clock

    def trigger(self, only_new: bool = False) -> ExportStatus:
        """
        Accept a new export unless one is already running.

        Returns:
            The optimistic running status that was saved

        Raises:
            ExportAlreadyRunningError: a non-stale run is in progress (nothing written)
        """
        started_at = self.clock()
        status = ExportStatus.running(
            started_at,
            ExportProgress(current=0, total=len(EXPORT_FORMATS), message="Starting export..."),
        )
        try:
            self.status_store.begin(status)
        except ExportAlreadyRunningError as e:
            running_since = to_iso(e.status.started_at) if e.status else None
            logger.warning(f"⚠️ Export trigger rejected: export running since {running_since}")
            raise

        job = ExportJob.create(started_at, only_new=only_new)
        try:
            self.dispatch(job)
        except Exception as e:
            logger.error(f"❌ Failed to dispatch export job: {str(e)}")
            self.status_store.save_status(ExportStatus(
                status=ExportState.FAILED,
                started_at=started_at,
                completed_at=self.clock(),
                error=f"Failed to start export: {str(e)}",
            ))
            raise

        logger.info(f"Export job accepted (only_new={only_new}, timestamp={job.shared_timestamp})")
        return status


async def run_scheduled_export(
    engine: ExportEngine,
    status_store: ExportStatusStore,
    cleaner: Optional[RetentionCleaner] = None,
    clock: Callable[[], datetime] = utc_now,
) -> Optional[ExportStatus]:
    """
    Daily unattended export.

    Returns:
        The completed status, or None when skipped because a run is in progress

    Raises:
        Any pipeline failure (status is already marked failed)
    """
    started_at = clock()
    try:
        status_store.begin(ExportStatus.running(
            started_at,
            ExportProgress(current=0, total=len(EXPORT_FORMATS), message="Scheduled export started"),
        ))
    except ExportAlreadyRunningError as e:
        running_since = to_iso(e.status.started_at) if e.status else None
        logger.warning(f"⚠️ Scheduled export skipped: export running since {running_since}")
        return None

    # Incremental iff a marker exists
    job = ExportJob.create(started_at, only_new=None)
    completed = await run_export_job(engine, status_store, job, clock=clock)

    if cleaner is not None:
        try:
            cleaner.clean()
        except Exception as e:
            logger.warning(f"⚠️ Retention cleanup failed: {str(e)}")

    return completed
