"""
Celery tasks for background export processing.
"""
import asyncio
from typing import Any, Dict, Optional

from catalog_export.core.db import close_engine, init_engine
from catalog_export.core.logging import setup_logger
from catalog_export.export.service import build_export_services
from catalog_export.export.triggers import ExportJob, run_export_job, run_scheduled_export
from catalog_export.workers.celery_app import celery_app

logger = setup_logger("INFO")


async def _execute_manual_job(job: ExportJob) -> Dict[str, Any]:
    init_engine()
    try:
        services = build_export_services()
        status = await run_export_job(services.engine, services.status_store, job)
        return status.to_dict()
    finally:
        await close_engine()


async def _execute_scheduled() -> Optional[Dict[str, Any]]:
    init_engine()
    try:
        services = build_export_services()
        status = await run_scheduled_export(services.engine, services.status_store, services.cleaner)
        return status.to_dict() if status else None
    finally:
        await close_engine()


@celery_app.task(bind=True, name="workers.tasks.run_manual_export_task")
def run_manual_export_task(self, job_payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Execute a manual export accepted by the admin API.

    Args:
        job_payload: ExportJob.to_payload() of the accepted job

    Returns:
        Terminal ExportStatus as a dictionary
    """
    job = ExportJob.from_payload(job_payload)
    logger.info(f"Starting manual export task {self.request.id} (job started {job_payload.get('started_at')})")

    try:
        result = asyncio.run(_execute_manual_job(job))
        logger.info(f"Manual export task {self.request.id} completed")
        return result
    except Exception as e:
        # Failed status is already persisted by run_export_job
        logger.error(f"Task {self.request.id} failed: {str(e)}")
        raise


@celery_app.task(bind=True, name="workers.tasks.run_scheduled_export_task")
def run_scheduled_export_task(self) -> Optional[Dict[str, Any]]:
    """
    Daily export fired by Celery beat.

    Returns:
        Terminal ExportStatus as a dictionary, or None if skipped
    """
    logger.info(f"Starting scheduled export task {self.request.id}")
    try:
        return asyncio.run(_execute_scheduled())
    except Exception as e:
        logger.error(f"Scheduled export task {self.request.id} failed: {str(e)}")
        raise


def dispatch_export_job(job: ExportJob) -> None:
    """JobDispatcher handing accepted manual jobs to the Celery worker."""
    async_result = run_manual_export_task.delay(job.to_payload())
    logger.info(f"Export job queued as task {async_result.id}")
