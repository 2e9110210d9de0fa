"""
Export Routes — admin surface of the catalog export pipeline

- POST /admin/exports/trigger   start a full export in the background
- GET  /admin/exports/status    poll the current ExportStatus (safe at ~1s)
- GET  /admin/exports/list      prior runs grouped by shared timestamp
- GET  /admin/exports/download  on-demand single-format export

Callers poll /status after a 202 from /trigger; a 409 means another run is
in progress and is not a failure.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field

from catalog_export.core.logging import setup_logger
from catalog_export.export.errors import ExportAlreadyRunningError
from catalog_export.export.listing import list_exports
from catalog_export.export.models import ExportFormat
from catalog_export.export.service import ExportServices, build_export_services
from catalog_export.export.triggers import ManualTrigger

logger = setup_logger("INFO")

router = APIRouter(prefix="/admin/exports", tags=["Export"])


class TriggerRequest(BaseModel):
    """Request model for a manual export."""
    onlyNew: bool = Field(
        default=False,
        description="Export only products created/updated since the last export"
    )


class TriggerResponse(BaseModel):
    """Response model for an accepted export."""
    success: bool
    message: str
    status: Dict[str, Any]


@lru_cache(maxsize=1)
def get_export_services() -> ExportServices:
    return build_export_services()


def get_manual_trigger(services: ExportServices = Depends(get_export_services)) -> ManualTrigger:
    from catalog_export.workers.tasks import dispatch_export_job
    return ManualTrigger(services.status_store, dispatch_export_job)


@router.post("/trigger", status_code=202, response_model=TriggerResponse)
async def trigger_export(
    request: Optional[TriggerRequest] = None,
    trigger: ManualTrigger = Depends(get_manual_trigger),
):
    """
    Start a CSV + XML export in the background.

    Returns 202 once the job is accepted; poll GET /status for progress.
    Returns 409 if an export is already running.
    """
    only_new = request.onlyNew if request else False

    try:
        status = trigger.trigger(only_new=only_new)
    except ExportAlreadyRunningError as e:
        current = e.status.to_dict() if e.status else None
        return JSONResponse(
            status_code=409,
            content={
                "error": "Export already in progress",
                "message": "An export is already running. Please wait for it to finish.",
                "status": current,
            },
        )
    except Exception as e:
        logger.error(f"Error triggering export: {str(e)}")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to trigger export", "message": str(e)}
        )

    return TriggerResponse(
        success=True,
        message="Export started",
        status=status.to_dict(),
    )


@router.get("/status")
async def get_export_status(services: ExportServices = Depends(get_export_services)):
    """
    Current export status, read fresh from disk.

    A running export older than the staleness threshold is reported as idle.
    """
    status = services.status_store.effective_status()
    return JSONResponse(
        content=status.to_dict(),
        headers={"Cache-Control": "no-store"},
    )


@router.get("/list")
async def list_export_runs(services: ExportServices = Depends(get_export_services)):
    """
    Prior export runs, newest first, CSV and XML paired per run.

    recordCount comes from the local sidecar of each file,
    <datafile>.meta.json (e.g. products-export-<token>.csv.meta.json).
    Runs written before per-file sidecars fall back to the shared
    products-export-<token>.meta.json. Sidecars are never listed as files.
    """
    try:
        groups = list_exports(services.engine.export_dir, services.storage)
    except Exception as e:
        logger.error(f"Error listing exports: {str(e)}")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to list exports", "message": str(e)}
        )

    return {
        "success": True,
        "exports": [group.to_dict() for group in groups],
        "count": len(groups),
    }


@router.get("/download")
async def download_export(
    format: Literal["csv", "xml"] = Query(default="csv"),
    onlyNew: bool = Query(default=False),
    download: bool = Query(default=True),
    services: ExportServices = Depends(get_export_services),
):
    """
    Export a single format synchronously.

    Returns the file as an attachment, or its metadata when download=false.
    Does not advance the last-export marker.
    """
    fmt = ExportFormat(format)

    try:
        result = await services.engine.export_format(fmt, only_new=onlyNew)
    except Exception as e:
        logger.error(f"Error exporting products: {str(e)}")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to export products", "message": str(e)}
        )

    if download:
        return FileResponse(
            result.file_path,
            media_type=fmt.content_type,
            filename=Path(result.file_path).name,
            headers={"Cache-Control": "no-store"},
        )

    return {"success": True, **result.to_dict()}
