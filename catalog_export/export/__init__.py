"""
Export Package

Bulk catalog export: CSV/XML encoders, file-backed status and marker,
export engine, retention cleanup and trigger adapters.
"""

from catalog_export.export.engine import ExportEngine
from catalog_export.export.errors import (
    ExportAlreadyRunningError,
    ExportError,
    ExportPipelineError,
    InvalidTimestampTokenError,
)
from catalog_export.export.marker import LastExportMarker
from catalog_export.export.models import (
    CatalogRecord,
    ExportFormat,
    ExportProgress,
    ExportResult,
    ExportRun,
    ExportState,
    ExportStatus,
)
from catalog_export.export.retention import RetentionCleaner
from catalog_export.export.status_store import ExportStatusStore
from catalog_export.export.triggers import (
    ExportJob,
    ManualTrigger,
    run_export_job,
    run_scheduled_export,
)

__all__ = [
    "ExportEngine",
    "ExportAlreadyRunningError",
    "ExportError",
    "ExportPipelineError",
    "InvalidTimestampTokenError",
    "LastExportMarker",
    "CatalogRecord",
    "ExportFormat",
    "ExportProgress",
    "ExportResult",
    "ExportRun",
    "ExportState",
    "ExportStatus",
    "RetentionCleaner",
    "ExportStatusStore",
    "ExportJob",
    "ManualTrigger",
    "run_export_job",
    "run_scheduled_export",
]
