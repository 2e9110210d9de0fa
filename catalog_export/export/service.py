"""
Export Service — wiring of the export components from Settings.

Every process (API, Celery worker, cron script) builds the same set of
components over the same EXPORT_DIR, so they share the status file and the
Last-Export Marker.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from catalog_export.core.config import Settings, settings as default_settings
from catalog_export.core.logging import setup_logger
from catalog_export.export.engine import ExportEngine
from catalog_export.export.marker import MARKER_FILENAME, LastExportMarker
from catalog_export.export.retention import RetentionCleaner
from catalog_export.export.sources import CatalogSource
from catalog_export.export.status_store import STATUS_FILENAME, ExportStatusStore
from catalog_export.export.storage import ObjectStorage

logger = setup_logger("INFO")


@dataclass
class ExportServices:
    status_store: ExportStatusStore
    marker: LastExportMarker
    storage: ObjectStorage
    engine: ExportEngine
    cleaner: RetentionCleaner


def build_export_services(
    settings: Optional[Settings] = None,
    source: Optional[CatalogSource] = None,
    storage: Optional[ObjectStorage] = None,
) -> ExportServices:
    """
    Build the export components.

    Args:
        settings: Application settings (module default if omitted)
        source: Catalog source (the PostgreSQL repository if omitted)
        storage: Object storage (built from settings if omitted)
    """
    settings = settings or default_settings
    export_dir = settings.EXPORT_DIR

    if source is None:
        from catalog_export.core.db.repository import ProductRepository
        source = ProductRepository()

    if storage is None:
        storage = ObjectStorage.from_settings(settings)

    status_store = ExportStatusStore(
        export_dir / STATUS_FILENAME,
        stale_after=timedelta(minutes=settings.EXPORT_STALE_AFTER_MINUTES),
    )
    marker = LastExportMarker(export_dir / MARKER_FILENAME)
    engine = ExportEngine(
        source=source,
        export_dir=export_dir,
        marker=marker,
        storage=storage,
        site_url=settings.SITE_URL,
        default_currency=settings.DEFAULT_CURRENCY,
    )
    cleaner = RetentionCleaner(export_dir, retention=timedelta(days=settings.EXPORT_RETENTION_DAYS))

    logger.debug(f"Export services ready for {export_dir}")
    return ExportServices(
        status_store=status_store,
        marker=marker,
        storage=storage,
        engine=engine,
        cleaner=cleaner,
    )
