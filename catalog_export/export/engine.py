"""
Export Engine — one full catalog export run.

Pipeline:
1. Resolve the incremental window from the Last-Export Marker
2. Query the catalog source for eligible records
3. Pick the shared timestamp token naming this run's files
4. Per format: encode, write the data file and its .meta.json sidecar
5. Per format: upload data file and sidecar (best-effort)
6. After both formats: advance the marker to the run's start time

Fatal failures (query, encoding, local write) raise ExportPipelineError and
leave the marker untouched, so the next run re-exports the same window.
Upload failures only drop the remote URL from the ExportResult.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from catalog_export.core.logging import setup_logger
from catalog_export.export.encoders import encode
from catalog_export.export.errors import ExportPipelineError
from catalog_export.export.files import (
    atomic_write_bytes,
    export_filename,
    make_timestamp_token,
    remote_key,
    sidecar_filename,
    validate_timestamp_token,
    write_json,
)
from catalog_export.export.marker import LastExportMarker
from catalog_export.export.models import (
    CatalogRecord,
    ExportFormat,
    ExportResult,
    ExportRun,
    to_iso,
    utc_now,
)
from catalog_export.export.sources import CatalogSource
from catalog_export.export.storage import ObjectStorage

logger = setup_logger("INFO")

EXPORT_FORMATS: Tuple[ExportFormat, ...] = (ExportFormat.CSV, ExportFormat.XML)

ProgressCallback = Callable[[int, int, str], None]


class ExportEngine:
    """Materializes the catalog into CSV and XML artifacts."""

    def __init__(
        self,
        source: CatalogSource,
        export_dir: Union[str, Path],
        marker: LastExportMarker,
        storage: Optional[ObjectStorage] = None,
        site_url: str = "",
        default_currency: str = "RUB",
        clock: Callable[[], datetime] = utc_now,
    ):
        self.source = source
        self.export_dir = Path(export_dir)
        self.marker = marker
        self.storage = storage
        self.site_url = site_url
        self.default_currency = default_currency
        self.clock = clock

    async def run(
        self,
        only_new: Optional[bool] = None,
        shared_timestamp: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ExportRun:
        """
        Export both formats and advance the Last-Export Marker.

        Args:
            only_new: True for incremental, False for full, None to decide by
                whether a marker exists
            shared_timestamp: Token naming this run's files (generated if omitted)
            on_progress: Called as (current, total, message) before each format

        Returns:
            ExportRun with one ExportResult per format

        Raises:
            InvalidTimestampTokenError: malformed shared_timestamp
            ExportPipelineError: a fatal step failed
        """
        started_at = self.clock()
        token = (
            validate_timestamp_token(shared_timestamp)
            if shared_timestamp
            else make_timestamp_token(started_at)
        )

        logger.info("🚀 Starting product export...")
        effective_only_new, since = self._resolve_window(only_new)
        records = await self._load_records(since)

        results: Dict[ExportFormat, ExportResult] = {}
        total = len(EXPORT_FORMATS)
        for index, fmt in enumerate(EXPORT_FORMATS, start=1):
            if on_progress:
                on_progress(index, total, f"Exporting {fmt.value.upper()}...")
            logger.info(f"📄 Exporting to {fmt.value.upper()} format...")
            results[fmt] = self.write_format(records, fmt, token)

        self.marker.save_last_export_date(started_at)

        logger.info(f"✅ Product export completed: {len(records)} records per format")
        return ExportRun(
            started_at=started_at,
            timestamp_token=token,
            only_new=effective_only_new,
            since=since,
            results=results,
        )

    async def export_format(self, fmt: ExportFormat, only_new: bool = False) -> ExportResult:
        """
        On-demand export of a single format.

        Writes and uploads one artifact like a full run but never advances
        the Last-Export Marker.
        """
        token = make_timestamp_token(self.clock())
        _, since = self._resolve_window(only_new)
        records = await self._load_records(since)
        return self.write_format(records, fmt, token)

    def _resolve_window(self, only_new: Optional[bool]) -> Tuple[bool, Optional[datetime]]:
        if only_new is False:
            logger.info("📦 Full export requested - exporting all eligible products")
            return False, None

        last_export = self.marker.get_last_export_date()
        if last_export is None:
            logger.info("📦 First export - exporting all eligible products")
            logger.warning("⚠️ Note: subsequent exports will only include new/updated products")
            return False, None

        logger.info(f"📅 Last export was at: {to_iso(last_export)}")
        logger.info("📦 Exporting only new/updated products since last export")
        return True, last_export

    async def _load_records(self, since: Optional[datetime]) -> List[CatalogRecord]:
        try:
            records = await self.source.list_exportable(since=since)
        except Exception as e:
            logger.error(f"❌ Catalog query failed: {str(e)}")
            raise ExportPipelineError("catalog query", str(e)) from e

        with_images = sum(1 for record in records if record.image_urls)
        logger.info(f"📦 Export: {len(records)} products total, {with_images} with images")
        if records and with_images == 0:
            logger.warning("⚠️ Warning: no exported products have images")
        return list(records)

    def write_format(
        self,
        records: Sequence[CatalogRecord],
        fmt: ExportFormat,
        token: str,
    ) -> ExportResult:
        """Encode, write locally with sidecar, then try to upload."""
        filename = export_filename(token, fmt)
        file_path = self.export_dir / filename

        try:
            body = encode(fmt, records, self.site_url, self.default_currency)
        except Exception as e:
            logger.error(f"❌ {fmt.value.upper()} encoding failed: {str(e)}")
            raise ExportPipelineError("encoding", str(e), fmt.value) from e

        try:
            atomic_write_bytes(file_path, body)
            exported_at = self.clock()
            metadata = {
                "recordCount": len(records),
                "format": fmt.value,
                "exportedAt": to_iso(exported_at),
                "filename": filename,
            }
            write_json(self.export_dir / sidecar_filename(filename), metadata)
        except OSError as e:
            logger.error(f"❌ Writing {file_path} failed: {str(e)}")
            raise ExportPipelineError("local write", str(e), fmt.value) from e

        logger.info(f"📁 File saved to: {file_path} ({len(body)} bytes)")

        result = ExportResult(
            file_path=str(file_path),
            record_count=len(records),
            format=fmt,
            exported_at=exported_at,
        )
        return self._upload(result, body, metadata)

    def _upload(self, result: ExportResult, body: bytes, metadata: Dict) -> ExportResult:
        if self.storage is None or not self.storage.available:
            logger.info("☁️ Object storage unavailable - keeping local artifact only")
            return result

        filename = metadata["filename"]
        key = remote_key(filename)
        logger.info(f"📤 Uploading to S3: {key} ({result.format.value}, {len(body)} bytes)")

        try:
            upload = self.storage.put_bytes(key, body, result.format.content_type)
        except Exception as e:
            logger.warning(f"⚠️ Upload of {key} raised: {str(e)}")
            return result

        if not upload.success or not upload.url:
            logger.warning(f"⚠️ Failed to upload to S3: {upload.error} (key: {key})")
            return result

        logger.info(f"✅ File uploaded to S3: {upload.url}")
        result = result.with_upload(key, upload.url)

        metadata_key = remote_key(sidecar_filename(filename))
        try:
            meta_upload = self.storage.put_bytes(
                metadata_key,
                json.dumps(metadata, indent=2, ensure_ascii=False).encode("utf-8"),
                "application/json",
            )
            if meta_upload.success:
                logger.info(f"✅ Metadata uploaded to S3: {metadata_key}")
            else:
                logger.warning(f"⚠️ Failed to upload metadata to S3: {meta_upload.error}")
        except Exception as e:
            logger.warning(f"⚠️ Failed to upload metadata to S3: {str(e)}")

        return result


