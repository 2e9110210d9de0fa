"""
Export data model.

- CatalogRecord: read-only snapshot of one catalog product, as exported
- ExportResult: outcome of writing one format in one run
- ExportStatus: persisted state of the current/last export job

JSON shapes use camelCase keys because the status file and sidecars are read
by the admin UI.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

# Provenance classes whose products may leave the shop without batch review
EXPORTABLE_SOURCES = ("MANUAL", "AG")
BATCH_STATUS_COMPLETED = "completed"


class ExportFormat(str, Enum):
    """Interchange formats produced by every run."""
    CSV = "csv"
    XML = "xml"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def content_type(self) -> str:
        if self is ExportFormat.CSV:
            return "text/csv; charset=utf-8"
        return "application/xml; charset=utf-8"


class ExportState(str, Enum):
    """ExportStatus.status values."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as stored by the database) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with millisecond precision and a Z suffix."""
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string, returning None for anything unparseable."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


@dataclass(frozen=True)
class CatalogRecord:
    """
    One catalog product as seen by the exporter.

    `sizes` keeps the raw JSON value from the catalog; it is normalized only
    at render time (see export.sizes).
    """
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    article: Optional[str] = None
    category_path: Optional[str] = None
    price: Optional[Decimal] = None
    currency: Optional[str] = None
    material: Optional[str] = None
    gender: Optional[str] = None
    season: Optional[str] = None
    description: Optional[str] = None
    sizes: Any = None
    image_urls: Tuple[str, ...] = ()
    is_active: bool = True
    slug: Optional[str] = None
    source: Optional[str] = None
    batch_processing_status: Optional[str] = None


def is_eligible(record: CatalogRecord) -> bool:
    """Active and of an exportable provenance class."""
    if not record.is_active:
        return False
    return (
        record.batch_processing_status == BATCH_STATUS_COMPLETED
        or record.source in EXPORTABLE_SOURCES
    )


def is_in_window(record: CatalogRecord, since: Optional[datetime]) -> bool:
    """Created or updated at or after `since` (always true without a cutoff)."""
    if since is None:
        return True
    cutoff = ensure_utc(since)
    return ensure_utc(record.created_at) >= cutoff or ensure_utc(record.updated_at) >= cutoff


@dataclass(frozen=True)
class ExportResult:
    """Outcome of one format within one run. Immutable once produced."""
    file_path: str
    record_count: int
    format: ExportFormat
    exported_at: datetime
    s3_key: Optional[str] = None
    s3_url: Optional[str] = None

    def with_upload(self, s3_key: str, s3_url: str) -> "ExportResult":
        return replace(self, s3_key=s3_key, s3_url=s3_url)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "filePath": self.file_path,
            "recordCount": self.record_count,
            "format": self.format.value,
            "exportedAt": to_iso(self.exported_at),
        }
        if self.s3_key:
            data["s3Key"] = self.s3_key
        if self.s3_url:
            data["s3Url"] = self.s3_url
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportResult":
        return cls(
            file_path=data["filePath"],
            record_count=int(data.get("recordCount", data.get("productCount", 0))),
            format=ExportFormat(data["format"]),
            exported_at=parse_iso(data.get("exportedAt")) or utc_now(),
            s3_key=data.get("s3Key"),
            s3_url=data.get("s3Url"),
        )


@dataclass
class ExportProgress:
    current: int
    total: int
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"current": self.current, "total": self.total}
        if self.message is not None:
            data["message"] = self.message
        return data


@dataclass
class ExportStatus:
    """Persisted export job state (see ExportStatusStore)."""
    status: ExportState = ExportState.IDLE
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    progress: Optional[ExportProgress] = None
    error: Optional[str] = None
    result: Dict[ExportFormat, ExportResult] = field(default_factory=dict)

    @property
    def is_running(self) -> bool:
        return self.status is ExportState.RUNNING

    @classmethod
    def idle(cls) -> "ExportStatus":
        return cls(status=ExportState.IDLE)

    @classmethod
    def running(cls, started_at: datetime, progress: Optional[ExportProgress] = None) -> "ExportStatus":
        return cls(status=ExportState.RUNNING, started_at=started_at, progress=progress)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": self.status.value}
        if self.started_at:
            data["startedAt"] = to_iso(self.started_at)
        if self.completed_at:
            data["completedAt"] = to_iso(self.completed_at)
        if self.progress:
            data["progress"] = self.progress.to_dict()
        if self.error is not None:
            data["error"] = self.error
        if self.result:
            data["result"] = {fmt.value: res.to_dict() for fmt, res in self.result.items()}
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportStatus":
        """
        Build a status from its JSON shape.

        Raises:
            ValueError/KeyError/TypeError: for shapes that are not a status record
        """
        if not isinstance(data, dict):
            raise TypeError("status record must be a JSON object")

        progress = None
        raw_progress = data.get("progress")
        if raw_progress is not None and not isinstance(raw_progress, dict):
            raise TypeError("progress must be a JSON object")
        if raw_progress:
            progress = ExportProgress(
                current=int(raw_progress.get("current", 0)),
                total=int(raw_progress.get("total", 0)),
                message=raw_progress.get("message"),
            )

        error = data.get("error")
        if error is not None and not isinstance(error, str):
            raise TypeError("error must be a string")

        result: Dict[ExportFormat, ExportResult] = {}
        raw_result = data.get("result")
        if raw_result is not None and not isinstance(raw_result, dict):
            raise TypeError("result must be a JSON object")
        for key, value in (raw_result or {}).items():
            if not isinstance(value, dict):
                raise TypeError(f"result.{key} must be a JSON object")
            result[ExportFormat(key)] = ExportResult.from_dict(value)

        return cls(
            status=ExportState(data["status"]),
            started_at=parse_iso(data.get("startedAt")),
            completed_at=parse_iso(data.get("completedAt")),
            progress=progress,
            error=error,
            result=result,
        )


@dataclass(frozen=True)
class ExportRun:
    """Both per-format results of one full engine run."""
    started_at: datetime
    timestamp_token: str
    only_new: bool
    since: Optional[datetime]
    results: Dict[ExportFormat, ExportResult]

    @property
    def record_count(self) -> int:
        csv_result = self.results.get(ExportFormat.CSV)
        return csv_result.record_count if csv_result else 0

    def paths(self) -> List[str]:
        return [result.file_path for result in self.results.values()]
