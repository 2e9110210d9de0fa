"""
Export listing — prior runs grouped by shared timestamp.

Remote objects under exports/products-export- take precedence over local
files of the same name; local files fill in whatever storage does not know
about (development, failed uploads). Record counts come from local sidecars.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

from catalog_export.core.logging import setup_logger
from catalog_export.export.files import (
    EXPORT_PREFIX,
    REMOTE_PREFIX,
    legacy_sidecar_filename,
    parse_export_filename,
    read_json,
    remote_key,
    sidecar_filename,
)
from catalog_export.export.storage import ObjectStorage

logger = setup_logger("INFO")


@dataclass
class ExportFileEntry:
    filename: str
    format: str
    date: str
    timestamp: str
    size: int
    s3_url: Optional[str] = None
    local_path: Optional[str] = None
    record_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "size": self.size,
            "s3Url": self.s3_url,
            "localPath": self.local_path,
            "recordCount": self.record_count,
        }


@dataclass
class ExportGroup:
    """CSV and XML of one run."""
    date: str
    timestamp: str
    record_count: Optional[int] = None
    csv: Optional[ExportFileEntry] = None
    xml: Optional[ExportFileEntry] = None

    def add(self, entry: ExportFileEntry) -> None:
        setattr(self, entry.format, entry)
        if entry.record_count is not None:
            self.record_count = entry.record_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "timestamp": self.timestamp,
            "recordCount": self.record_count,
            "csv": self.csv.to_dict() if self.csv else None,
            "xml": self.xml.to_dict() if self.xml else None,
        }


def read_record_count(export_dir: Path, filename: str) -> Optional[int]:
    """Record count from the local sidecar of `filename`, if readable."""
    path = export_dir / sidecar_filename(filename)
    if not path.exists():
        path = export_dir / legacy_sidecar_filename(filename)
    if not path.exists():
        return None
    try:
        metadata = read_json(path)
        count = metadata.get("recordCount", metadata.get("productCount"))
        return int(count) if count is not None else None
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logger.debug(f"Ignoring unreadable sidecar {path.name}: {str(e)}")
        return None


def _remote_entries(storage: ObjectStorage, export_dir: Path) -> Dict[str, ExportFileEntry]:
    entries: Dict[str, ExportFileEntry] = {}
    try:
        objects = storage.list_objects(f"{REMOTE_PREFIX}{EXPORT_PREFIX}")
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Error listing S3 exports: {str(e)} - using local files only")
        return entries

    for obj in objects:
        filename = obj["key"][len(REMOTE_PREFIX):] if obj["key"].startswith(REMOTE_PREFIX) else obj["key"]
        parts = parse_export_filename(filename)
        if parts is None or parts["kind"] == "meta":
            continue
        entries[filename] = ExportFileEntry(
            filename=filename,
            format=parts["kind"],
            date=parts["date"],
            timestamp=parts["timestamp"],
            size=int(obj.get("size") or 0),
            s3_url=storage.public_url(obj["key"]),
            record_count=read_record_count(export_dir, filename),
        )

    logger.info(f"✅ Found {len(entries)} export files in S3")
    return entries


def _local_entries(export_dir: Path, storage: Optional[ObjectStorage]) -> Dict[str, ExportFileEntry]:
    entries: Dict[str, ExportFileEntry] = {}
    if not export_dir.is_dir():
        return entries

    for path in export_dir.iterdir():
        parts = parse_export_filename(path.name)
        if parts is None or parts["kind"] == "meta" or not path.is_file():
            continue
        entries[path.name] = ExportFileEntry(
            filename=path.name,
            format=parts["kind"],
            date=parts["date"],
            timestamp=parts["timestamp"],
            size=path.stat().st_size,
            s3_url=storage.public_url(remote_key(path.name)) if storage and storage.available else None,
            local_path=str(path),
            record_count=read_record_count(export_dir, path.name),
        )
    return entries


def list_exports(
    export_dir: Union[str, Path],
    storage: Optional[ObjectStorage] = None,
) -> List[ExportGroup]:
    """
    Enumerate prior runs, newest first.

    Returns:
        One ExportGroup per shared timestamp pairing its CSV and XML
    """
    export_dir = Path(export_dir)

    files: Dict[str, ExportFileEntry] = {}
    if storage is not None and storage.available:
        files.update(_remote_entries(storage, export_dir))
    else:
        logger.debug("Object storage unavailable - listing local exports only")

    for filename, entry in _local_entries(export_dir, storage).items():
        if filename in files:
            files[filename].local_path = entry.local_path
        else:
            files[filename] = entry

    groups: Dict[str, ExportGroup] = {}
    for entry in files.values():
        group = groups.setdefault(entry.timestamp, ExportGroup(date=entry.date, timestamp=entry.timestamp))
        group.add(entry)

    result = sorted(groups.values(), key=lambda g: g.timestamp, reverse=True)
    logger.info(f"📊 Returning {len(result)} grouped export entries")
    return result


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"
