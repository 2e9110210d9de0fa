"""
Last-Export Marker — timestamp of the last complete export run.

A single ISO-8601 string in <EXPORT_DIR>/.last-export. Absent on first run.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from catalog_export.core.logging import setup_logger
from catalog_export.export.files import atomic_write_bytes
from catalog_export.export.models import parse_iso, to_iso

logger = setup_logger("INFO")

MARKER_FILENAME = ".last-export"


class LastExportMarker:
    """Persisted cutoff for incremental exports."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def get_last_export_date(self) -> Optional[datetime]:
        """Stored timestamp, or None if missing, empty or corrupt."""
        if not self.path.exists():
            return None

        try:
            content = self.path.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.warning(f"⚠️ Cannot read last export marker {self.path}: {str(e)}")
            return None

        if not content:
            return None

        value = parse_iso(content)
        if value is None:
            logger.warning(f"⚠️ Corrupt last export marker {content!r} - treating as first run")
        return value

    def save_last_export_date(self, moment: datetime) -> None:
        atomic_write_bytes(self.path, to_iso(moment).encode("utf-8"))
        logger.info(f"📅 Last export marker set to {to_iso(moment)}")
