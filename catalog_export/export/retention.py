"""
Retention Cleaner — deletes export artifacts past the retention window.

Only names matching the export pattern (data files and their .meta.json
sidecars) are considered; the status and marker files never match.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Union

from catalog_export.core.logging import setup_logger
from catalog_export.export.files import parse_export_filename
from catalog_export.export.models import utc_now

logger = setup_logger("INFO")

DEFAULT_RETENTION = timedelta(days=7)


class RetentionCleaner:
    """Removes export artifacts whose mtime is older than the retention window."""

    def __init__(
        self,
        export_dir: Union[str, Path],
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.export_dir = Path(export_dir)
        self.retention = retention
        self.clock = clock

    def clean(self) -> List[Path]:
        """
        Delete expired artifacts.

        Per-file failures are logged and skipped.

        Returns:
            Paths that were deleted
        """
        if not self.export_dir.is_dir():
            return []

        cutoff = (self.clock() - self.retention).timestamp()
        deleted: List[Path] = []

        for path in sorted(self.export_dir.iterdir()):
            if parse_export_filename(path.name) is None:
                continue

            try:
                if not path.is_file() or path.stat().st_mtime >= cutoff:
                    continue
                path.unlink()
                deleted.append(path)
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"⚠️ Could not delete old export {path.name}: {str(e)}")

        if deleted:
            logger.info(f"🧹 Cleaned up {len(deleted)} old export file(s)")
        return deleted
