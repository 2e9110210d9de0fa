"""
Tests for the last-export marker.
"""

from datetime import datetime, timezone

from catalog_export.export.marker import MARKER_FILENAME, LastExportMarker


class TestLastExportMarker:
    """Tests for marker persistence."""

    def test_missing_marker(self, export_dir):
        assert LastExportMarker(export_dir / MARKER_FILENAME).get_last_export_date() is None

    def test_save_and_read(self, export_dir, base_time):
        marker = LastExportMarker(export_dir / MARKER_FILENAME)
        marker.save_last_export_date(base_time)

        assert (export_dir / MARKER_FILENAME).read_text(encoding="utf-8") == "2024-05-01T02:00:00.000Z"
        assert marker.get_last_export_date() == base_time

    def test_naive_datetime_saved_as_utc(self, export_dir):
        marker = LastExportMarker(export_dir / MARKER_FILENAME)
        marker.save_last_export_date(datetime(2024, 1, 2, 3, 4, 5))

        assert marker.get_last_export_date() == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_empty_or_corrupt_marker_means_first_run(self, export_dir):
        path = export_dir / MARKER_FILENAME
        marker = LastExportMarker(path)

        path.write_text("   ", encoding="utf-8")
        assert marker.get_last_export_date() is None

        path.write_text("yesterday", encoding="utf-8")
        assert marker.get_last_export_date() is None

    def test_offset_timestamps_are_normalized(self, export_dir):
        path = export_dir / MARKER_FILENAME
        path.write_text("2024-05-01T05:00:00+03:00", encoding="utf-8")

        value = LastExportMarker(path).get_last_export_date()

        assert value == datetime(2024, 5, 1, 2, 0, 0, tzinfo=timezone.utc)
