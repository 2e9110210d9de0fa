"""
Tests for export file naming and atomic writes.
"""

from datetime import datetime, timedelta, timezone

import pytest

from catalog_export.export.errors import InvalidTimestampTokenError
from catalog_export.export.files import (
    atomic_write_bytes,
    export_filename,
    legacy_sidecar_filename,
    make_timestamp_token,
    parse_export_filename,
    remote_key,
    sidecar_filename,
    validate_timestamp_token,
)
from catalog_export.export.models import ExportFormat


class TestTimestampToken:
    """Tests for the shared run token."""

    def test_token_is_utc(self):
        moment = datetime(2024, 5, 1, 5, 0, 0, tzinfo=timezone(timedelta(hours=3)))
        assert make_timestamp_token(moment) == "2024-05-01-02-00-00"

    def test_valid_token(self):
        assert validate_timestamp_token("2024-05-01-02-00-00") == "2024-05-01-02-00-00"

    @pytest.mark.parametrize("token", ["2024-05-01", "2024-13-01-02-00-00", "../etc/passwd", ""])
    def test_invalid_tokens(self, token):
        with pytest.raises(InvalidTimestampTokenError):
            validate_timestamp_token(token)


class TestNames:
    """Tests for artifact and remote names."""

    def test_csv_and_xml_share_the_token(self):
        token = "2024-05-01-02-00-00"
        assert export_filename(token, ExportFormat.CSV) == "products-export-2024-05-01-02-00-00.csv"
        assert export_filename(token, ExportFormat.XML) == "products-export-2024-05-01-02-00-00.xml"

    def test_sidecars_do_not_collide(self):
        csv_name = "products-export-2024-05-01-02-00-00.csv"
        xml_name = "products-export-2024-05-01-02-00-00.xml"

        assert sidecar_filename(csv_name) == "products-export-2024-05-01-02-00-00.csv.meta.json"
        assert sidecar_filename(csv_name) != sidecar_filename(xml_name)
        assert legacy_sidecar_filename(csv_name) == "products-export-2024-05-01-02-00-00.meta.json"

    def test_remote_key(self):
        assert remote_key("products-export-2024-05-01-02-00-00.csv") == "exports/products-export-2024-05-01-02-00-00.csv"

    def test_parse_current_names(self):
        assert parse_export_filename("products-export-2024-05-01-02-00-00.xml") == {
            "date": "2024-05-01",
            "timestamp": "2024-05-01-02-00-00",
            "kind": "xml",
        }
        assert parse_export_filename("products-export-2024-05-01-02-00-00.csv.meta.json")["kind"] == "meta"

    def test_parse_legacy_names(self):
        parts = parse_export_filename("products-export-2024-05-01.csv")
        assert parts["timestamp"] == "2024-05-01"
        assert parse_export_filename("products-export-2024-05-01-02-00-00.meta.json")["kind"] == "meta"

    @pytest.mark.parametrize("name", [".export-status", ".last-export", "products-export-latest.csv", "notes.txt"])
    def test_parse_rejects_other_files(self, name):
        assert parse_export_filename(name) is None


class TestAtomicWrite:
    """Tests for durable writes."""

    def test_replaces_content_and_creates_parents(self, tmp_path):
        target = tmp_path / "nested" / "file.bin"
        atomic_write_bytes(target, b"first")
        atomic_write_bytes(target, b"second")

        assert target.read_bytes() == b"second"
        assert [p.name for p in target.parent.iterdir()] == ["file.bin"]
