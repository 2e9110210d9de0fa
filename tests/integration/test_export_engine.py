"""
Integration tests for the export engine.
Runs full exports against an in-memory catalog into a temp directory.
"""

import json
import xml.etree.ElementTree as ET
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from catalog_export.export import engine as engine_module
from catalog_export.export.engine import ExportEngine
from catalog_export.export.errors import ExportPipelineError, InvalidTimestampTokenError
from catalog_export.export.marker import MARKER_FILENAME, LastExportMarker
from catalog_export.export.models import ExportFormat
from catalog_export.export.sources import StaticCatalogSource
from catalog_export.export.storage import ObjectStorage

TOKEN = "2024-05-01-02-00-00"


class FailingSource:
    async def list_exportable(self, since=None):
        raise RuntimeError("connection refused")


def make_engine(export_dir, clock, records=(), source=None, storage=None):
    return ExportEngine(
        source=source or StaticCatalogSource(records),
        export_dir=export_dir,
        marker=LastExportMarker(export_dir / MARKER_FILENAME),
        storage=storage,
        site_url="https://shop.example.com",
        clock=clock,
    )


def exported_ids(path):
    return [product.findtext("id") for product in ET.parse(path).getroot()]


class TestFullRun:
    """Tests for a complete two-format run."""

    @pytest.mark.asyncio
    async def test_first_run_exports_all_eligible(self, export_dir, clock, make_record):
        records = [
            make_record("manual", source="MANUAL"),
            make_record("ag", source="AG"),
            make_record("reviewed", source="PARSER", batch_processing_status="completed"),
            make_record("pending", source="PARSER", batch_processing_status="pending"),
            make_record("inactive", is_active=False),
        ]
        engine = make_engine(export_dir, clock, records)

        run = await engine.run()

        assert run.only_new is False
        assert run.since is None
        assert run.timestamp_token == TOKEN
        assert run.record_count == 3
        assert sorted(exported_ids(run.results[ExportFormat.XML].file_path)) == ["ag", "manual", "reviewed"]

    @pytest.mark.asyncio
    async def test_files_share_timestamp_and_have_sidecars(self, export_dir, clock, make_record):
        engine = make_engine(export_dir, clock, [make_record("p1")])

        run = await engine.run()

        csv_path = export_dir / f"products-export-{TOKEN}.csv"
        xml_path = export_dir / f"products-export-{TOKEN}.xml"
        assert run.paths() == [str(csv_path), str(xml_path)]
        assert csv_path.read_bytes().startswith(b"\xef\xbb\xbf")

        for path, fmt in ((csv_path, "csv"), (xml_path, "xml")):
            metadata = json.loads((export_dir / f"{path.name}.meta.json").read_text(encoding="utf-8"))
            assert metadata == {
                "recordCount": 1,
                "format": fmt,
                "exportedAt": "2024-05-01T02:00:00.000Z",
                "filename": path.name,
            }

    @pytest.mark.asyncio
    async def test_marker_advances_to_run_start(self, export_dir, clock, make_record):
        engine = make_engine(export_dir, clock, [make_record("p1")])

        await engine.run()

        assert engine.marker.get_last_export_date() == clock.now

    @pytest.mark.asyncio
    async def test_zero_records_produces_valid_artifacts(self, export_dir, clock):
        engine = make_engine(export_dir, clock, [])

        run = await engine.run()

        assert run.record_count == 0
        assert exported_ids(run.results[ExportFormat.XML].file_path) == []
        assert engine.marker.get_last_export_date() == clock.now

    @pytest.mark.asyncio
    async def test_progress_reported_per_format(self, export_dir, clock, make_record):
        engine = make_engine(export_dir, clock, [make_record("p1")])
        progress = []

        await engine.run(on_progress=lambda current, total, message: progress.append((current, total, message)))

        assert progress == [(1, 2, "Exporting CSV..."), (2, 2, "Exporting XML...")]


class TestIncrementalRun:
    """Tests for the incremental window."""

    @pytest.mark.asyncio
    async def test_only_records_touched_since_marker(self, export_dir, clock, make_record):
        marker_time = clock.now - timedelta(days=1)
        records = [
            make_record("before", created_at=marker_time - timedelta(seconds=1),
                        updated_at=marker_time - timedelta(seconds=1)),
            make_record("created", created_at=marker_time + timedelta(seconds=1),
                        updated_at=marker_time + timedelta(seconds=1)),
            make_record("updated", created_at=marker_time - timedelta(days=30),
                        updated_at=marker_time + timedelta(seconds=1)),
            make_record("boundary", created_at=marker_time - timedelta(days=30), updated_at=marker_time),
        ]
        engine = make_engine(export_dir, clock, records)
        engine.marker.save_last_export_date(marker_time)

        run = await engine.run()

        assert run.only_new is True
        assert run.since == marker_time
        assert sorted(exported_ids(run.results[ExportFormat.XML].file_path)) == ["boundary", "created", "updated"]

    @pytest.mark.asyncio
    async def test_only_new_without_marker_falls_back_to_full(self, export_dir, clock, make_record):
        engine = make_engine(export_dir, clock, [make_record("p1"), make_record("p2")])

        run = await engine.run(only_new=True)

        assert run.only_new is False
        assert run.record_count == 2

    @pytest.mark.asyncio
    async def test_full_export_ignores_marker(self, export_dir, clock, make_record):
        engine = make_engine(export_dir, clock, [make_record("old")])
        engine.marker.save_last_export_date(clock.now)

        run = await engine.run(only_new=False)

        assert run.record_count == 1


class TestFailures:
    """Fatal failures leave the marker untouched."""

    @pytest.mark.asyncio
    async def test_query_failure(self, export_dir, clock):
        engine = make_engine(export_dir, clock, source=FailingSource())

        with pytest.raises(ExportPipelineError, match="catalog query"):
            await engine.run()

        assert engine.marker.get_last_export_date() is None

    @pytest.mark.asyncio
    async def test_second_format_failure_keeps_marker(self, export_dir, clock, make_record, monkeypatch):
        real_encode = engine_module.encode

        def encode_csv_only(fmt, records, site_url, default_currency):
            if fmt is ExportFormat.XML:
                raise ValueError("encoder exploded")
            return real_encode(fmt, records, site_url, default_currency)

        monkeypatch.setattr(engine_module, "encode", encode_csv_only)
        engine = make_engine(export_dir, clock, [make_record("p1")])
        previous = clock.now - timedelta(days=1)
        engine.marker.save_last_export_date(previous)

        with pytest.raises(ExportPipelineError, match="encoding"):
            await engine.run(only_new=False)

        assert engine.marker.get_last_export_date() == previous

    @pytest.mark.asyncio
    async def test_invalid_shared_timestamp(self, export_dir, clock, make_record):
        engine = make_engine(export_dir, clock, [make_record("p1")])

        with pytest.raises(InvalidTimestampTokenError):
            await engine.run(shared_timestamp="2024-05-01")

        assert list(export_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_explicit_shared_timestamp(self, export_dir, clock, make_record):
        engine = make_engine(export_dir, clock, [make_record("p1")])

        run = await engine.run(shared_timestamp="2024-04-30-23-59-59")

        assert run.results[ExportFormat.CSV].file_path.endswith("products-export-2024-04-30-23-59-59.csv")


class TestUpload:
    """Tests for best-effort object storage upload."""

    @pytest.mark.asyncio
    async def test_uploads_data_and_sidecar(self, export_dir, clock, make_record):
        client = MagicMock()
        storage = ObjectStorage(bucket="catalog", public_base_url="https://cdn.example.com", client=client)
        engine = make_engine(export_dir, clock, [make_record("p1")], storage=storage)

        run = await engine.run()

        csv_result = run.results[ExportFormat.CSV]
        assert csv_result.s3_key == f"exports/products-export-{TOKEN}.csv"
        assert csv_result.s3_url == f"https://cdn.example.com/exports/products-export-{TOKEN}.csv"
        keys = [call.kwargs["Key"] for call in client.put_object.call_args_list]
        assert keys == [
            f"exports/products-export-{TOKEN}.csv",
            f"exports/products-export-{TOKEN}.csv.meta.json",
            f"exports/products-export-{TOKEN}.xml",
            f"exports/products-export-{TOKEN}.xml.meta.json",
        ]
        content_types = [call.kwargs["ContentType"] for call in client.put_object.call_args_list]
        assert content_types[1] == "application/json"
        assert content_types[2] == "application/xml; charset=utf-8"

    @pytest.mark.asyncio
    async def test_upload_failure_does_not_fail_run(self, export_dir, clock, make_record):
        client = MagicMock()
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
        )
        storage = ObjectStorage(bucket="catalog", public_base_url="https://cdn.example.com", client=client)
        engine = make_engine(export_dir, clock, [make_record("p1")], storage=storage)

        run = await engine.run()

        for result in run.results.values():
            assert result.s3_url is None
            assert "s3Url" not in result.to_dict()
        # Sidecars are only uploaded after their data file
        assert client.put_object.call_count == 2
        assert engine.marker.get_last_export_date() == clock.now


class TestSingleFormatExport:
    """Tests for on-demand export_format()."""

    @pytest.mark.asyncio
    async def test_does_not_touch_marker(self, export_dir, clock, make_record):
        engine = make_engine(export_dir, clock, [make_record("p1")])

        result = await engine.export_format(ExportFormat.CSV)

        assert result.record_count == 1
        assert result.file_path.endswith(".csv")
        assert engine.marker.get_last_export_date() is None
        assert not (export_dir / f"products-export-{TOKEN}.xml").exists()
