"""
Shared fixtures for export tests.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from catalog_export.export.models import CatalogRecord

BASE_TIME = datetime(2024, 5, 1, 2, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock returning timezone-aware UTC datetimes."""

    def __init__(self, now: datetime = BASE_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_record(record_id: str = "p1", **overrides) -> CatalogRecord:
    """Eligible record with sensible defaults; override any field."""
    values = dict(
        id=record_id,
        name=f"Product {record_id}",
        created_at=BASE_TIME - timedelta(days=3),
        updated_at=BASE_TIME - timedelta(days=2),
        article=f"ART-{record_id}",
        category_path="Women/Shoes",
        price=Decimal("1500.00"),
        currency="RUB",
        material="Leather",
        gender="female",
        season="winter",
        description="Warm boots",
        sizes=[{"size": "38", "count": 2}, {"size": "39", "count": 1}],
        image_urls=("https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"),
        is_active=True,
        slug=f"product-{record_id}",
        source="MANUAL",
        batch_processing_status=None,
    )
    values.update(overrides)
    return CatalogRecord(**values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def export_dir(tmp_path):
    path = tmp_path / "exports"
    path.mkdir()
    return path


@pytest.fixture(name="make_record")
def make_record_fixture():
    return make_record


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME
