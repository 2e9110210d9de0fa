"""
Catalog sources consumed by the export engine.

The engine only needs `list_exportable(since)`; ProductRepository serves it
from PostgreSQL, StaticCatalogSource from an in-memory list.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Protocol

from catalog_export.export.models import CatalogRecord, ensure_utc, is_eligible, is_in_window


class CatalogSource(Protocol):
    async def list_exportable(self, since: Optional[datetime] = None) -> List[CatalogRecord]:
        """Eligible records, optionally only those created/updated at or after `since`."""
        ...


class StaticCatalogSource:
    """Applies the repository's eligibility and window predicates to a fixed list."""

    def __init__(self, records: Iterable[CatalogRecord]):
        self.records = list(records)

    async def list_exportable(self, since: Optional[datetime] = None) -> List[CatalogRecord]:
        selected = [
            record for record in self.records
            if is_eligible(record) and is_in_window(record, since)
        ]
        # Newest first, like the database query
        selected.sort(key=lambda record: ensure_utc(record.created_at), reverse=True)
        return selected
