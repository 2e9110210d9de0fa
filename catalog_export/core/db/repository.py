"""
Product Repository — catalog queries for the export pipeline

Provides the eligible-product query and the mapping from ORM rows to
immutable CatalogRecord snapshots.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import Select, select, or_, and_
from sqlalchemy.orm import selectinload

from catalog_export.core.db.models import Product
from catalog_export.core.db.postgres import get_session
from catalog_export.core.logging import setup_logger
from catalog_export.export.models import (
    BATCH_STATUS_COMPLETED,
    EXPORTABLE_SOURCES,
    CatalogRecord,
    ensure_utc,
)

logger = setup_logger("INFO")


def build_exportable_query(since: Optional[datetime] = None) -> Select:
    """
    Query for export-eligible products.

    Args:
        since: Only products created or updated at or after this moment

    Returns:
        SELECT with category and images eager-loaded, newest first
    """
    conditions = [
        Product.is_active.is_(True),
        or_(
            Product.batch_processing_status == BATCH_STATUS_COMPLETED,
            Product.source.in_(EXPORTABLE_SOURCES),
        ),
    ]

    if since is not None:
        # Columns are naive UTC
        cutoff = ensure_utc(since).replace(tzinfo=None)
        conditions.append(or_(Product.created_at >= cutoff, Product.updated_at >= cutoff))

    return (
        select(Product)
        .where(and_(*conditions))
        .options(selectinload(Product.category), selectinload(Product.images))
        .order_by(Product.created_at.desc())
    )


def to_catalog_record(product: Product) -> CatalogRecord:
    """Snapshot an ORM product (with category and images loaded)."""
    category = product.category
    category_path = None
    if category is not None:
        category_path = category.path or category.name

    images = sorted(
        (image for image in (product.images or []) if image.is_active),
        key=lambda image: (not image.is_primary, image.sort or 0),
    )
    image_urls = tuple(image.url for image in images if image.url and image.url.strip())

    price = product.price_pair
    if price is not None and not isinstance(price, Decimal):
        price = Decimal(str(price))

    return CatalogRecord(
        id=str(product.id),
        name=product.name or "",
        article=product.article,
        category_path=category_path,
        price=price,
        currency=product.currency,
        material=product.material,
        gender=product.gender,
        season=product.season,
        description=product.description,
        sizes=product.sizes,
        image_urls=image_urls,
        is_active=bool(product.is_active),
        created_at=ensure_utc(product.created_at),
        updated_at=ensure_utc(product.updated_at),
        slug=product.slug,
        source=product.source,
        batch_processing_status=product.batch_processing_status,
    )


class ProductRepository:
    """Catalog source backed by PostgreSQL."""

    async def list_exportable(self, since: Optional[datetime] = None) -> List[CatalogRecord]:
        """
        Fetch eligible products as CatalogRecords.

        Args:
            since: Incremental cutoff (None for the full catalog)

        Returns:
            Records ordered newest first
        """
        async with get_session() as session:
            result = await session.execute(build_exportable_query(since))
            products = list(result.scalars().all())

        records = [to_catalog_record(product) for product in products]
        logger.info(f"Fetched {len(records)} exportable products" + (f" since {since}" if since else ""))
        return records
