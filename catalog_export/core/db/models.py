"""
Database Models — catalog tables read by the export pipeline

Tables:
- categories: Category tree nodes (only name and materialized path are used)
- products: Catalog products with export-relevant columns
- product_images: Ordered product images

Only the columns the exporter reads are mapped; the shop application owns
the full schema.
"""

from sqlalchemy import Column, String, Integer, Numeric, DateTime, Text, Boolean, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from catalog_export.core.db.postgres import Base


class Category(Base):
    """Category tree node."""
    __tablename__ = "categories"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    path = Column(Text, nullable=True)  # e.g. "Women/Shoes/Boots"

    products = relationship("Product", back_populates="category")


class Product(Base):
    """
    Catalog product.

    Provenance:
    - source: "MANUAL" / "AG" for hand-curated products, others are parsed
    - batch_processing_status: "completed" once a parsed product passed review
    """
    __tablename__ = "products"

    id = Column(String(64), primary_key=True)
    name = Column(String(500), nullable=False)
    slug = Column(String(500), nullable=True, index=True)
    article = Column(String(255), nullable=True)
    category_id = Column(String(64), ForeignKey("categories.id"), nullable=True)

    price_pair = Column(Numeric(12, 2), nullable=True)
    currency = Column(String(8), nullable=True)

    material = Column(String(255), nullable=True)
    gender = Column(String(32), nullable=True)
    season = Column(String(32), nullable=True)
    description = Column(Text, nullable=True)
    sizes = Column(JSON, nullable=True)  # list of {size, count}, list of labels or {label: bool}

    is_active = Column(Boolean, nullable=False, default=True)
    source = Column(String(32), nullable=True)
    batch_processing_status = Column(String(32), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow, index=True)

    category = relationship("Category", back_populates="products")
    images = relationship("ProductImage", back_populates="product", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_products_active_source", "is_active", "source"),
    )


class ProductImage(Base):
    """Product image; the primary image comes first, then by sort order."""
    __tablename__ = "product_images"

    id = Column(String(64), primary_key=True)
    product_id = Column(String(64), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    sort = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="images")
