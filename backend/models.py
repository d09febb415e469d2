"""
SQLAlchemy ORM models -- directory schema.

Tables
------
markets              -- physical markets businesses trade in
business_categories  -- categories for businesses (title)
categories           -- categories for products (name)
users                -- business / product owners
businesses           -- directory listings
products             -- products listed by owners
product_embeddings   -- description embeddings for visual search (JSON vectors)
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)

from .database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

class Market(Base):
    __tablename__ = "markets"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False, index=True)
    location = Column(String(512), default="")
    description = Column(Text, default="")
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime, default=func.now())


class BusinessCategory(Base):
    __tablename__ = "business_categories"

    id = Column(String(64), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False, index=True)
    icon_type = Column(String(64), default="")
    created_at = Column(DateTime, default=func.now())


class ProductCategory(Base):
    __tablename__ = "categories"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=_new_id)
    full_name = Column(String(255), default="")
    email = Column(String(255), default="", index=True)
    phone = Column(String(64), default="")
    role = Column(String(32), default="user")
    created_at = Column(DateTime, default=func.now())


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

class Business(Base):
    __tablename__ = "businesses"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, default="")
    category_id = Column(String(64), ForeignKey("business_categories.id"), nullable=True, index=True)
    market_id = Column(String(64), ForeignKey("markets.id"), nullable=True, index=True)
    owner_id = Column(String(64), ForeignKey("users.id"), nullable=True, index=True)
    status = Column(String(32), default="active", index=True)
    address = Column(String(512), default="")
    contact_phone = Column(String(64), default="")
    contact_email = Column(String(255), default="")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    logo_url = Column(String(1024), nullable=True)
    rating = Column(Float, nullable=True)
    price_range = Column(String(16), nullable=True)
    created_at = Column(DateTime, default=func.now(), index=True)

    __table_args__ = (
        Index("ix_businesses_status_market", "status", "market_id"),
    )


class Product(Base):
    __tablename__ = "products"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, default="")
    price = Column(Float, nullable=True)
    category_id = Column(String(64), ForeignKey("categories.id"), nullable=True, index=True)
    market_id = Column(String(64), ForeignKey("markets.id"), nullable=True, index=True)
    owner_id = Column(String(64), ForeignKey("users.id"), nullable=True, index=True)
    business_id = Column(String(64), ForeignKey("businesses.id"), nullable=True)
    status = Column(String(32), default="active", index=True)
    image_urls = Column(Text, nullable=True)
    views_count = Column(Integer, default=0)
    is_featured = Column(Boolean, default=False)
    quantity = Column(Integer, nullable=True)
    condition = Column(String(32), nullable=True)
    created_at = Column(DateTime, default=func.now(), index=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_products_owner_status", "owner_id", "status"),
    )


# ---------------------------------------------------------------------------
# Embeddings (visual search)
# ---------------------------------------------------------------------------

class ProductEmbedding(Base):
    __tablename__ = "product_embeddings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String(64), ForeignKey("products.id"), unique=True, nullable=False, index=True)
    embedding = Column(Text, default="[]")  # JSON list of floats
    model_version = Column(String(128), default="")
    created_at = Column(DateTime, default=func.now())


DIRECTORY_TABLES = (
    "markets",
    "business_categories",
    "categories",
    "users",
    "businesses",
    "products",
    "product_embeddings",
)
