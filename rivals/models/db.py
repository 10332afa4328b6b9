"""
SQLAlchemy ORM models for persistent storage.

The inventory tables back the server-side mirror of the inventory API.
The key/value table backs SqlKeyValueStore for local app state.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class InventoryRecordDB(Base):
    """
    One inventory row held by the server, keyed by sku.

    The full normalized record lives in ``data`` so that extra columns
    from imports survive; ``quantity`` and ``name`` are mirrored as columns.
    """

    __tablename__ = "inventory_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sku: Mapped[str] = mapped_column(String(512), unique=True, index=True)
    item_id: Mapped[str] = mapped_column(String(512), index=True)
    name: Mapped[str] = mapped_column(String(255))
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<InventoryRecordDB(sku={self.sku}, qty={self.quantity})>"


class ProcessedOrderDB(Base):
    """Orders already applied to inventory. A second completion is a no-op."""

    __tablename__ = "processed_orders"

    order_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    changes: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<ProcessedOrderDB(order_id={self.order_id})>"


class KeyValueDB(Base):
    """Opaque string document stored under a fixed key."""

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<KeyValueDB(key={self.key})>"
