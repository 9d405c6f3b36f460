"""SQLAlchemy async database models for LaborMap.

Factory catalog entries and the link records confirmed for internal codes.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class CatalogEntryModel(Base):
    """Factory labor/repair code in the master catalog."""

    __tablename__ = "catalog_entries"

    pk: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    factory_code: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default="Labor")
    internal_code: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    vehicle_series: Mapped[str | None] = mapped_column(Text, index=True)
    vehicle_model: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(Text)
    standard_hours: Mapped[float | None] = mapped_column(Float)
    is_battery_repair: Mapped[bool | None] = mapped_column(Boolean)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Pending")
    confidence: Mapped[float | None] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )


class ItemLinkModel(Base):
    """Confirmed binding of an internal code to a factory code.

    One row per link call; the latest row for an internal code wins.
    """

    __tablename__ = "item_links"
    __table_args__ = (Index("idx_item_links_internal", "internal_code", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    internal_code: Mapped[str] = mapped_column(Text, nullable=False)
    order_number: Mapped[str | None] = mapped_column(Text)
    factory_code: Mapped[str] = mapped_column(Text, nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    batch: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
