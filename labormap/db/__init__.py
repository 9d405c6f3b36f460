"""Database layer for LaborMap with async SQLAlchemy."""

from labormap.db.connection import init_db
from labormap.db.models import Base, CatalogEntryModel, ItemLinkModel

__all__ = [
    "Base",
    "CatalogEntryModel",
    "ItemLinkModel",
    "init_db",
]
