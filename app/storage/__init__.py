"""
app/storage package marker.
"""

from app.storage.base import KPIStore
from app.storage.sqlalchemy_store import SQLAlchemyKPIStore

__all__ = [
    "KPIStore",
    "SQLAlchemyKPIStore",
]
