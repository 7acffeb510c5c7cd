from ..config import Settings
from ..models import create_session_factory
from .base import CatalogRepository
from .database import DatabaseStorage
from .memory import MemStorage

__all__ = [
    "CatalogRepository",
    "DatabaseStorage",
    "MemStorage",
    "build_storage",
]


def build_storage(settings: Settings) -> CatalogRepository:
    """Repository selected by ``settings.storage_backend``."""
    if settings.storage_backend == "memory":
        return MemStorage()
    return DatabaseStorage(create_session_factory(settings.database_url))
