"""
Base repository interface and abstract classes for the Repository pattern.
"""

from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Dict, Any
from datetime import datetime, timezone

from db.supabase_client import SupabaseConnection

# Generic type for entity models
T = TypeVar('T')


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository interface defining the operations in use.
    """

    @abstractmethod
    async def create(self, entity: Any) -> T:
        """Create a new entity."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Count stored entities."""
        pass


class SupabaseRepository(BaseRepository[T], ABC):
    """
    Base Supabase repository implementation with common functionality.
    """

    def __init__(self, connection: SupabaseConnection, table_name: str):
        self.connection = connection
        self.table_name = table_name

    @property
    def supabase(self):
        """Shared client; raises DatabaseException if the connection failed."""
        return self.connection.client

    def _add_audit_fields(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Stamp a new row with matching created/updated times."""
        now = datetime.now(timezone.utc).isoformat()
        data["created_at"] = now
        data["updated_at"] = now
        return data

    async def count(self) -> int:
        """Count all rows in the table."""
        result = self.supabase.table(self.table_name).select("id", count="exact").execute()
        return result.count or 0
