"""
Process-wide Supabase connection.

The client is created lazily on the first `connect()` and shared afterwards.
Concurrent first use is serialized so only one client is ever created.
"""

import threading
from typing import Optional

from supabase import Client, create_client

from config.config import settings
from common.exceptions import DatabaseException
from common.logging import get_logger

logger = get_logger("supabase_client")


def create_supabase_client(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    """Create a new Supabase client from explicit or configured credentials."""
    return create_client(url or settings.supabase_url, key or settings.supabase_key)


class SupabaseConnection:
    """Lazily initialized, idempotent handle to the shared Supabase client."""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, client_factory=None):
        self.url = url or settings.supabase_url
        self.key = key or settings.supabase_key
        self._client_factory = client_factory or create_supabase_client
        self._client: Optional[Client] = None
        self._lock = threading.Lock()

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def connect(self) -> None:
        """Connect once; later calls are no-ops. Failures are logged, not raised."""
        if self._client is not None:
            return
        with self._lock:
            if self._client is not None:
                return
            try:
                self._client = self._client_factory(self.url, self.key)
                logger.info("Supabase connected", extra={"supabase_url": self.url})
            except Exception as e:
                logger.error(f"Supabase connection error: {e}", exc_info=True)

    @property
    def client(self) -> Client:
        """The shared client; raises DatabaseException when not connected."""
        if self._client is None:
            raise DatabaseException(
                detail="Database is not connected",
                operation="connect"
            )
        return self._client

    def close(self) -> None:
        with self._lock:
            self._client = None
        logger.info("Supabase connection released")
