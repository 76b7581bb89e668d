"""
User repository implementation using Supabase.
"""

from typing import Optional, Dict, Any

from repositories.base import SupabaseRepository
from entities.user import User, UserCreate
from common.exceptions import (
    BaseRegistrationException,
    ConflictException,
    DatabaseException,
)
from common.logging import get_logger

logger = get_logger("user_repository")

_UNIQUE_VIOLATION_MARKERS = ("duplicate key value", "23505")


class UserRepository(SupabaseRepository[User]):
    """
    Repository for User entity operations with Supabase.
    """

    def __init__(self, connection, table_name: str = "users"):
        super().__init__(connection, table_name)

    async def create(self, user_create: UserCreate) -> User:
        """Insert the full record, embedded documents included."""
        try:
            user_data = user_create.to_row()
            user_data = self._add_audit_fields(user_data)

            result = self.supabase.table(self.table_name).insert(user_data).execute()

            if not result.data:
                raise DatabaseException(
                    detail="Failed to create user",
                    operation="insert"
                )

            created_user = User.from_dict(result.data[0])

            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user

        except BaseRegistrationException:
            raise
        except Exception as e:
            logger.error(f"Failed to create user {user_create.email}: {e}", exc_info=True)
            if any(marker in str(e).lower() for marker in _UNIQUE_VIOLATION_MARKERS):
                raise ConflictException()
            raise DatabaseException(
                detail="Failed to create user",
                operation="insert",
                context={"email": user_create.email, "error": str(e)}
            )

    async def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by email address."""
        try:
            result = self.supabase.table(self.table_name)\
                .select("*")\
                .eq("email", email)\
                .limit(1)\
                .execute()

            if not result.data:
                return None

            return User.from_dict(result.data[0])

        except BaseRegistrationException:
            raise
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}", exc_info=True)
            raise DatabaseException(
                detail="Failed to retrieve user",
                operation="select",
                context={"email": email, "error": str(e)}
            )

    async def ping(self) -> Dict[str, Any]:
        """Lightweight round trip used by the health check."""
        try:
            total = await self.count()
            return {"table": self.table_name, "users": total}
        except DatabaseException as e:
            raise DatabaseException(
                detail=e.detail,
                operation="count",
                status_code=503,
                context=e.context
            )
        except Exception as e:
            logger.error(f"Database health check failed: {e}", exc_info=True)
            raise DatabaseException(
                detail="Database health check failed",
                operation="count",
                status_code=503,
                context={"table": self.table_name, "error": str(e)}
            )
