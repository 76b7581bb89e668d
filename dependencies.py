"""
Dependency injection setup for repositories and services.
"""

from functools import lru_cache
from typing import Annotated
from fastapi import Depends

from adapters.storage_adapter import BaseStorageAdapter, create_storage_adapter
from config.config import get_settings
from db.supabase_client import SupabaseConnection
from repositories.user_repository import UserRepository
from security.upload_validation import FileUploadValidator, create_upload_validator
from services.registration_service import RegistrationService, create_registration_service


@lru_cache()
def get_supabase_connection() -> SupabaseConnection:
    """Get the process-wide Supabase connection handle."""
    settings = get_settings()
    return SupabaseConnection(settings.supabase_url, settings.supabase_key)


@lru_cache()
def get_user_repository() -> UserRepository:
    """Get singleton User repository."""
    return UserRepository(get_supabase_connection(), get_settings().supabase_table_users)


@lru_cache()
def get_storage_adapter() -> BaseStorageAdapter:
    """Get singleton storage adapter for the configured backend."""
    return create_storage_adapter(get_settings(), get_supabase_connection())


@lru_cache()
def get_upload_validator() -> FileUploadValidator:
    return create_upload_validator(get_settings().max_upload_size_bytes)


@lru_cache()
def get_registration_service() -> RegistrationService:
    """Get singleton RegistrationService with dependencies."""
    settings = get_settings()
    upload_folder = settings.remote_upload_folder if settings.is_remote_storage() else settings.upload_folder
    return create_registration_service(
        get_user_repository(),
        get_storage_adapter(),
        get_upload_validator(),
        upload_folder,
    )


SupabaseConnectionDep = Annotated[SupabaseConnection, Depends(get_supabase_connection)]
UserRepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]
RegistrationServiceDep = Annotated[RegistrationService, Depends(get_registration_service)]
