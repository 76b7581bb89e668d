from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    # Supabase
    supabase_url: str = Field("http://localhost:54321", validation_alias="SUPABASE_URL")
    supabase_key: str = Field("", validation_alias="SUPABASE_KEY")
    supabase_table_users: str = Field("users", validation_alias="SUPABASE_TABLE_USERS")

    # Storage
    storage_backend: str = Field("local", validation_alias="STORAGE_BACKEND")
    supabase_storage_bucket: str = Field("user_uploads", validation_alias="SUPABASE_STORAGE_BUCKET")
    remote_upload_folder: str = Field("user_uploads", validation_alias="REMOTE_UPLOAD_FOLDER")
    public_root: str = Field("public", validation_alias="PUBLIC_ROOT")
    upload_folder: str = Field("uploads", validation_alias="UPLOAD_FOLDER")
    delete_local_after_upload: bool = Field(True, validation_alias="DELETE_LOCAL_AFTER_UPLOAD")
    serve_public_files: bool = Field(True, validation_alias="SERVE_PUBLIC_FILES")
    max_upload_size_mb: int = Field(10, validation_alias="MAX_UPLOAD_SIZE_MB")

    # HTTP
    cors_origins: List[str] = Field(default=["http://localhost:3000"], validation_alias="CORS_ORIGINS")
    rate_limit_enabled: bool = Field(True, validation_alias="RATE_LIMIT_ENABLED")
    rate_limit_storage_uri: Optional[str] = Field(None, validation_alias="RATE_LIMIT_STORAGE_URI")
    register_rate_limit: str = Field("20/minute", validation_alias="REGISTER_RATE_LIMIT")

    # Logging
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field("structured", validation_alias="LOG_FORMAT")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def is_remote_storage(self) -> bool:
        return self.storage_backend.lower() == "supabase"

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


settings = Settings()


@lru_cache()
def get_settings() -> Settings:
    """Get singleton settings, overridable in tests."""
    return settings


tags_metadata = [
    {
        "name": "Registration",
        "description": "User registration with document uploads.",
    },
    {
        "name": "Health",
        "description": "Health-check and diagnostics endpoints.",
    },
]
