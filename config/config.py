from functools import lru_cache
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MB = 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = Field("PDF Storage Agent API")
    app_version: str = Field("1.0.0")

    # Authentication (shared secrets)
    api_key: Optional[str] = Field(None, description="Standard API secret (API_KEY)")
    admin_key: Optional[str] = Field(None, description="Admin API secret (ADMIN_KEY)")
    delete_requires_admin: bool = Field(True, description="DELETE /pdf/{id} needs the admin key")

    # Upload quotas
    rate_limit_uploads_per_hour: int = Field(10, ge=0)
    rate_limit_uploads_per_day: int = Field(50, ge=0)

    # Upload limits
    max_presigned_upload_bytes: int = Field(200 * MB, gt=0)
    max_direct_upload_bytes: int = Field(95 * MB, gt=0)
    presigned_url_expiry_seconds: int = Field(3600, gt=0)

    # Storage
    storage_backend: str = Field("remote", description="'remote' (S3 + Redis) or 'memory'")
    s3_bucket: Optional[str] = None
    s3_region: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    s3_key_prefix: str = "pdfs"
    redis_url: Optional[str] = None

    # Per-IP HTTP throttling (slowapi)
    http_rate_limit_enabled: bool = True
    http_rate_limit_default: str = "200/minute"
    http_rate_limit_storage_uri: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "structured"

    def is_memory_backend(self) -> bool:
        return self.storage_backend.lower() == "memory"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


tags_metadata = [
    {
        "name": "Authentication",
        "description": "API key validation.",
    },
    {
        "name": "Uploads",
        "description": "Two-phase presigned uploads and single-shot legacy uploads.",
    },
    {
        "name": "Library",
        "description": "List, download, inspect and delete stored PDFs.",
    },
    {
        "name": "Health",
        "description": "Health-check and diagnostics endpoints.",
    },
]
