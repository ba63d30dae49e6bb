"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_BUCKET_NAME = "nine-picture-grid-images"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    bucket_name: str = DEFAULT_BUCKET_NAME
    bucket_file_size_limit: int = 5 * 1024 * 1024
    jpeg_quality: int = 92
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def public_bucket_url(supabase_url: str, bucket_name: str) -> str:
    """Return the public base URL for objects in a bucket."""
    return f"{supabase_url.rstrip('/')}/storage/v1/object/public/{bucket_name}"
