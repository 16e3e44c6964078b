"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    environment: str = _ENVIRONMENT
    catalog_cache_ttl_seconds: int = 300
    smae_subgroups_enabled: bool = True
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def classified_systems(settings: Settings) -> frozenset[str]:
    """Systems whose foods get subgroups inferred from their macros."""
    if not settings.smae_subgroups_enabled:
        return frozenset()
    return frozenset({"mx_smae"})
