"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class BlobStoreConfig(BaseSettings):
    base_dir: str = "data/blobs"
    bucket: str = "asset-audit"
    public_base_url: str = "http://localhost:8000"


class UploadConfig(BaseSettings):
    max_attempts: int = 3
    backoff_base: float = 2.0
    jpeg_quality: int = 90


class AllocatorConfig(BaseSettings):
    collision_retries: int = 3


class ResourcesConfig(BaseSettings):
    capture_dir: str = "data/captures"
    http_timeout: float = 30.0


class ReconciliationConfig(BaseSettings):
    min_age_seconds: int = 300


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/asset_audit.db"
    blob_store: BlobStoreConfig = Field(default_factory=BlobStoreConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    allocator: AllocatorConfig = Field(default_factory=AllocatorConfig)
    resources: ResourcesConfig = Field(default_factory=ResourcesConfig)
    reconciliation: ReconciliationConfig = Field(default_factory=ReconciliationConfig)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "ASSET_AUDIT_",
        "env_nested_delimiter": "__",
    }

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings,
    ):
        # Environment beats .env beats the YAML values passed in by get_settings
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def get_settings() -> Settings:
    """Build Settings from config.yaml, overridden by ASSET_AUDIT_* env vars.

    Nested keys use a double underscore, e.g. ASSET_AUDIT_UPLOAD__MAX_ATTEMPTS=5.
    """
    y = _yaml
    sections = {
        name: y.get(name) or {}
        for name in ("blob_store", "upload", "allocator", "resources", "reconciliation")
    }
    db_url = (y.get("database") or {}).get("url")
    if db_url:
        sections["database_url"] = db_url
    return Settings(**sections)
