"""
Configuration management for the filegate storage facade.

Settings come from the environment (FILEGATE_ prefix) or a .env file.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from filegate.errors import InvalidConfig
from filegate.models import BackendConfig, parse_backend_configs


class Settings(BaseSettings):
    """Facade settings."""

    model_config = SettingsConfigDict(
        env_prefix="FILEGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Backends
    DEFAULT_BACKEND: str = "aws"  # aws, s3, minio, alicloud, aliyun, oss
    BACKENDS: Optional[str] = None  # inline JSON array of declarations
    BACKENDS_FILE: Optional[str] = None  # JSON or YAML file with declarations

    # Operations
    DEFAULT_STORAGE_CLASS: str = "Standard"
    DEFAULT_PAGE_SIZE: int = 1000
    MAX_PAGE_SIZE: int = 1000
    READ_CHUNK_SIZE: int = 8192

    # Logging
    LOG_LEVEL: str = "info"
    LOG_JSON: bool = False

    @field_validator("DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE", "READ_CHUNK_SIZE")
    @classmethod
    def positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("DEFAULT_BACKEND", "LOG_LEVEL")
    @classmethod
    def lower(cls, v: str) -> str:
        return v.strip().lower()


def _read_declarations_file(path: Path) -> Any:
    if not path.exists():
        raise InvalidConfig(f"backend declarations file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise InvalidConfig(f"cannot parse backend declarations file {path}: {e}") from e

    # Allow a top-level "backends:" key in YAML files
    if isinstance(data, dict) and "backends" in data:
        data = data["backends"]
    return data if data is not None else []


def load_backend_configs(settings: Optional["Settings"] = None) -> List[BackendConfig]:
    """
    Load backend declarations from configuration.

    The inline BACKENDS value wins over BACKENDS_FILE.

    Raises:
        InvalidConfig: If nothing is declared or the declarations are malformed
    """
    settings = settings or get_settings()

    if settings.BACKENDS:
        return parse_backend_configs(settings.BACKENDS)
    if settings.BACKENDS_FILE:
        return parse_backend_configs(_read_declarations_file(Path(settings.BACKENDS_FILE)))
    raise InvalidConfig("no backends declared (set FILEGATE_BACKENDS or FILEGATE_BACKENDS_FILE)")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
