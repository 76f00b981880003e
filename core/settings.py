from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from core.exceptions import ConfigurationError

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


_TRUTHY = {"true", "1", "yes"}


class StorageSettings(BaseModel):
    backend: Literal["filesystem", "s3"] = "filesystem"
    root: Path = Path("data/pdfs")
    bucket: str | None = None
    region: str | None = None
    prefix: str = ""
    endpoint_url: str | None = None
    list_limit: int = Field(1000, ge=1)

    @field_validator("prefix", mode="before")
    @classmethod
    def _strip_prefix(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip("/")


class UploadSettings(BaseModel):
    max_bytes: int = Field(50 * 1024 * 1024, gt=0)
    default_original_name: str = "purchase-agreement.pdf"
    default_buyer_name: str = "Unknown"
    fallback_filename: str = "document.pdf"


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(3000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> list[str]:
        if value is None:
            return ["*"]
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = Field(False, alias="json")
    file: Path | None = None

    class Config:
        populate_by_name = True


class Settings(BaseModel):
    storage: StorageSettings = Field(default_factory=StorageSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from a YAML file and apply environment overrides.

        Args:
            path: Optional path to configuration file. If not provided, uses
                the PDFSTORE_CONFIG environment variable or defaults to
                config/default.yaml. A missing default file is not an error;
                built-in defaults are used instead.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            ConfigurationError: If an explicit file is missing or the
                resulting configuration is invalid.
        """
        explicit = path or os.getenv("PDFSTORE_CONFIG")
        config_path = Path(explicit) if explicit else Path("config/default.yaml")
        payload: dict[str, Any] = {}
        if config_path.exists():
            with config_path.open("r", encoding="utf-8") as fp:
                payload = yaml.safe_load(fp) or {}
        elif explicit:
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                {"path": str(config_path)},
            )

        _apply_env_overrides(payload, os.environ)
        try:
            settings = cls(**payload)
        except Exception as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc

        if settings.storage.backend == "s3" and not settings.storage.bucket:
            raise ConfigurationError(
                "S3 storage backend selected but no bucket configured",
                {"setting": "storage.bucket"},
            )
        return settings


_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "STORAGE_BACKEND": ("storage", "backend"),
    "STORAGE_ROOT": ("storage", "root"),
    "S3_BUCKET_NAME": ("storage", "bucket"),
    "AWS_REGION": ("storage", "region"),
    "S3_ENDPOINT_URL": ("storage", "endpoint_url"),
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    "CORS_ORIGINS": ("server", "cors_origins"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FILE": ("logging", "file"),
}


def _apply_env_overrides(payload: dict[str, Any], environ: Any) -> None:
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            payload.setdefault(section, {})[key] = value
    json_logging = environ.get("JSON_LOGGING")
    if json_logging:
        payload.setdefault("logging", {})["json"] = json_logging.lower() in _TRUTHY


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "StorageSettings",
    "UploadSettings",
    "ServerSettings",
    "LoggingSettings",
    "get_settings",
]
