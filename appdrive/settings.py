"""
Global application settings and configuration management.

This module provides centralized configuration management using Pydantic Settings
with support for environment variables, YAML configuration files, and validation.
"""

from pathlib import Path
from typing import Optional, Dict, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml
from dotenv import load_dotenv


# Resumable uploads must be sent in multiples of 256 KiB
UPLOAD_CHUNK_GRANULARITY = 256 * 1024


class DriveSettings(BaseSettings):
    """Google Drive application-folder configuration."""

    client_id: str = Field(default="", description="OAuth2 client ID")
    client_secret: str = Field(default="", description="OAuth2 client secret")
    refresh_token: str = Field(default="", description="Long-lived OAuth2 refresh token")
    token_uri: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="OAuth2 token endpoint"
    )
    application_name: str = Field(default="AppDrive", description="Reported user agent")
    http_timeout: int = Field(
        default=3600,
        gt=0,
        description="HTTP timeout in seconds for a single request"
    )
    upload_chunk_size: int = Field(
        default=4 * UPLOAD_CHUNK_GRANULARITY,
        description="Resumable upload chunk size in bytes"
    )
    download_chunk_size: int = Field(
        default=4 * UPLOAD_CHUNK_GRANULARITY,
        gt=0,
        description="Download chunk size in bytes"
    )
    serialize_writes: bool = Field(
        default=False,
        description="Serialize uploads and deletes per path within one service instance"
    )

    model_config = SettingsConfigDict(env_prefix="APPDRIVE_")

    @field_validator("upload_chunk_size")
    def validate_upload_chunk_size(cls, v: int) -> int:
        """Validate upload chunk size granularity."""
        if v <= 0 or v % UPLOAD_CHUNK_GRANULARITY != 0:
            raise ValueError(
                f"Upload chunk size must be a positive multiple of {UPLOAD_CHUNK_GRANULARITY}"
            )
        return v

    @property
    def has_credentials(self) -> bool:
        """Check whether a full credential bundle is configured."""
        return bool(self.client_id and self.client_secret and self.refresh_token)

    def credential_bundle(self):
        """
        Build a credential bundle from the configured values.

        Returns:
            CredentialBundle for the configured account

        Raises:
            ConfigurationError: If any credential value is missing
        """
        from .core.exceptions import ConfigurationError
        from .drive_integration.schemas import CredentialBundle

        for key in ("client_id", "client_secret", "refresh_token"):
            if not getattr(self, key):
                raise ConfigurationError(
                    f"Missing Google Drive credential: APPDRIVE_{key.upper()}",
                    config_key=key
                )

        return CredentialBundle(
            client_id=self.client_id,
            client_secret=self.client_secret,
            refresh_token=self.refresh_token
        )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    file: Optional[Path] = Field(
        default=None,
        description="Log file path"
    )

    model_config = SettingsConfigDict(env_prefix="LOG_")

    @field_validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v

    @field_validator("file")
    def validate_log_file(cls, v: Optional[Path]) -> Optional[Path]:
        """Resolve the log file path."""
        if v is None:
            return None
        if isinstance(v, str):
            v = Path(v)
        return v.resolve()


class AppSettings(BaseSettings):
    """Main application settings."""

    name: str = Field(default="AppDrive", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")

    # Sub-configurations
    drive: DriveSettings = Field(default_factory=DriveSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "AppSettings":
        """Load settings from YAML file."""
        if not yaml_path.exists():
            raise FileNotFoundError(f"Settings file not found: {yaml_path}")

        with open(yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Convert nested dict to settings objects
        settings_data = {}
        for key, value in data.items():
            if key == "drive" and isinstance(value, dict):
                settings_data["drive"] = DriveSettings(**value)
            elif key == "logging" and isinstance(value, dict):
                settings_data["logging"] = LoggingSettings(**value)
            else:
                settings_data[key] = value

        return cls(**settings_data)


def _non_default_values(model: BaseSettings) -> Dict[str, Any]:
    """Collect field values that differ from their declared defaults."""
    values: Dict[str, Any] = {}
    for key, field in type(model).model_fields.items():
        value = getattr(model, key)
        if isinstance(value, BaseSettings):
            nested = _non_default_values(value)
            if nested:
                values[key] = nested
        elif value != field.get_default(call_default_factory=True):
            values[key] = value
    return values


def load_settings(
    yaml_path: Optional[Path] = None,
    env_file: Optional[Path] = None
) -> AppSettings:
    """
    Load application settings from multiple sources.

    Priority order:
    1. Environment variables
    2. YAML configuration file
    3. Default values

    Args:
        yaml_path: Path to YAML configuration file
        env_file: Path to environment file (.env)

    Returns:
        Configured AppSettings instance
    """
    if env_file and env_file.exists():
        load_dotenv(env_file)
    else:
        load_dotenv()

    settings = AppSettings()

    if yaml_path and yaml_path.exists():
        yaml_settings = AppSettings.from_yaml(yaml_path)
        # Merge settings (environment variables take precedence)
        merged = yaml_settings.model_dump()
        for key, value in _non_default_values(settings).items():
            if isinstance(value, dict):
                merged[key].update(value)
            else:
                merged[key] = value
        settings = AppSettings(**merged)

    return settings


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get global settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        yaml_path = Path("configs/settings.yaml")
        env_path = Path(".env")
        _settings = load_settings(
            yaml_path=yaml_path if yaml_path.exists() else None,
            env_file=env_path if env_path.exists() else None
        )
    return _settings


def reload_settings(
    yaml_path: Optional[Path] = None,
    env_file: Optional[Path] = None
) -> AppSettings:
    """Reload settings from files (useful for testing or runtime config changes)."""
    global _settings
    _settings = load_settings(yaml_path=yaml_path, env_file=env_file)
    return _settings
