"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import ConfigError
from .domain.timezones import is_valid_timezone


class SupabaseConfig(BaseModel):
    """Connection settings for the Supabase REST (PostgREST) API."""
    url: str
    key: str
    settings_schema: str = "crm_settings"
    timeout_seconds: float = 30

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """Ensure the project URL is an http(s) URL without trailing slash."""
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"supabase.url must start with http:// or https://, got {value!r}")
        return value.rstrip("/")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value

    def rest_url(self) -> str:
        """Get the PostgREST base URL."""
        return f"{self.url}/rest/v1"


class TablesConfig(BaseModel):
    """Table names used by the data-access adapter."""
    users: str = "Users"
    availability: str = "User_Appointments_Availability"
    events: str = "Events"
    settings: str = "Settings"


class AppConfig(BaseModel):
    """Application configuration."""
    supabase: Optional[SupabaseConfig] = None
    tables: TablesConfig = Field(default_factory=TablesConfig)
    timezone_setting_key: str = "default_timezone"
    fallback_timezone: str = "UTC"
    mock_data_file: Optional[Path] = None

    @field_validator("fallback_timezone")
    @classmethod
    def validate_fallback_timezone(cls, value: str) -> str:
        """Ensure the fallback is a real IANA timezone."""
        if not is_valid_timezone(value):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @model_validator(mode="after")
    def validate_mock_data_file(self) -> "AppConfig":
        """Fail early when a configured fixture file is missing."""
        if self.mock_data_file is not None and not self.mock_data_file.exists():
            raise ValueError(f"mock_data_file not found: {self.mock_data_file}")
        return self

    def require_supabase(self) -> SupabaseConfig:
        """
        Return the Supabase settings.

        Raises:
            ConfigError: If the config has no supabase section
        """
        if self.supabase is None:
            raise ConfigError(
                "No supabase section in config. Add one or run with --mock."
            )
        return self.supabase

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
