import logging
import os
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by FEDAUTH_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Get the value for a field from the YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML file."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load config from YAML file if specified."""
        config_file = os.environ.get("FEDAUTH_CONFIG_FILE")
        if config_file:
            path = Path(config_file).expanduser()
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from FEDAUTH_LOG_FILE env var."""
        return os.environ.get("FEDAUTH_LOG_FILE")


class HttpConfig(BaseModel):
    """Timeouts for the shared provider HTTP client, in seconds."""

    connect: float = 5.0
    read: float = 10.0
    write: float = 5.0
    pool: float = 5.0

    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect,
            read=self.read,
            write=self.write,
            pool=self.pool,
        )


# =============================================================================
# Authentication Configuration
# =============================================================================


class ProviderSettings(BaseModel):
    """Host-side settings for one identity provider.

    Unset (None) fields keep the provider's built-in defaults.
    """

    type: str | None = None  # Bundled provider to use; defaults to the settings key
    enabled: bool = True
    client_id: str = ""
    client_secret: str = ""
    redirect_url: str = ""  # e.g. https://myapp.org/auth/nextcloud/callback
    display_name: str | None = None
    auth_url: str | None = None
    token_url: str | None = None
    user_info_url: str | None = None
    scopes: list[str] | None = None
    pkce: bool | None = None

    def overrides(self) -> dict[str, Any]:
        """ProviderConfig fields this entry sets."""
        return self.model_dump(exclude={"type", "enabled"}, exclude_none=True)

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.redirect_url)


class AuthConfig(BaseModel):
    """Authentication configuration."""

    providers: dict[str, ProviderSettings] = {}


class Config(BaseSettings):
    # These are BaseModel, so env_nested_delimiter handles their env vars
    logging: LoggingConfig = LoggingConfig()
    http: HttpConfig = HttpConfig()
    auth: AuthConfig = AuthConfig()

    model_config = {
        "env_prefix": "FEDAUTH_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows FEDAUTH_AUTH__PROVIDERS__NEXTCLOUD__CLIENT_ID
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - FEDAUTH_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called early in application startup.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
