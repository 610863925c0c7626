"""Settings for the identity service.

Values resolve from, highest priority first: constructor arguments, ``HSM_*``
environment variables (nested with ``__``, e.g. ``HSM_AUTH__GITHUB__CLIENT_ID``),
a ``.env`` file, then the YAML file named by ``HSM_CONFIG_FILE``.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

CONFIG_FILE_ENV = "HSM_CONFIG_FILE"

# Third-party loggers held at WARNING regardless of the configured level
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "aiosqlite", "apscheduler", "alembic")


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings read from the YAML file at ``$HSM_CONFIG_FILE``, if it exists."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self._data = self._read(os.environ.get(CONFIG_FILE_ENV))

    @staticmethod
    def _read(config_file: str | None) -> dict[str, Any]:
        if not config_file:
            return {}
        path = Path(config_file).expanduser()
        if not path.is_file():
            return {}
        return yaml.safe_load(path.read_text()) or {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return dict(self._data)


class Frontend(BaseModel):
    url: str = "http://localhost:3000"  # Callback redirects land under {url}/auth/


class Server(BaseModel):
    name: str = "Home Services Marketplace"
    version: str = "0.1.0"
    description: str = "Identity federation for the home-services marketplace"


class DatabaseConfig(BaseModel):
    url: str = "sqlite+aiosqlite:///~/.local/share/hsm/hsm.db"
    echo: bool = False
    auto_migrate: bool = True  # Run Alembic migrations on startup


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file: str | None = None  # Log to this file instead of stderr


class OAuthClientConfig(BaseModel):
    """Client credentials for one external identity provider.

    A provider counts as enabled when ``client_id`` is set. ``scopes`` overrides
    the provider's default scope list when given.
    """

    client_id: str = ""
    client_secret: str = ""
    scopes: list[str] | None = None


class JwtConfig(BaseModel):
    """JWT configuration.

    Access and refresh tokens are signed with distinct secrets.
    """

    secret: str = ""  # Must be set in production
    refresh_secret: str = ""  # Must be set in production, distinct from secret
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7


class StateConfig(BaseModel):
    """OAuth correlation state configuration."""

    backend: Literal["memory", "database"] = "memory"
    ttl_seconds: int = 600  # 10 minutes
    sweep_interval_seconds: int = 300  # 5 minutes


class AuthConfig(BaseModel):
    """Authentication configuration."""

    jwt: JwtConfig = JwtConfig()
    state: StateConfig = StateConfig()
    http_timeout_seconds: float = 10.0  # Read timeout for provider endpoints
    callback_base_url: str = "http://localhost:8000/api/v1/auth"  # {base}/{provider}/callback
    default_role: Literal["customer", "provider"] = "customer"  # Role for OAuth sign-ups
    github_user_agent: str = "hsm-oauth"

    google: OAuthClientConfig = OAuthClientConfig()
    facebook: OAuthClientConfig = OAuthClientConfig()
    linkedin: OAuthClientConfig = OAuthClientConfig()
    apple: OAuthClientConfig = OAuthClientConfig()
    twitter: OAuthClientConfig = OAuthClientConfig()
    github: OAuthClientConfig = OAuthClientConfig()
    microsoft: OAuthClientConfig = OAuthClientConfig()

    def client(self, provider: str) -> OAuthClientConfig:
        """Get the client credentials for a provider by its lower-case name."""
        return getattr(self, provider.lower())



class Config(BaseSettings):
    server: Server = Server()
    frontend: Frontend = Frontend()
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    auth: AuthConfig = AuthConfig()

    model_config = {
        "env_prefix": "HSM_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
        "extra": "ignore",
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
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Install a single root handler (stderr, or ``config.file``) at the configured level.

    Call once at startup; repeated calls replace the previous handler.
    """
    root = logging.getLogger()
    root.setLevel(config.level)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler: logging.Handler
    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(logging.Formatter(config.format, datefmt=config.date_format))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
