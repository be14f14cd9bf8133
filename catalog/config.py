"""
Runtime configuration.

Values come from the environment, with a local .env as fallback.
get_settings() builds a fresh Settings on every call so tests can
monkeypatch variables without reloading modules.

Environment:
    MEMBERSTACK_SECRET_KEY   Admin API key (server only)
    MEMBERSTACK_APP_ID       app identifier sent as X-APP-ID
    MEMBERSTACK_PUBLIC_KEY   public key for the member-auth API (UI only)
    MEMBERSTACK_ADMIN_URL    Admin API base URL
    MEMBERSTACK_CLIENT_URL   member-auth API base URL
    CATALOG_API_URL          local REST API the UI talks to
    CATALOG_LOG_DIR          directory for the rotating log file
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from catalog.errors import ConfigurationError

ROOT_DIR = Path(__file__).parent.parent

DEFAULT_ADMIN_URL  = "https://admin.memberstack.com"
DEFAULT_CLIENT_URL = "https://client.memberstack.com"
DEFAULT_API_URL    = "http://localhost:8000"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    secret_key: str | None = Field(default=None, validation_alias="MEMBERSTACK_SECRET_KEY")
    app_id: str | None     = Field(default=None, validation_alias="MEMBERSTACK_APP_ID")
    public_key: str | None = Field(default=None, validation_alias="MEMBERSTACK_PUBLIC_KEY")
    admin_url: str         = Field(default=DEFAULT_ADMIN_URL, validation_alias="MEMBERSTACK_ADMIN_URL")
    client_url: str        = Field(default=DEFAULT_CLIENT_URL, validation_alias="MEMBERSTACK_CLIENT_URL")
    api_url: str           = Field(default=DEFAULT_API_URL, validation_alias="CATALOG_API_URL")
    log_dir: Path          = Field(default=ROOT_DIR / "logs", validation_alias="CATALOG_LOG_DIR")

    @field_validator("secret_key", "app_id", "public_key", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("admin_url", "client_url", "api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def require_server_credentials(self, need_app_id: bool = True) -> None:
        """Fail fast before any external call when server credentials are missing."""
        if not self.secret_key:
            raise ConfigurationError("MEMBERSTACK_SECRET_KEY not configured")
        if need_app_id and not self.app_id:
            raise ConfigurationError("MEMBERSTACK_APP_ID not configured")


def get_settings() -> Settings:
    return Settings()
