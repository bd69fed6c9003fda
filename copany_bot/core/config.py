from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when a setting required to serve a request is missing."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The webhook secret and the Supabase credentials have no working
    defaults: an empty value means "not configured" and every webhook
    delivery is answered with a server error until it is set.

    SUPABASE_SERVICE_ROLE_KEY bypasses row level security, so it must
    only ever live server-side.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # GitHub App: shared HMAC secret for X-Hub-Signature-256.
    github_webhook_secret: str = ""

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Table names in the Supabase project.
    installation_table: str = "copany_bot_installation"
    copany_table: str = "copany"

    # Sentry: leave blank to disable error capture.
    sentry_dsn: str = ""

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    debug: bool = False

    @field_validator("supabase_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


def get_settings() -> Settings:
    return Settings()
