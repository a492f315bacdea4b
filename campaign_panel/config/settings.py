# campaign_panel/config/settings.py
import os
from urllib.parse import quote_plus

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Main database (PostgreSQL). db_url overrides the individual parts.
    db_url: str | None = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "campaign_panel"
    db_user: str = "postgres"
    db_password: str = ""

    environment: str = "development"
    debug: bool = False

    app_prefix: str = os.getenv("APP_PREFIX", "")

    jwt_access_secret: str = os.getenv("JWT_ACCESS_SECRET", "dev-access-secret-change-me-0123456789abcdef")
    jwt_refresh_secret: str = os.getenv("JWT_REFRESH_SECRET", "dev-refresh-secret-change-me-0123456789abcdef")
    jwt_reset_secret: str = os.getenv("JWT_RESET_SECRET", "dev-reset-secret-change-me-0123456789abcdef")

    jwt_issuer: str = os.getenv("JWT_ISSUER", "campaign-panel-api")
    jwt_audience: str = os.getenv("JWT_AUDIENCE", "campaign-panel-client")
    jwt_access_minutes: int = 15
    jwt_refresh_minutes: int = 60 * 24 * 7
    jwt_reset_minutes: int = 60

    # argon2id: 64 MiB, 3 passes
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 2 ** 16
    argon2_parallelism: int = 1

    refresh_cookie_name: str = "refresh_token"
    refresh_cookie_path: str = "/api/auth"
    refresh_cookie_secure: bool | None = None

    frontend_url: str = "http://localhost:5173"
    cors_origins_raw: str = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")

    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_from: str | None = None
    smtp_from_name: str = "Campaign Panel"

    token_sweep_interval_seconds: int = 60 * 60

    log_level: str = "INFO"
    log_json: bool = True

    seed_admin_email: str = "admin@example.com"
    seed_admin_password: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("db_host", "db_name", "db_user", "db_password", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip().strip('"').strip("'")
        return v

    @field_validator("jwt_access_secret", "jwt_refresh_secret", "jwt_reset_secret")
    @classmethod
    def secret_min_length(cls, v: str) -> str:
        if len(v) < 32:
            raise ValueError("JWT secrets must be at least 32 characters long.")
        return v

    @model_validator(mode="after")
    def distinct_secrets(self) -> "Settings":
        secrets = {self.jwt_access_secret, self.jwt_refresh_secret, self.jwt_reset_secret}
        if len(secrets) != 3:
            raise ValueError("Access, refresh and reset tokens must use different secrets.")
        return self

    @property
    def database_url(self) -> str:
        if self.db_url:
            return self.db_url

        user = quote_plus(self.db_user)
        password = quote_plus(self.db_password)
        host = self.db_host
        port = self.db_port
        db = self.db_name

        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"

    @property
    def cookie_secure(self) -> bool:
        if self.refresh_cookie_secure is not None:
            return self.refresh_cookie_secure
        return self.environment.lower() not in ("development", "test")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_raw.split(",") if o.strip()]

    @property
    def refresh_cookie_max_age(self) -> int:
        return self.jwt_refresh_minutes * 60


settings = Settings()
