from __future__ import annotations

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    app_version: str = "2026-10-19.v1"
    database_url: str = "sqlite:///./transaction_portal.db"
    auto_create_schema: bool = True

    # ---- Logging ----
    log_level: str = "INFO"
    sql_log_level: str = "WARNING"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Identity context ----
    auth_mode: str = "dev"  # dev|jwt
    auto_provision_users: bool = True

    # Dev header names
    dev_header_user_id: str = "X-User-Id"
    dev_header_user_role: str = "X-User-Role"
    dev_header_user_email: str = "X-User-Email"

    # Tokens come from the external auth provider; we only verify them.
    jwt_secret: str = "dev-change-me"
    jwt_algorithm: str = "HS256"

    # ---- Listing ----
    default_page_limit: int = 10
    admin_page_limit: int = 20
    max_page_limit: int = 100
    recent_limit: int = 10

    # ---- Commission ----
    default_commission_percentage: Decimal = Decimal("2")

    # ---- Portal API client ----
    portal_api_base_url: str = "http://localhost:8000/api"
    portal_api_timeout_seconds: float = 20.0

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if is_prod:
            if (self.auth_mode or "").strip().lower() == "dev":
                raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")

            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")


settings = Settings()
