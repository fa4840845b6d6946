from typing import List, Optional

import pytz
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Core
    environment: str = Field(default="dev", alias="ENVIRONMENT")
    app_name: str = Field(default="Shift Journal API", alias="APP_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    tz_default: str = Field(default="Europe/Moscow", alias="TZ_DEFAULT")

    # Server
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # Store: "memory" keeps everything in process; "rest" talks to a
    # PostgREST-compatible endpoint (e.g. a hosted Postgres REST API).
    store_backend: str = Field(default="memory", alias="STORE_BACKEND")
    store_url: Optional[str] = Field(default=None, alias="STORE_URL")
    store_api_key: Optional[str] = Field(default=None, alias="STORE_API_KEY")
    store_timeout: float = Field(default=30.0, alias="STORE_TIMEOUT")

    # Sessions
    jwt_secret: str = Field(default="change-me", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_ttl_seconds: int = Field(default=60 * 60 * 12, alias="JWT_TTL")  # 12 hours
    admin_emails: str = Field(default="", alias="ADMIN_EMAILS")

    # MCP server mount
    mcp_enabled: bool = Field(default=True, alias="MCP_ENABLED")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    @property
    def admin_email_list(self) -> List[str]:
        return [e.strip().lower() for e in self.admin_emails.split(",") if e.strip()]

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def timezone(self) -> pytz.BaseTzInfo:
        return pytz.timezone(self.tz_default)


settings = Settings()
