"""Application configuration."""

from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Clinica Scheduling API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Database
    database_url: str = Field(..., alias="DATABASE_URL")

    # JWT
    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60 * 8, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # WhatsApp gateway (Evolution API)
    evolution_api_url: str = Field(default="http://localhost:8080", alias="EVOLUTION_API_URL")
    evolution_api_key: str = Field(default="", alias="EVOLUTION_API_KEY")
    evolution_instance_name: str = Field(default="default", alias="EVOLUTION_INSTANCE_NAME")
    whatsapp_country_code: str = Field(default="55", alias="WHATSAPP_COUNTRY_CODE")
    whatsapp_timeout_seconds: float = Field(default=15.0, alias="WHATSAPP_TIMEOUT_SECONDS")

    # Scheduling
    clinic_timezone: str = Field(default="America/Sao_Paulo", alias="CLINIC_TIMEZONE")
    slot_duration_minutes: int = Field(default=30, alias="SLOT_DURATION_MINUTES")
    reminder_window_hours: int = Field(default=24, alias="REMINDER_WINDOW_HOURS")

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if isinstance(self.cors_origins_str, str):
            return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]
        return [self.cors_origins_str]

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


@dataclass(frozen=True)
class WhatsAppConfig:
    """Connection settings for the WhatsApp gateway, built once and injected."""

    base_url: str
    api_key: str
    instance_name: str
    default_country_code: str = "55"
    timeout_seconds: float = 15.0

    @classmethod
    def from_settings(cls, source: Settings) -> "WhatsAppConfig":
        """Build the gateway configuration from application settings."""
        return cls(
            base_url=source.evolution_api_url.rstrip("/"),
            api_key=source.evolution_api_key,
            instance_name=source.evolution_instance_name,
            default_country_code=source.whatsapp_country_code,
            timeout_seconds=source.whatsapp_timeout_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]


@lru_cache
def get_whatsapp_config() -> WhatsAppConfig:
    """Get the cached gateway configuration."""
    return WhatsAppConfig.from_settings(get_settings())


# Global settings instance
settings = get_settings()
