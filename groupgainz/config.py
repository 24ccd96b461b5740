"""Configuracion de la aplicacion usando Pydantic Settings."""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuracion principal de GroupGainz - Settlement."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # PostgreSQL (credenciales de servicio, no de un usuario)
    # DATABASE_URL tiene prioridad sobre POSTGRES_*
    database_dsn: str = Field(
        default="",
        validation_alias=AliasChoices("database_url", "database_dsn"),
    )
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "groupgainz"
    postgres_user: str = "groupgainz_service"
    postgres_password: str = ""

    # Timezone del servidor (marco fijo para las ventanas semanales)
    tz: str = "America/Mexico_City"

    # Settlement semanal
    point_threshold: int = 20
    notification_deduplication: bool = False
    request_timeout_seconds: float = 30.0

    # Scheduler
    scheduler_enabled: bool = True
    settlement_day_of_week: str = "sat"
    settlement_hour: int = 23
    settlement_minute: int = 30

    @property
    def database_url(self) -> str:
        """URL de conexion a la base de datos."""
        if self.database_dsn:
            return self.database_dsn
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuracion cacheada."""
    return Settings()
