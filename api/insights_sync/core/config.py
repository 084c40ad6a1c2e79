"""
Configuracion central de la aplicacion.
Gestiona variables de entorno (y `.env`) para el job de sincronizacion
MongoDB -> Meilisearch y para la API HTTP que lo expone.
"""
import math
from datetime import timedelta
from typing import Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from insights_sync.infrastructure.external.meili_sync.selection import MAX_WINDOW_DAYS
from insights_sync.infrastructure.external.meili_sync.sync_config import SyncTargetConfig
from insights_sync.shared.exceptions.sync import ConfigurationError


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    Unico valor sin default: MONGODB_URI (se valida en `validate_settings`).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # Ignorar campos extra del .env
    )

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Chatbot Insights Sync")
    APP_VERSION: str = Field(default="0.1.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # MongoDB (store)
    MONGODB_URI: str = Field(default="")
    MONGODB_DATABASE: str = Field(default="LibreChat")
    MONGODB_COLLECTION: str = Field(default="messages")
    MONGODB_MIN_POOL_SIZE: int = Field(default=5)
    MONGODB_MAX_POOL_SIZE: int = Field(default=100)
    MONGODB_CONNECT_TIMEOUT_S: float = Field(default=10.0)
    MONGODB_SERVER_SELECTION_TIMEOUT_S: float = Field(default=5.0)
    MONGODB_MAX_IDLE_TIME_S: float = Field(default=30.0)
    # snappy/zstd requieren paquetes extra (python-snappy, zstandard)
    MONGODB_COMPRESSORS: str = Field(default="zlib")
    MONGODB_READ_PREFERENCE: str = Field(default="nearest")

    # Meilisearch (search engine)
    MEILI_HOST: str = Field(default="http://localhost:7700")
    MEILI_API_KEY: str = Field(default="")
    MEILI_INDEX: str = Field(default="movies")
    MEILI_PRIMARY_KEY: str = Field(default="id")
    MEILI_TIMEOUT_S: Optional[int] = Field(default=None)

    # Seleccion
    SYNC_WINDOW_DAYS: float = Field(default=7.0)
    SYNC_FLAG_FIELD: str = Field(default="_meiliIndex")
    SYNC_TIMESTAMP_FIELD: str = Field(default="indexedDate")
    SYNC_LOCK_TIMEOUT_S: float = Field(default=0.0)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="")

    @computed_field
    @property
    def sync_window(self) -> timedelta:
        """Ventana de seleccion como timedelta."""
        return timedelta(days=self.SYNC_WINDOW_DAYS)

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    def sync_target(self) -> SyncTargetConfig:
        """Config del pipeline para el indice configurado."""
        return SyncTargetConfig(
            index_name=self.MEILI_INDEX,
            primary_key_field=self.MEILI_PRIMARY_KEY,
            window=self.sync_window,
            flag_field=self.SYNC_FLAG_FIELD,
            timestamp_field=self.SYNC_TIMESTAMP_FIELD,
        )


def validate_settings(settings: Settings) -> None:
    """
    Valida la configuracion critica antes de cualquier corrida.

    Raises:
        ConfigurationError: parametro obligatorio ausente o invalido.
    """
    if not settings.MONGODB_URI:
        raise ConfigurationError(
            "Falta variable de entorno obligatoria: MONGODB_URI",
            setting="MONGODB_URI",
        )
    if not settings.MONGODB_DATABASE or not settings.MONGODB_COLLECTION:
        raise ConfigurationError(
            "MONGODB_DATABASE y MONGODB_COLLECTION no pueden estar vacios",
            setting="MONGODB_COLLECTION",
        )
    if not settings.MEILI_HOST:
        raise ConfigurationError("Falta MEILI_HOST", setting="MEILI_HOST")
    if not settings.MEILI_INDEX:
        raise ConfigurationError("MEILI_INDEX no puede estar vacio", setting="MEILI_INDEX")
    if not settings.MEILI_PRIMARY_KEY:
        raise ConfigurationError(
            "MEILI_PRIMARY_KEY no puede estar vacio", setting="MEILI_PRIMARY_KEY"
        )
    if not math.isfinite(settings.SYNC_WINDOW_DAYS):
        raise ConfigurationError(
            f"SYNC_WINDOW_DAYS debe ser un numero finito: {settings.SYNC_WINDOW_DAYS}",
            setting="SYNC_WINDOW_DAYS",
        )
    if settings.SYNC_WINDOW_DAYS < 0:
        raise ConfigurationError(
            f"SYNC_WINDOW_DAYS no puede ser negativo: {settings.SYNC_WINDOW_DAYS}",
            setting="SYNC_WINDOW_DAYS",
        )
    if settings.SYNC_WINDOW_DAYS > MAX_WINDOW_DAYS:
        raise ConfigurationError(
            f"SYNC_WINDOW_DAYS excede el maximo de {MAX_WINDOW_DAYS}: {settings.SYNC_WINDOW_DAYS}",
            setting="SYNC_WINDOW_DAYS",
        )


def get_settings() -> Settings:
    """Construye el settings desde el entorno actual."""
    return Settings()
