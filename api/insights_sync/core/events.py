"""
Manejadores de inicio y cierre de la aplicacion.

Los clientes de MongoDB y Meilisearch se crean aqui de forma explicita y se
guardan en `app.state`; los endpoints los obtienen via dependencias.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from loguru import logger

from insights_sync.core.config import Settings, get_settings, validate_settings
from insights_sync.core.logging_config import configure_logging
from insights_sync.infrastructure.external.meili_sync.run_lock import SyncRunLock
from insights_sync.infrastructure.external.meili_sync.sync_service import build_from_settings


async def startup(app: FastAPI, settings: Settings) -> None:
    """Inicializa recursos al inicio de la aplicacion."""
    try:
        configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)
        logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
        logger.info(f"Entorno: {settings.ENVIRONMENT}")

        # ConfigurationError es fatal: la app no arranca
        validate_settings(settings)

        service, reader, writer, mongo_client = build_from_settings(
            settings, run_lock=SyncRunLock()
        )
        app.state.settings = settings
        app.state.sync_service = service
        app.state.record_reader = reader
        app.state.index_writer = writer
        app.state.mongo_client = mongo_client

        logger.success("Aplicacion iniciada correctamente")
    except Exception as e:
        logger.error(f"Error durante startup: {e}")
        raise


async def shutdown(app: FastAPI) -> None:
    """Libera recursos al cerrar la aplicacion."""
    logger.info("Cerrando aplicacion...")

    mongo_client = getattr(app.state, "mongo_client", None)
    if mongo_client is not None:
        mongo_client.close()
        logger.info("Conexiones de MongoDB cerradas")

    logger.success("Aplicacion cerrada correctamente")


def build_lifespan(settings: Optional[Settings] = None):
    """
    Lifespan de FastAPI que envuelve startup/shutdown.

    Args:
        settings: Settings a usar; por defecto se leen del entorno.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await startup(app, settings or get_settings())
        try:
            yield
        finally:
            await shutdown(app)

    return lifespan
