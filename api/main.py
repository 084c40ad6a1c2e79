"""
Punto de entrada principal de la aplicación FastAPI.
Configura la aplicación, middlewares, rutas y ciclo de vida.
"""
import asyncio
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from insights_sync.api.middlewares.error_handler import ErrorHandlerMiddleware
from insights_sync.api.v1.dependencies.service_deps import (
    get_index_writer,
    get_record_reader,
    get_settings_dep,
)
from insights_sync.api.v1.router import api_router
from insights_sync.core.config import Settings, get_settings
from insights_sync.core.events import build_lifespan
from insights_sync.infrastructure.external.meili_sync.meili_writer import MeiliIndexWriter
from insights_sync.infrastructure.external.meili_sync.mongo_reader import MongoRecordReader
from insights_sync.infrastructure.external.meili_sync.types import HealthStatus
from insights_sync.shared.exceptions.base import AppException


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """
    Factory para crear y configurar la aplicación FastAPI.

    Args:
        settings: Settings a usar; por defecto se leen del entorno al arrancar.

    Returns:
        FastAPI: Instancia configurada de la aplicación
    """
    app_settings = settings or get_settings()

    application = FastAPI(
        title=app_settings.APP_NAME,
        version=app_settings.APP_VERSION,
        description="Sincronizacion selectiva MongoDB -> Meilisearch",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=build_lifespan(app_settings),
    )

    # Middleware personalizado para manejo de errores
    application.add_middleware(ErrorHandlerMiddleware)

    # Incluir routers de la API
    application.include_router(api_router, prefix="/api")

    # Manejador global de la taxonomia de errores (fallo estructurado)
    @application.exception_handler(AppException)
    async def app_exception_handler(request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @application.get("/health", tags=["Health"])
    async def health_check(
        reader: MongoRecordReader = Depends(get_record_reader),
        writer: MeiliIndexWriter = Depends(get_index_writer),
        settings: Settings = Depends(get_settings_dep),
    ):
        """Estado de la aplicación y de sus colaboradores (MongoDB, Meilisearch)."""
        store = await asyncio.to_thread(reader.health_check)
        search = await asyncio.to_thread(writer.health_check)
        healthy = store == HealthStatus.OK and search == HealthStatus.OK
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "healthy" if healthy else "degraded",
                "app_name": settings.APP_NAME,
                "version": settings.APP_VERSION,
                "environment": settings.ENVIRONMENT,
                "store": store.value,
                "search": search.value,
            },
        )

    return application


if __name__ == "__main__":
    import uvicorn
    from loguru import logger

    settings = get_settings()
    access_host = "localhost" if settings.HOST == "0.0.0.0" else settings.HOST
    base_url = f"http://{access_host}:{settings.PORT}"

    logger.info("=" * 70)
    logger.info(f"  Swagger UI:  {base_url}/docs")
    logger.info(f"  Health:      {base_url}/health")
    logger.info(f"  Sync:        POST {base_url}/api/v1/sync/run")
    logger.info("=" * 70)

    uvicorn.run(
        create_application(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
