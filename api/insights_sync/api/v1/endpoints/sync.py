"""
Endpoints para sincronizacion MongoDB -> Meilisearch.
Permite disparar una corrida desde la UI o desde un scheduler HTTP.
"""
import asyncio
import dataclasses
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from insights_sync.api.v1.dependencies.service_deps import get_settings_dep, get_sync_service
from insights_sync.application.dto.sync_dto import SyncResultDTO
from insights_sync.core.config import Settings
from insights_sync.infrastructure.external.meili_sync.selection import MAX_WINDOW_DAYS
from insights_sync.infrastructure.external.meili_sync.sync_service import MongoToMeiliSync


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post(
    "/run",
    response_model=SyncResultDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar MongoDB con Meilisearch"
)
async def run_sync(
    window_days: Optional[float] = Query(
        default=None,
        ge=0,
        le=MAX_WINDOW_DAYS,
        description="Ventana de seleccion en dias. Si no se indica, usa SYNC_WINDOW_DAYS."
    ),
    service: MongoToMeiliSync = Depends(get_sync_service),
    settings: Settings = Depends(get_settings_dep),
) -> SyncResultDTO:
    """
    Ejecuta una corrida de sincronizacion.

    La corrida:
    - Selecciona documentos con flag de indexacion y marcados en la ventana
    - Los envia a Meilisearch (add-or-replace por primary key)
    - Usa un lock por indice para evitar corridas solapadas (409 si esta ocupado)

    Los errores de la taxonomia se devuelven estructurados por el handler global.
    """
    config = settings.sync_target()
    if window_days is not None:
        config = dataclasses.replace(config, window=timedelta(days=window_days))

    logger.info(f"Iniciando sincronizacion MongoDB -> Meilisearch '{config.index_name}' desde API")

    # La corrida es sincrona (pymongo + SDK); se ejecuta en un thread para no bloquear el event loop
    report = await asyncio.to_thread(service.run_once, config)

    return SyncResultDTO.from_report(report)
