"""
Endpoint de busqueda sobre el indice sincronizado.
"""
import asyncio

from fastapi import APIRouter, Depends, Query

from insights_sync.api.v1.dependencies.service_deps import get_index_writer, get_settings_dep
from insights_sync.application.dto.sync_dto import SearchResponseDTO
from insights_sync.core.config import Settings
from insights_sync.infrastructure.external.meili_sync.meili_writer import MeiliIndexWriter


router = APIRouter(prefix="/search", tags=["Search"])


@router.get("", response_model=SearchResponseDTO, summary="Buscar en el indice")
async def search(
    q: str = Query(default="", description="Texto a buscar"),
    limit: int = Query(default=20, ge=1, le=1000),
    writer: MeiliIndexWriter = Depends(get_index_writer),
    settings: Settings = Depends(get_settings_dep),
) -> SearchResponseDTO:
    result = await asyncio.to_thread(writer.search, settings.MEILI_INDEX, q, limit)
    return SearchResponseDTO.from_result(result)
