"""
Endpoint de indexacion puntual de documentos en Meilisearch.
"""
import asyncio

from fastapi import APIRouter, Depends, status

from insights_sync.api.v1.dependencies.service_deps import get_index_writer, get_settings_dep
from insights_sync.application.dto.sync_dto import DocumentIndexRequestDTO, TaskHandleDTO
from insights_sync.core.config import Settings
from insights_sync.infrastructure.external.meili_sync.meili_writer import MeiliIndexWriter
from insights_sync.infrastructure.external.meili_sync.types import SyncRecord, utc_now


router = APIRouter(prefix="/documents", tags=["Documents"])


@router.post(
    "",
    response_model=TaskHandleDTO,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Indexar un documento"
)
async def index_document(
    payload: DocumentIndexRequestDTO,
    writer: MeiliIndexWriter = Depends(get_index_writer),
    settings: Settings = Depends(get_settings_dep),
) -> TaskHandleDTO:
    """
    Envia un unico documento al indice configurado (add-or-replace).

    La respuesta es el acuse de la tarea encolada; no se espera a que
    Meilisearch termine de indexar.
    """
    record = SyncRecord(
        record_id=payload.id,
        attributes=payload.attributes,
        should_index=True,
        last_marked_at=utc_now(),
    )
    handle = await asyncio.to_thread(
        writer.index_document, settings.MEILI_INDEX, record, settings.MEILI_PRIMARY_KEY
    )
    return TaskHandleDTO.from_handle(handle)
