"""
DTOs para el endpoint de sincronizacion y el de busqueda.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from insights_sync.infrastructure.external.meili_sync.sync_service import SyncReport
from insights_sync.infrastructure.external.meili_sync.types import SearchResult, TaskHandle


class TaskHandleDTO(BaseModel):
    """Acuse de recibo de Meilisearch para la tarea de indexacion."""

    task_uid: int
    index_uid: Optional[str] = None
    status: str
    type: str
    enqueued_at: Optional[datetime] = None

    @classmethod
    def from_handle(cls, handle: TaskHandle) -> "TaskHandleDTO":
        return cls(
            task_uid=handle.task_uid,
            index_uid=handle.index_uid,
            status=handle.status,
            type=handle.type,
            enqueued_at=handle.enqueued_at,
        )


class SyncResultDTO(BaseModel):
    """Resultado de la sincronizacion."""

    success: bool = True
    index_name: str
    records_indexed: int = Field(..., description="Documentos enviados a Meilisearch")
    task: Optional[TaskHandleDTO] = Field(None, description="None si no habia documentos elegibles")
    state: str
    threshold: datetime
    message: str

    @classmethod
    def from_report(cls, report: SyncReport) -> "SyncResultDTO":
        message = (
            f"Sincronizacion completada: {report.records_indexed} documento(s) enviado(s)"
            if report.records_indexed > 0
            else "Sin documentos elegibles en la ventana"
        )
        return cls(
            index_name=report.index_name,
            records_indexed=report.records_indexed,
            task=TaskHandleDTO.from_handle(report.task_handle) if report.task_handle else None,
            state=report.state.value,
            threshold=report.threshold,
            message=message,
        )


class SearchResponseDTO(BaseModel):
    """Respuesta de busqueda sobre el indice."""

    query: str
    hits: List[Dict[str, Any]] = Field(default_factory=list)
    estimated_total_hits: Optional[int] = None
    processing_time_ms: Optional[int] = None

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResponseDTO":
        return cls(
            query=result.query,
            hits=result.hits,
            estimated_total_hits=result.estimated_total_hits,
            processing_time_ms=result.processing_time_ms,
        )


class DocumentIndexRequestDTO(BaseModel):
    """Documento a indexar de forma puntual (fuera de la corrida por ventana)."""

    id: str = Field(..., min_length=1, description="Identidad del documento; se usa como primary key")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Atributos indexables")
