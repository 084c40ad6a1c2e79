"""
Tipos y utilidades puras para el pipeline MongoDB -> Meilisearch.

Se mantienen libres de I/O para poder testearlos fácilmente.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normaliza datetime a UTC (aware).

    pymongo devuelve datetimes naive (en UTC) salvo que el cliente se cree
    con tz_aware=True; normalizamos para comparar de forma consistente.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class SyncRecord:
    """
    Entidad sincronizable (p.ej. una película).

    - record_id: identidad estable (se usa como PK en Mongo y en Meilisearch)
    - attributes: campos indexables, opacos para el pipeline
    - should_index / last_marked_at: metadata de sync, solo lectura
    """

    record_id: str
    attributes: dict[str, Any]
    should_index: bool
    last_marked_at: datetime

    def to_document(self, primary_key_field: str = "id") -> dict[str, Any]:
        """
        Documento que se envía a Meilisearch.

        La metadata de sync (flag + timestamp) nunca se indexa.
        """
        doc = dict(self.attributes)
        doc[primary_key_field] = self.record_id
        return doc


Transform = Callable[[Any], Any]


@dataclass(frozen=True)
class FieldMapping:
    """
    Define el mapeo de un campo de MongoDB a un atributo del índice.

    - source_field: nombre del campo en el documento Mongo
    - target_field: nombre del atributo en Meilisearch
    - transform: función opcional para transformar el valor antes de indexar
    - required: si True, el valor debe existir (si falta se levanta error)
    """

    source_field: str
    target_field: str
    transform: Optional[Transform] = None
    required: bool = False


class HealthStatus(str, Enum):
    OK = "ok"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class TaskHandle:
    """
    Referencia opaca a la tarea asíncrona de indexación en Meilisearch.

    Solo para observabilidad: el pipeline no la espera ni la consulta.
    """

    task_uid: int
    index_uid: Optional[str]
    status: str
    type: str
    enqueued_at: Optional[datetime] = None

    @classmethod
    def from_task_info(cls, info: Any) -> "TaskHandle":
        """Construye el handle desde el TaskInfo que devuelve el SDK de Meilisearch."""
        enqueued_at = getattr(info, "enqueued_at", None)
        return cls(
            task_uid=int(info.task_uid),
            index_uid=getattr(info, "index_uid", None),
            status=str(getattr(info, "status", "enqueued")),
            type=str(getattr(info, "type", "documentAdditionOrUpdate")),
            enqueued_at=ensure_utc(enqueued_at) if isinstance(enqueued_at, datetime) else None,
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "task_uid": self.task_uid,
            "index_uid": self.index_uid,
            "status": self.status,
            "type": self.type,
            "enqueued_at": self.enqueued_at.isoformat() if self.enqueued_at else None,
        }


@dataclass(frozen=True)
class SearchResult:
    """Resultado de búsqueda (lo usan features del producto, no el pipeline)."""

    query: str
    hits: list[dict[str, Any]] = field(default_factory=list)
    estimated_total_hits: Optional[int] = None
    processing_time_ms: Optional[int] = None
