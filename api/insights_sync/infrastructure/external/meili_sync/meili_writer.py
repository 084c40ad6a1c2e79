"""
Escritor de Meilisearch (SDK oficial `meilisearch`).

- add_documents = add-or-replace por primary key: re-enviar un id pisa el
  documento anterior, por eso N corridas sobre ventanas solapadas dejan el
  mismo estado final en el índice.
- La indexación es asíncrona del lado de Meilisearch: solo se devuelve el
  TaskHandle del acuse de recibo. No se espera, no se hace polling y no se
  reintenta.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

import meilisearch
from loguru import logger
from meilisearch.errors import MeilisearchError

from insights_sync.shared.exceptions.sync import IndexSubmissionError

from .types import HealthStatus, SearchResult, SyncRecord, TaskHandle

if TYPE_CHECKING:
    from insights_sync.core.config import Settings


def create_meili_client(settings: "Settings") -> meilisearch.Client:
    """Crea el cliente de Meilisearch (host + API key del settings)."""
    return meilisearch.Client(
        settings.MEILI_HOST,
        api_key=settings.MEILI_API_KEY or None,
        timeout=settings.MEILI_TIMEOUT_S,
    )


class MeiliIndexWriter:
    """
    Envía batches de SyncRecord a un índice de Meilisearch.

    Importante:
    - Un batch vacío es un no-op: no se llama al motor y se retorna None.
    - Cualquier error del SDK (API, comunicación, timeout) se traduce a
      IndexSubmissionError.
    """

    def __init__(self, client: meilisearch.Client) -> None:
        self._client = client

    def upsert(
        self,
        index_name: str,
        batch: Sequence[SyncRecord],
        primary_key_field: str,
    ) -> Optional[TaskHandle]:
        if not batch:
            logger.debug(f"Batch vacío para '{index_name}': no se envía nada a Meilisearch")
            return None

        documents = [record.to_document(primary_key_field) for record in batch]
        try:
            task_info = self._client.index(index_name).add_documents(
                documents, primary_key=primary_key_field
            )
        except MeilisearchError as e:
            raise IndexSubmissionError(
                f"Meilisearch rechazó el batch para '{index_name}': {e}",
                index=index_name,
                batch_size=len(documents),
            ) from e

        handle = TaskHandle.from_task_info(task_info)
        logger.info(
            f"Indexing task encolada: uid={handle.task_uid}, index={index_name}, "
            f"docs={len(documents)}, status={handle.status}"
        )
        return handle

    def index_document(
        self,
        index_name: str,
        record: SyncRecord,
        primary_key_field: str = "id",
    ) -> TaskHandle:
        """
        Indexa un único documento (add-or-replace por primary key).

        Es el camino para indexar un registro puntual sin pasar por la
        selección por ventana; la metadata de sync tampoco se envía.

        Raises:
            IndexSubmissionError: Meilisearch rechazó el documento o no respondió.
        """
        document = record.to_document(primary_key_field)
        try:
            task_info = self._client.index(index_name).add_documents(
                [document], primary_key=primary_key_field
            )
        except MeilisearchError as e:
            raise IndexSubmissionError(
                f"No se pudo indexar el documento {record.record_id} en '{index_name}': {e}",
                index=index_name,
                batch_size=1,
            ) from e

        handle = TaskHandle.from_task_info(task_info)
        logger.info(f"Documento {record.record_id} encolado en '{index_name}': uid={handle.task_uid}")
        return handle

    def search(self, index_name: str, query: str, limit: int = 20) -> SearchResult:
        """Búsqueda simple sobre el índice (no la usa el pipeline)."""
        try:
            resp = self._client.index(index_name).search(query, {"limit": limit})
        except MeilisearchError as e:
            raise IndexSubmissionError(
                f"Búsqueda fallida en '{index_name}': {e}",
                index=index_name,
            ) from e

        return SearchResult(
            query=resp.get("query", query),
            hits=list(resp.get("hits") or []),
            estimated_total_hits=resp.get("estimatedTotalHits"),
            processing_time_ms=resp.get("processingTimeMs"),
        )

    def health_check(self) -> HealthStatus:
        try:
            healthy = self._client.is_healthy()
        except MeilisearchError as e:
            logger.warning(f"Meilisearch no responde: {e}")
            return HealthStatus.UNREACHABLE
        return HealthStatus.OK if healthy else HealthStatus.UNREACHABLE
