"""
Servicio de sincronización MongoDB -> Meilisearch.

Diseño (resumen):
- Construye el predicado (flag == true AND timestamp >= now - ventana)
- Lee de Mongo todos los documentos elegibles (todo-o-nada)
- Aplica una transformación opcional por registro
- Envía el batch completo a Meilisearch (add-or-replace por PK)
- Reporta cantidad de registros y TaskHandle

Estrategia de idempotencia:
- Meilisearch reemplaza por primary key: re-correr sobre ventanas solapadas
  no duplica documentos.
- No hay reintentos internos: el scheduler externo re-invoca la corrida.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, Sequence

from loguru import logger

from insights_sync.shared.exceptions.sync import (
    IndexSubmissionError,
    RecordDecodeError,
    StoreUnavailable,
)

from .index_mappings import get_field_mappings
from .meili_writer import MeiliIndexWriter, create_meili_client
from .mongo_reader import MongoRecordReader, create_mongo_client
from .run_lock import SyncRunLock
from .selection import SelectionPredicate, build_filter
from .sync_config import SyncTargetConfig
from .types import HealthStatus, SyncRecord, TaskHandle, utc_now

if TYPE_CHECKING:
    from pymongo import MongoClient

    from insights_sync.core.config import Settings


class RecordReader(Protocol):
    def fetch(self, predicate: SelectionPredicate) -> list[SyncRecord]: ...

    def health_check(self) -> HealthStatus: ...


class IndexWriter(Protocol):
    def upsert(
        self, index_name: str, batch: Sequence[SyncRecord], primary_key_field: str
    ) -> Optional[TaskHandle]: ...

    def health_check(self) -> HealthStatus: ...


RecordTransform = Callable[[SyncRecord], SyncRecord]


class SyncState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    FETCHED = "fetched"
    FETCH_FAILED = "fetch_failed"
    WRITING = "writing"
    DONE = "done"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class SyncReport:
    index_name: str
    records_indexed: int
    task_handle: Optional[TaskHandle]
    state: SyncState
    threshold: datetime
    started_at: datetime
    finished_at: datetime

    def as_dict(self) -> dict[str, Any]:
        return {
            "index_name": self.index_name,
            "records_indexed": self.records_indexed,
            "task_handle": self.task_handle.as_dict() if self.task_handle else None,
            "state": self.state.value,
            "threshold": self.threshold.isoformat(),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
        }


class MongoToMeiliSync:
    """
    Orquestador del pipeline para un índice.

    Máquina de estados lineal:
    IDLE -> FETCHING -> (FETCHED | FETCH_FAILED) -> WRITING -> (DONE | WRITE_FAILED)
    Con batch vacío: FETCHED -> DONE sin llamar al writer.
    """

    def __init__(
        self,
        *,
        reader: RecordReader,
        writer: IndexWriter,
        run_lock: Optional[SyncRunLock] = None,
        lock_timeout_s: float = 0.0,
        transform: Optional[RecordTransform] = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._run_lock = run_lock
        self._lock_timeout_s = lock_timeout_s
        self._transform = transform
        self._state = SyncState.IDLE

    @property
    def state(self) -> SyncState:
        return self._state

    def _transition(self, new_state: SyncState) -> None:
        logger.debug(f"Sync: {self._state.value} -> {new_state.value}")
        self._state = new_state

    def run_once(self, config: SyncTargetConfig, *, now: Optional[datetime] = None) -> SyncReport:
        """
        Ejecuta una corrida completa para el índice configurado.

        Propaga StoreUnavailable / RecordDecodeError / IndexSubmissionError
        sin reintentar.
        """
        if self._run_lock is None:
            return self._run(config, now=now)

        with self._run_lock.acquire(config.index_name, timeout=self._lock_timeout_s):
            return self._run(config, now=now)

    def _run(self, config: SyncTargetConfig, *, now: Optional[datetime]) -> SyncReport:
        started_at = utc_now()
        self._state = SyncState.IDLE

        predicate = build_filter(
            config.window,
            now=now,
            flag_field=config.flag_field,
            timestamp_field=config.timestamp_field,
        )
        if config.window == timedelta(0):
            logger.warning(
                f"Ventana de selección 0 para '{config.index_name}': "
                f"la corrida no seleccionará registros"
            )

        logger.info(
            f"Sync: MongoDB -> Meilisearch '{config.index_name}' "
            f"({config.flag_field} == true, {config.timestamp_field} >= {predicate.threshold.isoformat()})"
        )

        self._transition(SyncState.FETCHING)
        try:
            batch = self._reader.fetch(predicate)
            if self._transform is not None:
                batch = [self._apply_transform(record) for record in batch]
        except (StoreUnavailable, RecordDecodeError) as e:
            self._transition(SyncState.FETCH_FAILED)
            logger.error(f"Sync abortado en lectura [{e.error_code}]: {e.message}")
            raise
        except Exception as e:
            self._transition(SyncState.FETCH_FAILED)
            logger.opt(exception=e).error(f"Sync abortado en lectura por error inesperado: {e}")
            raise
        self._transition(SyncState.FETCHED)

        task_handle: Optional[TaskHandle] = None
        if batch:
            self._transition(SyncState.WRITING)
            try:
                task_handle = self._writer.upsert(
                    config.index_name, batch, config.primary_key_field
                )
            except IndexSubmissionError as e:
                self._transition(SyncState.WRITE_FAILED)
                logger.error(f"Sync abortado en escritura [{e.error_code}]: {e.message}")
                raise
            except Exception as e:
                self._transition(SyncState.WRITE_FAILED)
                logger.opt(exception=e).error(f"Sync abortado en escritura por error inesperado: {e}")
                raise
        else:
            logger.info(f"Sin documentos elegibles para '{config.index_name}'")
        self._transition(SyncState.DONE)

        report = SyncReport(
            index_name=config.index_name,
            records_indexed=len(batch),
            task_handle=task_handle,
            state=self._state,
            threshold=predicate.threshold,
            started_at=started_at,
            finished_at=utc_now(),
        )
        logger.success(
            f"Sync completado: records_indexed={report.records_indexed}, "
            f"task_uid={task_handle.task_uid if task_handle else None}"
        )
        return report

    def _apply_transform(self, record: SyncRecord) -> SyncRecord:
        try:
            return self._transform(record)
        except (TypeError, ValueError, KeyError) as e:
            raise RecordDecodeError(
                f"Transformación fallida para el registro {record.record_id}: {e}",
                record_id=record.record_id,
            ) from e


def build_from_settings(
    settings: "Settings",
    *,
    run_lock: Optional[SyncRunLock] = None,
) -> tuple[MongoToMeiliSync, MongoRecordReader, MeiliIndexWriter, "MongoClient"]:
    """
    Constructor “oficial” del pipeline a partir del settings.

    Los clientes se crean aquí y se inyectan; el caller es dueño de su ciclo
    de vida (cerrar el cliente de Mongo al terminar).
    """
    mongo_client = create_mongo_client(settings)
    reader = MongoRecordReader(
        mongo_client,
        database=settings.MONGODB_DATABASE,
        collection=settings.MONGODB_COLLECTION,
        field_mappings=get_field_mappings(settings.MEILI_INDEX),
    )
    writer = MeiliIndexWriter(create_meili_client(settings))
    service = MongoToMeiliSync(
        reader=reader,
        writer=writer,
        run_lock=run_lock,
        lock_timeout_s=settings.SYNC_LOCK_TIMEOUT_S,
    )
    return service, reader, writer, mongo_client
