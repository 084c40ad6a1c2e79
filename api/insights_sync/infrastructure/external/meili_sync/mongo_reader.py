"""
Lector de MongoDB (pymongo) para el pipeline.

Requisitos cubiertos:
- filtro flag + ventana (>=) construido por `selection.build_filter`
- lectura todo-o-nada: si falla la conexión no se devuelven resultados parciales
- decodificación estricta: un documento mal formado aborta la corrida
- solo lectura: nunca modifica el flag ni el timestamp
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable

from bson.errors import BSONError
from loguru import logger
from pymongo import MongoClient
from pymongo.errors import ConfigurationError as MongoConfigurationError
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from insights_sync.shared.exceptions.sync import (
    ConfigurationError,
    RecordDecodeError,
    StoreUnavailable,
)

from .selection import SelectionPredicate
from .types import FieldMapping, HealthStatus, SyncRecord, ensure_utc

if TYPE_CHECKING:
    from insights_sync.core.config import Settings


def create_mongo_client(settings: "Settings") -> MongoClient:
    """
    Crea el cliente de MongoDB con las opciones de pool/timeouts del settings.

    El cliente es lazy: no abre conexiones hasta la primera operación, por lo
    que aquí solo fallan URI u opciones inválidas.
    """
    if not settings.MONGODB_URI:
        raise ConfigurationError(
            "Falta variable de entorno obligatoria: MONGODB_URI",
            setting="MONGODB_URI",
        )

    options: dict[str, Any] = {}
    compressors = [c.strip() for c in settings.MONGODB_COMPRESSORS.split(",") if c.strip()]
    if compressors:
        options["compressors"] = compressors

    try:
        return MongoClient(
            settings.MONGODB_URI,
            server_api=ServerApi("1"),
            minPoolSize=settings.MONGODB_MIN_POOL_SIZE,
            maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
            connectTimeoutMS=int(settings.MONGODB_CONNECT_TIMEOUT_S * 1000),
            serverSelectionTimeoutMS=int(settings.MONGODB_SERVER_SELECTION_TIMEOUT_S * 1000),
            maxIdleTimeMS=int(settings.MONGODB_MAX_IDLE_TIME_S * 1000),
            retryWrites=True,
            w="majority",
            readPreference=settings.MONGODB_READ_PREFERENCE,
            tz_aware=True,
            **options,
        )
    except (MongoConfigurationError, ValueError, TypeError) as e:
        raise ConfigurationError(
            f"Configuración de MongoDB inválida: {e}",
            setting="MONGODB_URI",
        ) from e


def decode_document(
    doc: dict[str, Any],
    *,
    field_mappings: Iterable[FieldMapping],
    flag_field: str,
    timestamp_field: str,
) -> SyncRecord:
    """
    Mapea un documento Mongo a un SyncRecord.

    Reglas:
    - `_id` obligatorio; ObjectId o string, se normaliza a string
    - el flag debe ser booleano y el timestamp un datetime
    - cada FieldMapping decide cómo mapear y transformar el valor
    """
    raw_id = doc.get("_id")
    if raw_id is None:
        # Caso raro; preferimos fallar temprano y visible.
        raise RecordDecodeError("MongoDB devolvió un documento sin '_id'", field="_id")
    record_id = str(raw_id)

    flag = doc.get(flag_field)
    if not isinstance(flag, bool):
        raise RecordDecodeError(
            f"El documento {record_id} tiene '{flag_field}' no booleano: {flag!r}",
            record_id=record_id,
            field=flag_field,
        )

    marked_at = doc.get(timestamp_field)
    if not isinstance(marked_at, datetime):
        raise RecordDecodeError(
            f"El documento {record_id} no contiene un datetime válido en '{timestamp_field}'",
            record_id=record_id,
            field=timestamp_field,
        )

    attributes: dict[str, Any] = {}
    for m in field_mappings:
        if m.source_field not in doc and m.required:
            raise RecordDecodeError(
                f"El documento {record_id} no contiene el campo requerido '{m.source_field}'",
                record_id=record_id,
                field=m.source_field,
            )

        # Campos opcionales ausentes pasan por el transform como None
        raw = doc.get(m.source_field)
        try:
            attributes[m.target_field] = m.transform(raw) if m.transform else raw
        except (TypeError, ValueError) as e:
            raise RecordDecodeError(
                f"No se pudo transformar '{m.source_field}' del documento {record_id}: {raw!r}",
                record_id=record_id,
                field=m.source_field,
            ) from e

    return SyncRecord(
        record_id=record_id,
        attributes=attributes,
        should_index=flag,
        last_marked_at=ensure_utc(marked_at),
    )


class MongoRecordReader:
    """
    Ejecuta el predicado de selección contra una colección y materializa
    el resultado como lista de SyncRecord.

    El cliente se inyecta por constructor (no hay singletons de módulo).
    """

    def __init__(
        self,
        client: MongoClient,
        *,
        database: str,
        collection: str,
        field_mappings: Iterable[FieldMapping],
    ) -> None:
        self._client = client
        self._database = database
        self._collection_name = collection
        self._collection = client[database][collection]
        self._field_mappings = list(field_mappings)

    @property
    def namespace(self) -> str:
        return f"{self._database}.{self._collection_name}"

    def _projection(self, predicate: SelectionPredicate) -> dict[str, int]:
        fields = {"_id", predicate.flag_field, predicate.timestamp_field}
        fields.update(m.source_field for m in self._field_mappings)
        return {f: 1 for f in sorted(fields)}

    def fetch(self, predicate: SelectionPredicate) -> list[SyncRecord]:
        """
        Trae todos los documentos elegibles (una sola pasada, orden nativo).

        - Errores de pymongo (conexión, auth, servidor) -> StoreUnavailable
        - Documento ilegible o mal formado -> RecordDecodeError
        """
        mongo_filter = predicate.to_mongo_filter()
        logger.debug(f"MongoDB find en {self.namespace}: {mongo_filter}")

        try:
            documents = list(
                self._collection.find(mongo_filter, projection=self._projection(predicate))
            )
        except PyMongoError as e:
            raise StoreUnavailable(
                f"MongoDB no disponible al leer {self.namespace}: {e}",
                collection=self.namespace,
            ) from e
        except BSONError as e:
            raise RecordDecodeError(f"Documento BSON ilegible en {self.namespace}: {e}") from e

        records = [
            decode_document(
                doc,
                field_mappings=self._field_mappings,
                flag_field=predicate.flag_field,
                timestamp_field=predicate.timestamp_field,
            )
            for doc in documents
        ]
        logger.info(f"Obtenidos {len(records)} documentos de MongoDB ({self.namespace})")
        return records

    def health_check(self) -> HealthStatus:
        """Ping contra la base admin."""
        try:
            self._client.admin.command("ping")
        except PyMongoError as e:
            logger.warning(f"MongoDB no responde al ping: {e}")
            return HealthStatus.UNREACHABLE
        return HealthStatus.OK

    def close(self) -> None:
        self._client.close()

