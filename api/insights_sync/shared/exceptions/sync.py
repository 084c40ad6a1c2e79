"""
Taxonomía de errores del pipeline MongoDB -> Meilisearch.

Ninguno se silencia ni se reintenta internamente: todos llegan al caller
de la corrida (CLI, endpoint o scheduler externo).
"""
from typing import Any, Optional

from insights_sync.shared.exceptions.base import AppException


class SyncException(AppException):
    """Excepción base para errores del pipeline de sincronización."""


class ConfigurationError(SyncException):
    """Falta un parámetro obligatorio o su valor no es válido. Fatal en startup."""

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else None
        super().__init__(
            message=message,
            status_code=500,
            error_code="CONFIGURATION_ERROR",
            details=details,
        )
        self.setting = setting


class StoreUnavailable(SyncException):
    """Error de conectividad/autenticación contra MongoDB."""

    def __init__(self, message: str, collection: Optional[str] = None):
        details = {"collection": collection} if collection else None
        super().__init__(
            message=message,
            status_code=503,
            error_code="STORE_UNAVAILABLE",
            details=details,
        )


class RecordDecodeError(SyncException):
    """Documento almacenado con forma inválida. Aborta la corrida completa."""

    def __init__(
        self,
        message: str,
        record_id: Optional[Any] = None,
        field: Optional[str] = None,
    ):
        details: dict[str, Any] = {}
        if record_id is not None:
            details["record_id"] = str(record_id)
        if field:
            details["field"] = field
        super().__init__(
            message=message,
            status_code=502,
            error_code="RECORD_DECODE_ERROR",
            details=details,
        )
        self.record_id = None if record_id is None else str(record_id)
        self.field = field


class IndexSubmissionError(SyncException):
    """Meilisearch rechazó el batch (documento inválido, cuota, auth, red)."""

    def __init__(self, message: str, index: Optional[str] = None, batch_size: Optional[int] = None):
        details: dict[str, Any] = {}
        if index:
            details["index"] = index
        if batch_size is not None:
            details["batch_size"] = batch_size
        super().__init__(
            message=message,
            status_code=502,
            error_code="INDEX_SUBMISSION_ERROR",
            details=details,
        )


class SyncAlreadyRunningError(SyncException):
    """Ya hay una corrida activa para el mismo índice en este proceso."""

    def __init__(self, key: str, timeout: float):
        super().__init__(
            message=f"Ya existe un sync en curso para '{key}' (timeout: {timeout}s)",
            status_code=409,
            error_code="SYNC_ALREADY_RUNNING",
            details={"key": key, "timeout": timeout},
        )
        self.key = key
        self.timeout = timeout
