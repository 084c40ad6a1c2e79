"""
Predicado de selección: qué documentos de Mongo son elegibles para indexar.

Un documento es elegible si:
- el flag de indexación es exactamente True
- su timestamp de marcado es >= (now - window)

La comparación es siempre inclusiva (>=): un registro marcado justo en el
borde de la ventana se incluye. La idempotencia queda asegurada por el
add-or-replace de Meilisearch, así que re-leer el borde es seguro.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from insights_sync.shared.exceptions.sync import ConfigurationError

from .types import SyncRecord, ensure_utc, utc_now

DEFAULT_WINDOW = timedelta(days=7)
DEFAULT_FLAG_FIELD = "_meiliIndex"
DEFAULT_TIMESTAMP_FIELD = "indexedDate"
# Tope de la ventana (~1000 años)
MAX_WINDOW_DAYS = 365_000


@dataclass(frozen=True)
class SelectionPredicate:
    flag_field: str
    timestamp_field: str
    threshold: datetime

    def to_mongo_filter(self) -> dict[str, Any]:
        """Filtro equivalente para `Collection.find`."""
        return {
            self.flag_field: True,
            self.timestamp_field: {"$gte": self.threshold},
        }

    def matches(self, record: SyncRecord) -> bool:
        """Evalúa el mismo predicado en memoria."""
        return record.should_index is True and ensure_utc(record.last_marked_at) >= self.threshold


def build_filter(
    window: timedelta,
    *,
    now: Optional[datetime] = None,
    flag_field: str = DEFAULT_FLAG_FIELD,
    timestamp_field: str = DEFAULT_TIMESTAMP_FIELD,
) -> SelectionPredicate:
    """
    Construye el predicado de selección para la ventana indicada.

    - window < 0 o fuera del rango de fechas: error de configuración.
    - window == 0: válido, pero en la práctica no selecciona nada
      (solo registros marcados en/después de "now"). Los callers deben
      tratar cero como "deshabilitado", no como "inmediato".
    """
    if window < timedelta(0):
        raise ConfigurationError(
            f"La ventana de selección no puede ser negativa: {window}",
            setting="SYNC_WINDOW_DAYS",
        )

    reference = ensure_utc(now) if now is not None else utc_now()
    try:
        threshold = reference - window
    except OverflowError as e:
        raise ConfigurationError(
            f"La ventana de selección está fuera de rango: {window}",
            setting="SYNC_WINDOW_DAYS",
        ) from e

    return SelectionPredicate(
        flag_field=flag_field,
        timestamp_field=timestamp_field,
        threshold=threshold,
    )
