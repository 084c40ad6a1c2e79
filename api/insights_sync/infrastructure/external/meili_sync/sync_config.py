"""
Configuración del sync (mapeo MongoDB -> Meilisearch).

Aquí se define, por índice:
- índice destino y su primary key
- campos de metadata en Mongo (flag + timestamp)
- ventana de selección

Este módulo no realiza I/O: solo define configuración.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .selection import DEFAULT_FLAG_FIELD, DEFAULT_TIMESTAMP_FIELD, DEFAULT_WINDOW


@dataclass(frozen=True)
class SyncTargetConfig:
    """
    Config de una colección Mongo -> un índice Meilisearch.

    NOTA sobre el PK:
    - El `_id` de Mongo se convierte a string y se envía como `primary_key_field`.
    - Meilisearch hace add-or-replace por ese campo, por eso el pipeline es idempotente.
    """

    index_name: str
    primary_key_field: str = "id"
    window: timedelta = DEFAULT_WINDOW
    flag_field: str = DEFAULT_FLAG_FIELD
    timestamp_field: str = DEFAULT_TIMESTAMP_FIELD
