"""
Mapeos MongoDB -> Meilisearch por índice.

Punto único para decidir:
- qué atributos llegan al índice
- cómo se transforman los valores almacenados en Mongo

Los campos de metadata de sync (flag + timestamp) no se mapean: el
pipeline los lee pero nunca los indexa.
"""

from __future__ import annotations

from typing import Any, Optional

from .types import FieldMapping


def _to_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def _to_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _to_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


MOVIE_FIELD_MAPPINGS: list[FieldMapping] = [
    FieldMapping(source_field="title", target_field="title", required=True),
    FieldMapping(source_field="year", target_field="year", transform=_to_int),
    FieldMapping(source_field="rating", target_field="rating", transform=_to_float),
    FieldMapping(source_field="genres", target_field="genres", transform=_to_str_list),
]

_MAPPINGS_BY_INDEX: dict[str, list[FieldMapping]] = {
    "movies": MOVIE_FIELD_MAPPINGS,
}


def get_field_mappings(index_name: str) -> list[FieldMapping]:
    """
    Retorna los mapeos de campos para el índice indicado.

    Índices sin mapeo explícito usan el de películas.
    """
    return _MAPPINGS_BY_INDEX.get(index_name, MOVIE_FIELD_MAPPINGS)
