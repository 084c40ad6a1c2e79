"""
Lock de corrida por índice (single-flight).

Motivacion:
- Dos corridas solapadas sobre el mismo índice compiten por el orden de
  envío de los upserts a Meilisearch.
- Dentro de un proceso (API + scheduler embebido) serializamos por clave.
- Entre procesos la exclusión mutua la garantiza el scheduler externo.

Caracteristicas:
- Un `threading.Lock` por clave (nombre del índice)
- Timeout configurable; 0 = falla inmediatamente si está ocupado
- Instancia explícita inyectada al orquestador (sin estado global)
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from loguru import logger

from insights_sync.shared.exceptions.sync import SyncAlreadyRunningError


DEFAULT_LOCK_TIMEOUT = 0.0


class SyncRunLock:
    """
    Gestor de locks por clave.

    Implementacion:
    - Usa `threading.Lock` porque la corrida es síncrona (pymongo + SDK de
      Meilisearch); el endpoint la ejecuta en un thread via `asyncio.to_thread`.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._meta_lock = threading.Lock()

    def _get_or_create_lock(self, key: str) -> threading.Lock:
        """Obtiene o crea el lock para la clave especificada."""
        with self._meta_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def acquire(self, key: str, timeout: float = DEFAULT_LOCK_TIMEOUT) -> Iterator[None]:
        """
        Context manager para ejecutar una corrida con exclusión mutua.

        Args:
            key: Clave del lock (normalmente el nombre del índice)
            timeout: Segundos máximos de espera. <= 0 no espera.

        Raises:
            SyncAlreadyRunningError: Si el lock sigue ocupado tras el timeout.
        """
        lock = self._get_or_create_lock(key)

        if timeout and timeout > 0:
            acquired = lock.acquire(timeout=timeout)
        else:
            acquired = lock.acquire(blocking=False)

        if not acquired:
            logger.warning(f"Sync ya está corriendo para '{key}' (lock ocupado)")
            raise SyncAlreadyRunningError(key, timeout)

        try:
            yield
        finally:
            lock.release()

    def is_locked(self, key: str) -> bool:
        with self._meta_lock:
            lock = self._locks.get(key)
            return bool(lock and lock.locked())
