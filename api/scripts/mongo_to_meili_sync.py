"""
CLI: MongoDB -> Meilisearch (sync selectivo one-way).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer). Cada ejecución es una corrida.
  - El scheduler debe garantizar una sola corrida activa entre procesos.

Variables de entorno requeridas:
  - MONGODB_URI
Opcionales (ver insights_sync.core.config.Settings):
  - MONGODB_DATABASE, MONGODB_COLLECTION
  - MEILI_HOST, MEILI_API_KEY, MEILI_INDEX, MEILI_PRIMARY_KEY
  - SYNC_WINDOW_DAYS, SYNC_FLAG_FIELD, SYNC_TIMESTAMP_FIELD

Ejecución:
  python scripts/mongo_to_meili_sync.py
  python scripts/mongo_to_meili_sync.py --window-days 1
  python scripts/mongo_to_meili_sync.py --check

Códigos de salida:
  0 = OK, 1 = la corrida falló, 2 = configuración inválida
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv
from loguru import logger

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
# La carpeta "api" contiene el paquete raíz `insights_sync/`.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

from insights_sync.core.config import Settings, validate_settings
from insights_sync.core.logging_config import configure_logging
from insights_sync.infrastructure.external.meili_sync.sync_service import build_from_settings
from insights_sync.infrastructure.external.meili_sync.types import HealthStatus
from insights_sync.shared.exceptions.sync import ConfigurationError, SyncException

# Soportamos dos ubicaciones típicas de .env:
# - api/.env (recomendado para scripts del backend)
# - repo_root/.env (si centralizas variables del proyecto)
_REPO_ROOT = _API_ROOT.parent


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync selectivo MongoDB -> Meilisearch")
    parser.add_argument(
        "--window-days",
        type=float,
        default=None,
        help="Ventana de selección en días (default: SYNC_WINDOW_DAYS).",
    )
    parser.add_argument(
        "--index",
        default=None,
        help="Índice destino en Meilisearch (default: MEILI_INDEX).",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Solo verifica conectividad con MongoDB y Meilisearch (no sincroniza).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    args = _parse_args(argv)

    if settings is None:
        load_dotenv(_API_ROOT / ".env", override=False)
        load_dotenv(_REPO_ROOT / ".env", override=False)
        settings = Settings()

    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    overrides = {}
    if args.index:
        overrides["MEILI_INDEX"] = args.index
    if args.window_days is not None:
        overrides["SYNC_WINDOW_DAYS"] = args.window_days
    if overrides:
        settings = settings.model_copy(update=overrides)

    try:
        validate_settings(settings)
        service, reader, writer, mongo_client = build_from_settings(settings)
    except ConfigurationError as e:
        logger.error(f"Configuración inválida: {json.dumps(e.to_dict(), default=str)}")
        return 2

    try:
        if args.check:
            store = reader.health_check()
            search = writer.health_check()
            logger.info(f"MongoDB: {store.value} | Meilisearch: {search.value}")
            return 0 if store == search == HealthStatus.OK else 1

        config = settings.sync_target()

        logger.info("Iniciando MongoDB -> Meilisearch sync...")
        try:
            report = service.run_once(config)
        except SyncException as e:
            logger.error(f"Sync FALLÓ: {json.dumps(e.to_dict(), default=str)}")
            return 1

        logger.info(f"Sync OK: {json.dumps(report.as_dict(), default=str)}")
        return 0
    finally:
        mongo_client.close()


if __name__ == "__main__":
    raise SystemExit(main())
