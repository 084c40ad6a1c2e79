"""
Dependencias para inyeccion del pipeline y sus colaboradores.

Los objetos viven en `app.state` (creados en el startup); los tests los
reemplazan via `app.dependency_overrides`.
"""
from fastapi import Request

from insights_sync.core.config import Settings
from insights_sync.infrastructure.external.meili_sync.meili_writer import MeiliIndexWriter
from insights_sync.infrastructure.external.meili_sync.mongo_reader import MongoRecordReader
from insights_sync.infrastructure.external.meili_sync.sync_service import MongoToMeiliSync


def get_settings_dep(request: Request) -> Settings:
    """Settings con los que arranco la aplicacion."""
    return request.app.state.settings


def get_sync_service(request: Request) -> MongoToMeiliSync:
    """Orquestador MongoDB -> Meilisearch."""
    return request.app.state.sync_service


def get_record_reader(request: Request) -> MongoRecordReader:
    return request.app.state.record_reader


def get_index_writer(request: Request) -> MeiliIndexWriter:
    return request.app.state.index_writer
