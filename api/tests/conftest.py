"""
Configuración de fixtures para pytest.
"""
from __future__ import annotations

import pytest

from insights_sync.core.config import Settings

from tests.fakes import FakeReader, FakeWriter


@pytest.fixture
def settings() -> Settings:
    """Settings de prueba sin depender del entorno ni de `.env`."""
    return Settings(
        _env_file=None,
        MONGODB_URI="mongodb://localhost:27017",
        MEILI_HOST="http://localhost:7700",
        MEILI_INDEX="movies",
    )


@pytest.fixture
def fake_reader() -> FakeReader:
    return FakeReader()


@pytest.fixture
def fake_writer() -> FakeWriter:
    return FakeWriter()
