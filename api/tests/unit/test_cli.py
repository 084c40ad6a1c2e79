"""
Tests unitarios para scripts/mongo_to_meili_sync.py.

Verifica los códigos de salida del job: 0 OK, 1 corrida fallida, 2 configuración inválida.
"""
from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from insights_sync.infrastructure.external.meili_sync.sync_service import MongoToMeiliSync
from insights_sync.infrastructure.external.meili_sync.types import HealthStatus
from insights_sync.shared.exceptions.sync import IndexSubmissionError, StoreUnavailable
from scripts.mongo_to_meili_sync import main

from tests.fakes import FakeReader, FakeWriter, make_record


TARGET = "scripts.mongo_to_meili_sync.build_from_settings"


def _pipeline(reader, writer):
    mongo_client = MagicMock()
    service = MongoToMeiliSync(reader=reader, writer=writer)
    return service, reader, writer, mongo_client


@pytest.fixture(autouse=True)
def _quiet_logging():
    with patch("scripts.mongo_to_meili_sync.configure_logging"):
        yield


def test_successful_run_exits_zero(settings, fake_writer) -> None:
    pipeline = _pipeline(FakeReader([make_record("m1")]), fake_writer)
    with patch(TARGET, return_value=pipeline):
        code = main(["--window-days", "36500"], settings=settings)

    assert code == 0
    assert list(fake_writer.indexes["movies"]) == ["m1"]
    pipeline[3].close.assert_called_once()


def test_index_override_is_applied(settings, fake_writer) -> None:
    pipeline = _pipeline(FakeReader([make_record("m1")]), fake_writer)
    with patch(TARGET, return_value=pipeline) as build:
        code = main(["--index", "films", "--window-days", "36500"], settings=settings)

    assert code == 0
    assert build.call_args.args[0].MEILI_INDEX == "films"
    assert "films" in fake_writer.indexes


def test_store_failure_exits_one(settings, fake_writer) -> None:
    pipeline = _pipeline(FakeReader(error=StoreUnavailable("down")), fake_writer)
    with patch(TARGET, return_value=pipeline):
        code = main([], settings=settings)

    assert code == 1
    assert fake_writer.calls == []
    pipeline[3].close.assert_called_once()


def test_write_failure_exits_one(settings) -> None:
    writer = FakeWriter(error=IndexSubmissionError("rejected", index="movies", batch_size=1))
    pipeline = _pipeline(FakeReader([make_record("m1")]), writer)
    with patch(TARGET, return_value=pipeline):
        code = main(["--window-days", "36500"], settings=settings)

    assert code == 1


def test_missing_uri_exits_two(settings) -> None:
    with patch(TARGET) as build:
        code = main([], settings=settings.model_copy(update={"MONGODB_URI": ""}))

    assert code == 2
    build.assert_not_called()


def test_negative_window_exits_two(settings) -> None:
    with patch(TARGET) as build:
        code = main(["--window-days", "-1"], settings=settings)

    assert code == 2
    build.assert_not_called()


@pytest.mark.parametrize("window_days", ["1000000", "inf", "nan"])
def test_out_of_range_window_exits_two(settings, window_days) -> None:
    with patch(TARGET) as build:
        code = main(["--window-days", window_days], settings=settings)

    assert code == 2
    build.assert_not_called()


def test_check_reports_connectivity(settings, fake_reader, fake_writer) -> None:
    pipeline = _pipeline(fake_reader, fake_writer)
    with patch(TARGET, return_value=pipeline):
        assert main(["--check"], settings=settings) == 0

    unreachable = MagicMock()
    unreachable.health_check.return_value = HealthStatus.UNREACHABLE
    pipeline = _pipeline(fake_reader, unreachable)
    with patch(TARGET, return_value=pipeline):
        assert main(["--check"], settings=settings) == 1
    unreachable.upsert.assert_not_called()


def test_script_puts_api_root_on_sys_path() -> None:
    import scripts.mongo_to_meili_sync as cli

    assert cli._API_ROOT.name == "api"
    assert (cli._API_ROOT / "insights_sync").is_dir()
    assert str(cli._API_ROOT) in sys.path
