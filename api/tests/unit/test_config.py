from __future__ import annotations

from datetime import timedelta

import pytest

from insights_sync.core.config import Settings, validate_settings
from insights_sync.shared.exceptions.sync import ConfigurationError


def test_defaults() -> None:
    settings = Settings(_env_file=None, MONGODB_URI="mongodb://localhost:27017")

    assert settings.MONGODB_DATABASE == "LibreChat"
    assert settings.MONGODB_COLLECTION == "messages"
    assert settings.MEILI_HOST == "http://localhost:7700"
    assert settings.MEILI_INDEX == "movies"
    assert settings.MEILI_PRIMARY_KEY == "id"
    assert settings.sync_window == timedelta(days=7)


def test_missing_mongodb_uri_is_configuration_error(settings: Settings) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        validate_settings(settings.model_copy(update={"MONGODB_URI": ""}))
    assert exc_info.value.setting == "MONGODB_URI"


def test_negative_window_is_configuration_error(settings: Settings) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        validate_settings(settings.model_copy(update={"SYNC_WINDOW_DAYS": -1}))
    assert exc_info.value.setting == "SYNC_WINDOW_DAYS"


def test_empty_index_is_configuration_error(settings: Settings) -> None:
    with pytest.raises(ConfigurationError):
        validate_settings(settings.model_copy(update={"MEILI_INDEX": ""}))


def test_valid_settings_pass(settings: Settings) -> None:
    validate_settings(settings)


def test_sync_target_reflects_settings(settings: Settings) -> None:
    custom = settings.model_copy(
        update={
            "MEILI_INDEX": "films",
            "SYNC_WINDOW_DAYS": 1.5,
            "SYNC_FLAG_FIELD": "searchable",
        }
    )
    target = custom.sync_target()

    assert target.index_name == "films"
    assert target.primary_key_field == "id"
    assert target.window == timedelta(days=1.5)
    assert target.flag_field == "searchable"
    assert target.timestamp_field == "indexedDate"


def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGODB_URI", "mongodb://db.example:27017")
    monkeypatch.setenv("SYNC_WINDOW_DAYS", "3")

    settings = Settings(_env_file=None)

    assert settings.MONGODB_URI == "mongodb://db.example:27017"
    assert settings.sync_window == timedelta(days=3)


@pytest.mark.parametrize("window_days", [float("inf"), float("nan"), 1_000_000])
def test_out_of_range_window_is_configuration_error(settings: Settings, window_days: float) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        validate_settings(settings.model_copy(update={"SYNC_WINDOW_DAYS": window_days}))
    assert exc_info.value.setting == "SYNC_WINDOW_DAYS"
