from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from meilisearch.errors import MeilisearchCommunicationError

from insights_sync.infrastructure.external.meili_sync.meili_writer import (
    MeiliIndexWriter,
    create_meili_client,
)
from insights_sync.infrastructure.external.meili_sync.types import HealthStatus
from insights_sync.shared.exceptions.sync import IndexSubmissionError

from tests.fakes import make_record


def _task_info(uid: int = 42):
    return SimpleNamespace(
        task_uid=uid,
        index_uid="movies",
        status="enqueued",
        type="documentAdditionOrUpdate",
        enqueued_at=datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def meili_client() -> MagicMock:
    client = MagicMock()
    client.index.return_value.add_documents.return_value = _task_info()
    return client


def test_empty_batch_is_noop(meili_client: MagicMock) -> None:
    writer = MeiliIndexWriter(meili_client)

    assert writer.upsert("movies", [], "id") is None
    meili_client.index.assert_not_called()


def test_upsert_sends_documents_with_primary_key(meili_client: MagicMock) -> None:
    writer = MeiliIndexWriter(meili_client)

    handle = writer.upsert("movies", [make_record("m1", title="Heat")], "id")

    meili_client.index.assert_called_once_with("movies")
    add_documents = meili_client.index.return_value.add_documents
    documents = add_documents.call_args.args[0]
    assert add_documents.call_args.kwargs == {"primary_key": "id"}
    assert documents == [
        {"id": "m1", "title": "Heat", "year": 1999, "rating": 8.1, "genres": ["drama"]}
    ]
    assert handle is not None
    assert handle.task_uid == 42
    assert handle.index_uid == "movies"
    assert handle.status == "enqueued"


def test_sync_metadata_is_never_indexed(meili_client: MagicMock) -> None:
    writer = MeiliIndexWriter(meili_client)
    writer.upsert("movies", [make_record("m1")], "id")

    document = meili_client.index.return_value.add_documents.call_args.args[0][0]
    assert "should_index" not in document
    assert "last_marked_at" not in document
    assert "_meiliIndex" not in document


def test_sdk_error_is_index_submission_error(meili_client: MagicMock) -> None:
    meili_client.index.return_value.add_documents.side_effect = MeilisearchCommunicationError(
        "connection refused"
    )
    writer = MeiliIndexWriter(meili_client)

    with pytest.raises(IndexSubmissionError) as exc_info:
        writer.upsert("movies", [make_record("m1"), make_record("m2")], "id")

    assert exc_info.value.error_code == "INDEX_SUBMISSION_ERROR"
    assert exc_info.value.details == {"index": "movies", "batch_size": 2}


def test_search_maps_response(meili_client: MagicMock) -> None:
    meili_client.index.return_value.search.return_value = {
        "hits": [{"id": "m1", "title": "Heat"}],
        "query": "heat",
        "estimatedTotalHits": 1,
        "processingTimeMs": 3,
    }
    writer = MeiliIndexWriter(meili_client)

    result = writer.search("movies", "heat", limit=5)

    meili_client.index.return_value.search.assert_called_once_with("heat", {"limit": 5})
    assert result.hits == [{"id": "m1", "title": "Heat"}]
    assert result.estimated_total_hits == 1
    assert result.processing_time_ms == 3


def test_health_check(meili_client: MagicMock) -> None:
    writer = MeiliIndexWriter(meili_client)

    meili_client.is_healthy.return_value = True
    assert writer.health_check() == HealthStatus.OK

    meili_client.is_healthy.return_value = False
    assert writer.health_check() == HealthStatus.UNREACHABLE


def test_create_meili_client_uses_settings(settings) -> None:
    client = create_meili_client(settings.model_copy(update={"MEILI_API_KEY": "masterKey"}))
    assert client.config.url == "http://localhost:7700"
    assert client.config.api_key == "masterKey"


def test_index_document_sends_single_document(meili_client: MagicMock) -> None:
    writer = MeiliIndexWriter(meili_client)

    handle = writer.index_document("movies", make_record("m1", title="Heat"))

    meili_client.index.assert_called_once_with("movies")
    add_documents = meili_client.index.return_value.add_documents
    add_documents.assert_called_once_with(
        [{"id": "m1", "title": "Heat", "year": 1999, "rating": 8.1, "genres": ["drama"]}],
        primary_key="id",
    )
    assert handle.task_uid == 42


def test_index_document_error_is_index_submission_error(meili_client: MagicMock) -> None:
    meili_client.index.return_value.add_documents.side_effect = MeilisearchCommunicationError(
        "connection refused"
    )
    writer = MeiliIndexWriter(meili_client)

    with pytest.raises(IndexSubmissionError) as exc_info:
        writer.index_document("movies", make_record("m1"))

    assert exc_info.value.details == {"index": "movies", "batch_size": 1}
    assert "m1" in exc_info.value.message
