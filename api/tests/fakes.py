"""
Fakes en memoria de los colaboradores externos (MongoDB, Meilisearch).

Tienen el mismo contrato que MongoRecordReader y MeiliIndexWriter.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from insights_sync.infrastructure.external.meili_sync.selection import SelectionPredicate
from insights_sync.infrastructure.external.meili_sync.types import (
    HealthStatus,
    SyncRecord,
    TaskHandle,
)


NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_record(
    record_id: str,
    *,
    should_index: bool = True,
    marked_at: Optional[datetime] = None,
    title: str = "Movie",
) -> SyncRecord:
    return SyncRecord(
        record_id=record_id,
        attributes={"title": title, "year": 1999, "rating": 8.1, "genres": ["drama"]},
        should_index=should_index,
        last_marked_at=marked_at or NOW - timedelta(days=1),
    )


class FakeReader:
    """Store en memoria: aplica el predicado igual que el filtro de Mongo."""

    def __init__(self, records: Sequence[SyncRecord] = (), error: Optional[Exception] = None) -> None:
        self.records = list(records)
        self.error = error
        self.calls: list[SelectionPredicate] = []

    def fetch(self, predicate: SelectionPredicate) -> list[SyncRecord]:
        self.calls.append(predicate)
        if self.error is not None:
            raise self.error
        return [r for r in self.records if predicate.matches(r)]

    def health_check(self) -> HealthStatus:
        return HealthStatus.OK


class FakeWriter:
    """Índice en memoria con semántica add-or-replace por primary key."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: list[tuple[str, list[SyncRecord], str]] = []
        self.indexes: dict[str, dict[str, dict]] = {}
        self._next_uid = 1

    def upsert(self, index_name: str, batch: Sequence[SyncRecord], primary_key_field: str) -> Optional[TaskHandle]:
        self.calls.append((index_name, list(batch), primary_key_field))
        if self.error is not None:
            raise self.error
        if not batch:
            return None
        index = self.indexes.setdefault(index_name, {})
        for record in batch:
            doc = record.to_document(primary_key_field)
            index[doc[primary_key_field]] = doc
        handle = TaskHandle(
            task_uid=self._next_uid,
            index_uid=index_name,
            status="enqueued",
            type="documentAdditionOrUpdate",
            enqueued_at=NOW,
        )
        self._next_uid += 1
        return handle

    def health_check(self) -> HealthStatus:
        return HealthStatus.OK


