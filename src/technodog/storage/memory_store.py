"""In-memory document store for local runs and tests."""

from __future__ import annotations

import uuid

from technodog.storage.base import DocumentStore
from technodog.storage.schemas import DocumentRecord


class InMemoryStore(DocumentStore):
    """Dict-backed store keyed by uuid4 ids, in insertion order."""

    def __init__(self):
        self._records: dict[str, DocumentRecord] = {}

    def add(self, record: DocumentRecord) -> str:
        record_id = str(uuid.uuid4())
        self._records[record_id] = record
        return record_id

    def count(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> DocumentRecord | None:
        return self._records.get(record_id)

    @property
    def records(self) -> list[DocumentRecord]:
        return list(self._records.values())

    def clear(self) -> None:
        self._records.clear()
