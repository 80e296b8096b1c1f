"""Append-only audit sink for AI interactions."""

from typing import Protocol

from snowscribe.models.audit import AuditRecord
from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)


class AuditLogSink(Protocol):
    async def append(self, record: AuditRecord) -> None: ...


class InMemoryAuditLog:
    """Audit sink that keeps records in a list."""

    def __init__(self, max_records: int | None = 10_000):
        self.records: list[AuditRecord] = []
        self.max_records = max_records

    async def append(self, record: AuditRecord) -> None:
        self.records.append(record)
        if self.max_records is not None and len(self.records) > self.max_records:
            del self.records[: len(self.records) - self.max_records]

    def for_project(self, project_id: str) -> list[AuditRecord]:
        return [record for record in self.records if record.project_id == project_id]
