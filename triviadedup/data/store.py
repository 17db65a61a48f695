"""Question store interface and local implementations.

The detection pipeline talks to the question table only through
``QuestionStore``: an exact count, an offset page read ordered by
``created_at`` ascending, and a delete by id batch.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence, Set, Union

from .schemas import QuestionRecord
from ..utils.io import read_jsonl, write_jsonl

logger = logging.getLogger(__name__)

_EPOCH_MAX = datetime.max.replace(tzinfo=timezone.utc)


class StoreError(Exception):
    """Raised when a store query or mutation fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class QuestionStore(Protocol):
    def count(self) -> int:
        ...

    def fetch_page(self, offset: int, limit: int) -> List[QuestionRecord]:
        ...

    def delete_batch(self, ids: Sequence[str]) -> int:
        ...


def _created_key(record: QuestionRecord) -> datetime:
    return record.created_at or _EPOCH_MAX


class InMemoryQuestionStore:
    """List-backed store, also used as a test double.

    ``fail_pages`` holds page offsets whose read raises ``StoreError``;
    ``fail_delete_batches`` holds 1-based delete call numbers that raise.
    Every call is recorded in ``page_calls`` / ``delete_calls``.
    """

    def __init__(
        self,
        records: Iterable[QuestionRecord] = (),
        *,
        fail_count: bool = False,
        fail_pages: Iterable[int] = (),
        fail_delete_batches: Iterable[int] = (),
    ):
        self._records: List[QuestionRecord] = sorted(records, key=_created_key)
        self.fail_count = fail_count
        self.fail_pages: Set[int] = set(fail_pages)
        self.fail_delete_batches: Set[int] = set(fail_delete_batches)
        self.page_calls: List[tuple] = []
        self.delete_calls: List[List[str]] = []

    @property
    def records(self) -> List[QuestionRecord]:
        return list(self._records)

    def count(self) -> int:
        if self.fail_count:
            raise StoreError("count query failed")
        return len(self._records)

    def fetch_page(self, offset: int, limit: int) -> List[QuestionRecord]:
        self.page_calls.append((offset, limit))
        if offset in self.fail_pages:
            raise StoreError(f"page read failed at offset {offset}")
        return self._records[offset:offset + limit]

    def delete_batch(self, ids: Sequence[str]) -> int:
        self.delete_calls.append(list(ids))
        if len(self.delete_calls) in self.fail_delete_batches:
            raise StoreError(f"delete failed for batch {len(self.delete_calls)}")
        doomed = set(ids)
        before = len(self._records)
        self._records = [r for r in self._records if r.id not in doomed]
        return before - len(self._records)


class JsonlQuestionStore(InMemoryQuestionStore):
    """Store backed by a JSONL export of the question table.

    Deletions are written back to the file immediately.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Question file not found: {self.path}")
        if not self.path.is_file():
            raise ValueError(f"Path is not a file: {self.path}")

        records = []
        for line_no, row in enumerate(read_jsonl(self.path), start=1):
            try:
                records.append(QuestionRecord.from_row(row))
            except ValueError as e:
                raise ValueError(f"Invalid row {line_no} in {self.path}: {e}") from e
        super().__init__(records)
        logger.info("Loaded %d questions from %s", len(records), self.path)

    def delete_batch(self, ids: Sequence[str]) -> int:
        removed = super().delete_batch(ids)
        if removed:
            write_jsonl(self.path, (r.to_row() for r in self._records))
        return removed
