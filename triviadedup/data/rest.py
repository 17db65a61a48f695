"""Question store over a Supabase / PostgREST table.

Built on urllib so tests can reliably mock network calls.
"""

from __future__ import annotations

import json
import logging
import re
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional, Sequence

from .schemas import RECORD_COLUMNS, QuestionRecord
from .store import StoreError

logger = logging.getLogger(__name__)

_CONTENT_RANGE_RE = re.compile(r"(?:\*|\d+-\d+)/(\d+)")
# PostgREST operators such as in.("a","b") must reach the server unescaped.
_QUERY_SAFE = '(),.*"'


def parse_content_range(value: Optional[str]) -> int:
    """Extract the total from a ``Content-Range`` header (``0-999/2500`` or ``*/0``)."""
    if not value:
        raise StoreError("count response missing Content-Range header")
    m = _CONTENT_RANGE_RE.search(value)
    if not m:
        raise StoreError(f"unparseable Content-Range header: {value!r}")
    return int(m.group(1))


class RestQuestionStore:
    """Reads and deletes rows of the question table through the REST API."""

    def __init__(
        self,
        url: str,
        key: str,
        table: str = "trivia_questions",
        timeout: float = 30.0,
    ):
        if not url or not key:
            raise ValueError("Store url and key are required")
        self.base_url = url.rstrip("/") + "/rest/v1/" + urllib.parse.quote(table)
        self.key = key
        self.table = table
        self.timeout = timeout

    def _headers(self, **extra: str) -> Dict[str, str]:
        headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Accept": "application/json",
        }
        headers.update(extra)
        return headers

    def _request(self, method: str, query: Dict[str, str], headers: Dict[str, str]):
        url = f"{self.base_url}?{urllib.parse.urlencode(query, safe=_QUERY_SAFE)}"
        req = urllib.request.Request(url, headers=headers, method=method)
        try:
            resp = urllib.request.urlopen(req, timeout=self.timeout)  # noqa: S310 (configured endpoint)
        except urllib.error.HTTPError as e:
            raise StoreError(f"{method} {self.table} failed: HTTP {e.code} {e.reason}", status_code=e.code) from e
        except urllib.error.URLError as e:
            raise StoreError(f"{method} {self.table} failed: {e.reason}") from e
        return resp

    @staticmethod
    def _read_json(resp) -> Any:
        body = resp.read()
        if not body:
            return []
        try:
            return json.loads(body.decode("utf-8"))
        except ValueError as e:
            raise StoreError(f"invalid JSON in response: {e}") from e

    def count(self) -> int:
        with self._request("HEAD", {"select": "id"}, self._headers(Prefer="count=exact")) as resp:
            total = parse_content_range(resp.headers.get("Content-Range"))
        logger.debug("Table %s reports %d rows", self.table, total)
        return total

    def fetch_page(self, offset: int, limit: int) -> List[QuestionRecord]:
        query = {
            "select": ",".join(RECORD_COLUMNS),
            "order": "created_at.asc",
            "offset": str(offset),
            "limit": str(limit),
        }
        with self._request("GET", query, self._headers()) as resp:
            rows = self._read_json(resp)
        if not isinstance(rows, list):
            raise StoreError(f"expected a list of rows, got {type(rows).__name__}")
        records: List[QuestionRecord] = []
        for index, row in enumerate(rows):
            try:
                records.append(QuestionRecord.from_row(row))
            except ValueError as e:
                row_id = row.get("id") if isinstance(row, dict) else None
                logger.warning(
                    "Skipping malformed row at offset %d (id=%s): %s",
                    offset + index, row_id, e,
                    extra={"row_offset": offset + index, "row_id": row_id},
                )
        return records

    def delete_batch(self, ids: Sequence[str]) -> int:
        if not ids:
            return 0
        quoted = ",".join('"' + str(i).replace('"', '\\"') + '"' for i in ids)
        headers = self._headers(Prefer="return=representation")
        with self._request("DELETE", {"id": f"in.({quoted})"}, headers) as resp:
            rows = self._read_json(resp)
        return len(rows) if isinstance(rows, list) else 0
