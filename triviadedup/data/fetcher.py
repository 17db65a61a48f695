"""Paged retrieval of the full question table.

The store caps a single select at a fixed page size, so the fetcher asks for
an exact count first and then walks the table with sequential range reads.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, List

from tqdm import tqdm

from .schemas import QuestionRecord
from .store import QuestionStore, StoreError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000
DEFAULT_PAGE_DELAY = 0.1  # seconds


class FetchError(StoreError):
    """Raised when the record set cannot be read at all (count query failed)."""


@dataclass
class FetchResult:
    records: List[QuestionRecord] = field(default_factory=list)
    total_count: int = 0
    pages_requested: int = 0
    failed_pages: List[int] = field(default_factory=list)  # page offsets

    @property
    def is_partial(self) -> bool:
        return len(self.records) < self.total_count


def fetch_all_records(
    store: QuestionStore,
    page_size: int = DEFAULT_PAGE_SIZE,
    page_delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
    show_progress: bool = False,
) -> FetchResult:
    """Read every record from ``store`` in ``created_at`` order.

    Args:
        store: Question store to read from
        page_size: Rows per range query
        page_delay: Seconds to wait between page queries
        sleep: Sleep function (injected so tests do not wait)
        show_progress: Whether to show a progress bar

    Returns:
        FetchResult with the records in arrival order

    Raises:
        FetchError: If the count query fails
        ValueError: If page_size is not positive
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")

    try:
        total = store.count()
    except StoreError as e:
        logger.error("Count query failed: %s", e)
        raise FetchError(f"Could not count questions: {e}", status_code=e.status_code) from e

    result = FetchResult(total_count=total)
    n_pages = math.ceil(total / page_size) if total > 0 else 0
    logger.info("Total questions in store: %d (%d pages of %d)", total, n_pages, page_size)

    pages = range(n_pages)
    if show_progress:
        pages = tqdm(pages, total=n_pages, desc="Fetching pages", ncols=80)

    for page in pages:
        offset = page * page_size
        if page > 0 and page_delay > 0:
            sleep(page_delay)

        result.pages_requested += 1
        logger.debug(
            "Fetching page %d/%d (%d-%d of %d)",
            page + 1, n_pages, offset + 1, min(offset + page_size, total), total,
        )
        try:
            rows = store.fetch_page(offset, page_size)
        except Exception as e:
            result.failed_pages.append(offset)
            logger.warning(
                "Page %d at offset %d failed, skipping: %s",
                page + 1, offset, e,
                extra={"page_offset": offset, "page_number": page + 1, "error_type": type(e).__name__},
            )
            continue

        if not rows:
            logger.info("No more questions found at offset %d", offset)
            break
        result.records.extend(rows)

    if result.is_partial:
        logger.warning(
            "Fetched %d of %d questions; %d missing (%d failed pages)",
            len(result.records), total, total - len(result.records), len(result.failed_pages),
        )
    else:
        logger.info("Fetched %d questions", len(result.records))
    return result
