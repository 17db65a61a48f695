"""Canonical record selection.

Within a group the record to keep is the one with the most preferred
difficulty (medium, then hard, then easy, then unknown), oldest first among
equals. The sort is stable, so full ties keep grouping order.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from ..data.schemas import Difficulty
from .features import QuestionFeatures
from .grouping import DuplicateGroup

DIFFICULTY_RANK = {
    Difficulty.MEDIUM: 0,
    Difficulty.HARD: 1,
    Difficulty.EASY: 2,
    Difficulty.UNKNOWN: 3,
}

_NEVER = datetime.max.replace(tzinfo=timezone.utc)


def canonical_sort_key(features: QuestionFeatures) -> Tuple[int, datetime]:
    record = features.record
    rank = DIFFICULTY_RANK.get(record.difficulty, DIFFICULTY_RANK[Difficulty.UNKNOWN])
    return rank, record.created_at or _NEVER


def select_canonical(group: DuplicateGroup) -> DuplicateGroup:
    """Return a copy of ``group`` with the canonical record first."""
    return DuplicateGroup(
        type=group.type,
        members=sorted(group.members, key=canonical_sort_key),
        answer=group.answer,
    )


def assign_canonicals(groups: Iterable[DuplicateGroup]) -> List[DuplicateGroup]:
    return [select_canonical(g) for g in groups]
