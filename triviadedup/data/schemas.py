"""Data schemas for triviadedup."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, NamedTuple, Optional, Tuple

import pandas as pd

# Columns read from the question table, in select order.
RECORD_COLUMNS = (
    "id",
    "question_text",
    "answer_choices",
    "correct_answer",
    "topic",
    "subtopic",
    "tags",
    "difficulty",
    "language",
    "created_at",
)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "Difficulty":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a store timestamp into an aware datetime (UTC when naive).

    Accepts the shapes Postgres emits: trimmed fractional digits, ``+00``
    offsets and a space separator.

    Raises:
        ValueError: If the value is not a recognizable timestamp
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    stamp = pd.to_datetime(str(value).strip(), utc=True)
    if pd.isna(stamp):
        return None
    return stamp.to_pydatetime()


def _as_str_tuple(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        # Some exports store array columns as JSON text.
        try:
            decoded = json.loads(value)
        except ValueError:
            return (value,) if value else ()
        value = decoded if isinstance(decoded, list) else [decoded]
    return tuple(str(v) for v in value)


class QuestionRecord(NamedTuple):
    """A trivia question row as read from the store."""
    id: str
    question_text: str
    answer_choices: Tuple[str, ...] = ()
    correct_answer: str = ""
    topic: Optional[str] = None
    subtopic: Optional[str] = None
    tags: FrozenSet[str] = frozenset()
    difficulty: Difficulty = Difficulty.UNKNOWN
    language: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "QuestionRecord":
        """Build a record from a store row, tolerating missing or null columns.

        Raises:
            ValueError: If the row has no id or an unparseable created_at
        """
        if not isinstance(row, dict):
            raise ValueError(f"Invalid row format: expected dict, got {type(row).__name__}")
        if row.get("id") in (None, ""):
            raise ValueError("Row missing id")

        return cls(
            id=str(row["id"]),
            question_text=row.get("question_text") or "",
            answer_choices=_as_str_tuple(row.get("answer_choices")),
            correct_answer=row.get("correct_answer") or "",
            topic=row.get("topic"),
            subtopic=row.get("subtopic"),
            tags=frozenset(_as_str_tuple(row.get("tags"))),
            difficulty=Difficulty.parse(row.get("difficulty")),
            language=row.get("language"),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "question_text": self.question_text,
            "answer_choices": list(self.answer_choices),
            "correct_answer": self.correct_answer,
            "topic": self.topic,
            "subtopic": self.subtopic,
            "tags": sorted(self.tags),
            "difficulty": self.difficulty.value,
            "language": self.language,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
