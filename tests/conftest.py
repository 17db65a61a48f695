from __future__ import annotations

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from triviadedup.data.schemas import Difficulty, QuestionRecord  # noqa: E402
from triviadedup.data.store import InMemoryQuestionStore  # noqa: E402
from triviadedup.dedup.features import QuestionFeatures, extract_features  # noqa: E402

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_record(
    id: str,
    text: str,
    answer: str = "",
    difficulty: str = "medium",
    minutes: int = 0,
    topic: str = "General",
    subtopic: str | None = None,
) -> QuestionRecord:
    """Build a question record created ``minutes`` after BASE_TIME."""
    return QuestionRecord(
        id=id,
        question_text=text,
        answer_choices=(answer, "Other") if answer else (),
        correct_answer=answer,
        topic=topic,
        subtopic=subtopic,
        difficulty=Difficulty.parse(difficulty),
        language="en",
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


def make_features(*records: QuestionRecord) -> List[QuestionFeatures]:
    return [extract_features(r) for r in records]


# ====================
# Record Fixtures
# ====================

@pytest.fixture
def record_factory() -> Callable[..., QuestionRecord]:
    return make_record


@pytest.fixture
def starry_night_pair() -> List[QuestionRecord]:
    """Two phrasings of the same question, sharing the answer."""
    return [
        make_record("sn-1", "Who painted 'The Starry Night'?", "Vincent van Gogh", "hard", minutes=0),
        make_record("sn-2", "Who painted 'The Starry Night' in 1889?", "Vincent van Gogh", "medium", minutes=5),
    ]


@pytest.fixture
def mixed_records(starry_night_pair) -> List[QuestionRecord]:
    """A small corpus with one answer group, one text group and unrelated questions."""
    return starry_night_pair + [
        make_record("cap-1", "What is the capital of France?", "Paris", minutes=1),
        make_record("cap-2", "What is the capital city of France?", "Paris.", minutes=2),
        make_record("ml-1", "Who is known for painting the Mona Lisa?", "Da Vinci", minutes=3),
        make_record("tel-1", "Who is known for inventing the telephone?", "Bell", minutes=4),
    ]


@pytest.fixture
def paged_records() -> List[QuestionRecord]:
    """2,500 distinct records with strictly increasing timestamps."""
    return [
        make_record(f"q{i:04d}", f"Synthetic question number {i}?", f"answer {i}", minutes=i)
        for i in range(2500)
    ]


# ====================
# Store Fixtures
# ====================

@pytest.fixture
def memory_store(mixed_records) -> InMemoryQuestionStore:
    return InMemoryQuestionStore(mixed_records)


@pytest.fixture
def jsonl_file(tmp_path, mixed_records) -> Path:
    path = tmp_path / "questions.jsonl"
    with open(path, "w", encoding="utf-8") as f:
        for record in mixed_records:
            f.write(json.dumps(record.to_row()) + "\n")
    return path
