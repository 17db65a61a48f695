"""Data handling modules for triviadedup."""

from .fetcher import FetchError, FetchResult, fetch_all_records
from .rest import RestQuestionStore
from .schemas import Difficulty, QuestionRecord
from .store import InMemoryQuestionStore, JsonlQuestionStore, QuestionStore, StoreError

__all__ = [
    "Difficulty",
    "QuestionRecord",
    "QuestionStore",
    "StoreError",
    "InMemoryQuestionStore",
    "JsonlQuestionStore",
    "RestQuestionStore",
    "FetchError",
    "FetchResult",
    "fetch_all_records",
]
