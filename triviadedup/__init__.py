"""triviadedup package.

Semantic duplicate detection and removal for a trivia question table.
Questions are fetched page by page, grouped by shared answer or
near-identical wording, and all but one canonical record per group can be
removed after operator confirmation.
"""

from .cli import main as cli_main
from .config import AppConfig, default_app_config
from .data import QuestionRecord, fetch_all_records
from .dedup import assign_canonicals, extract_features, find_duplicate_groups
from .resolve import resolve_duplicates
from .utils import setup_logging

__all__ = [
    "__version__",
    "AppConfig",
    "default_app_config",
    "QuestionRecord",
    "fetch_all_records",
    "extract_features",
    "find_duplicate_groups",
    "assign_canonicals",
    "resolve_duplicates",
    "setup_logging",
    "cli_main",
]

__version__ = "0.1.0"
