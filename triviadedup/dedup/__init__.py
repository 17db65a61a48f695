"""Duplicate detection: features, similarity, grouping and canonical selection."""

from .canonical import DIFFICULTY_RANK, assign_canonicals, canonical_sort_key, select_canonical
from .dedup_config import DEFAULT_DEDUP_CONFIG, GENERIC_ANSWERS, DedupConfig
from .features import Fingerprint, QuestionFeatures, classify_intent, extract_features, generate_fingerprint
from .grouping import (
    DuplicateGroup,
    GroupType,
    answer_pass,
    filter_groups,
    find_duplicate_groups,
    summarize_groups,
    text_pass,
)
from .report import differing_words, export_report, format_group, format_summary, groups_to_frame
from .similarity import (
    asking_different_properties,
    fingerprint_similarity,
    jaccard,
    levenshtein_distance,
    string_similarity,
)

__all__ = [
    "DedupConfig",
    "DEFAULT_DEDUP_CONFIG",
    "GENERIC_ANSWERS",
    "Fingerprint",
    "QuestionFeatures",
    "classify_intent",
    "extract_features",
    "generate_fingerprint",
    "levenshtein_distance",
    "string_similarity",
    "jaccard",
    "fingerprint_similarity",
    "asking_different_properties",
    "GroupType",
    "DuplicateGroup",
    "answer_pass",
    "text_pass",
    "find_duplicate_groups",
    "filter_groups",
    "summarize_groups",
    "DIFFICULTY_RANK",
    "canonical_sort_key",
    "select_canonical",
    "assign_canonicals",
    "differing_words",
    "format_group",
    "format_summary",
    "groups_to_frame",
    "export_report",
]
