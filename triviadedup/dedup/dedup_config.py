"""Configuration and vocabularies for duplicate detection."""

from __future__ import annotations

import os
import re
from dataclasses import asdict, dataclass, field
from typing import Dict, FrozenSet, Tuple

# Filtered out of keyword sets.
STOP_WORDS: FrozenSet[str] = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
    "to", "of", "and", "in", "that", "have", "for", "on", "with", "as",
    "at", "this", "by", "from", "which", "or", "what", "who", "where", "why",
    "how", "when", "there", "here", "do", "does", "did", "has", "had",
    "can", "could", "will", "would", "should", "shall", "must", "may", "might",
    "many", "most", "some", "any", "all", "one", "two", "three", "four", "five",
    "its", "it's", "their", "they", "them", "these", "those", "your", "my", "our",
    "his", "her", "hers", "she", "he",
})

# Creation/attribution verbs and role nouns, matched as substrings.
PROPERTY_WORDS: Tuple[str, ...] = (
    "paint", "write", "direct", "compose", "discover", "invent", "create",
    "design", "develop", "found", "establish", "sign", "build", "construct",
    "cutting", "ear", "self-portrait", "portrait", "actor", "actress", "scientist",
    "author", "musician", "artist", "director", "producer", "inventor",
)

# Low-information answers never used as a grouping anchor.
GENERIC_ANSWERS: FrozenSet[str] = frozenset(
    {"true", "false", "yes", "no", "unknown", "none"} | {str(n) for n in range(11)}
)

KNOWN_FOR_RE = re.compile(r"(known|famous|recognized|remembered|celebrated)\s+(for|as)", re.IGNORECASE)

# Single, double and typographic quotes.
QUOTE_RE = re.compile(r"'([^']+)'|\"([^\"]+)\"|‘([^’]+)’|“([^”]+)”")

# "<adjective> for X" attribution clauses compared by askingDifferentProperties.
KNOWN_FOR_CLAUSE_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(rf"{word} for ([^.?!]+)", re.IGNORECASE)
    for word in ("known", "famous", "recognized", "remembered", "celebrated")
)


@dataclass
class DedupConfig:
    """Thresholds for the grouping passes and fingerprint scoring."""

    # Pass 1 (same answer): text and fingerprint must both clear these
    answer_text_threshold: float = 0.65
    fingerprint_threshold: float = 0.5

    # Pass 2 (similar text): text gate, then answer agreement
    text_threshold: float = 0.8
    answer_similarity_threshold: float = 0.7

    # Fingerprint scoring
    known_for_position_window: int = 10
    property_clause_threshold: float = 0.5

    # Pass 2 ignores the generic-answer deny-list unless enabled
    deny_list_in_text_pass: bool = False

    # Only report groups mentioning this keyword (empty = all)
    filter_keyword: str = field(default_factory=lambda: os.getenv("DEDUP_FILTER_KEYWORD", ""))

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "DedupConfig":
        """Create config from dictionary."""
        return cls(**config_dict)

    def to_dict(self) -> Dict:
        """Convert config to dictionary."""
        return asdict(self)


# Default configuration instance
DEFAULT_DEDUP_CONFIG = DedupConfig()
