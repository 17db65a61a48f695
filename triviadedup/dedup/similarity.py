"""Similarity scoring between questions.

- ``string_similarity``: normalized Levenshtein similarity in [0, 1]
- ``fingerprint_similarity``: agreement of known-for clauses, quoted entities
  and property words
- ``asking_different_properties``: veto for questions that share an answer
  but ask about different facts of it ("who painted 'Starry Night'" vs
  "who cut off his own ear")
"""

from __future__ import annotations

from typing import AbstractSet, Iterable, Optional

import numpy as np

from .dedup_config import KNOWN_FOR_CLAUSE_PATTERNS
from .features import Fingerprint, generate_fingerprint

# Returned when two fingerprints share no applicable factor.
NEUTRAL_FINGERPRINT_SCORE = 0.5


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum number of single-character edits turning ``a`` into ``b``.

    Computed one row at a time. Substitution and deletion are vectorized;
    the left-to-right insertion chain ``row[j] = min(row[j], row[j-1] + 1)``
    is resolved as a running minimum of ``row[j] - j``.
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    b_codes = np.fromiter(map(ord, b), dtype=np.int64, count=len(b))
    offsets = np.arange(len(b) + 1, dtype=np.int64)
    prev = offsets.copy()

    for i, ch in enumerate(a, start=1):
        cost = (b_codes != ord(ch)).astype(np.int64)
        row = np.empty_like(prev)
        row[0] = i
        np.minimum(prev[:-1] + cost, prev[1:] + 1, out=row[1:])
        row = np.minimum.accumulate(row - offsets) + offsets
        prev = row

    return int(prev[-1])


def string_similarity(a: Optional[str], b: Optional[str]) -> float:
    """Case-insensitive similarity ``1 - distance / max(len)``; equal strings score 1."""
    a = (a or "").strip().lower()
    b = (b or "").strip().lower()
    if a == b:
        return 1.0
    max_len = max(len(a), len(b))
    return 1.0 - levenshtein_distance(a, b) / max_len


def jaccard(a: AbstractSet, b: AbstractSet) -> float:
    """Jaccard overlap of two sets; 0.0 when both are empty."""
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def fingerprint_similarity(
    fp1: Fingerprint,
    fp2: Fingerprint,
    position_window: int = 10,
) -> float:
    """Average of the fingerprint factors that apply to this pair.

    Factors (each counted only when applicable):
    1. Known-for: 1.0 if both have one within ``position_window`` chars,
       0.3 if both but further apart, 0.2 if only one side has one
    2. Jaccard of quoted entities, if either side has any
    3. Jaccard of property words, if either side has any

    Returns 0.5 when no factor applies.
    """
    scores = []

    if fp1.has_known_for and fp2.has_known_for:
        distance = abs(fp1.known_for_position - fp2.known_for_position)
        scores.append(1.0 if distance < position_window else 0.3)
    elif fp1.has_known_for != fp2.has_known_for:
        scores.append(0.2)

    if fp1.quoted_entities or fp2.quoted_entities:
        scores.append(jaccard(set(fp1.quoted_entities), set(fp2.quoted_entities)))

    if fp1.property_words or fp2.property_words:
        scores.append(jaccard(set(fp1.property_words), set(fp2.property_words)))

    if not scores:
        return NEUTRAL_FINGERPRINT_SCORE
    return sum(scores) / len(scores)


def extract_known_for_clauses(text: str) -> list[str]:
    """Return the ``X`` of every "known/famous/... for X" clause in ``text``."""
    clauses = []
    for pattern in KNOWN_FOR_CLAUSE_PATTERNS:
        m = pattern.search(text)
        if m:
            clauses.append(m.group(1).strip())
    return clauses


def _any_clause_matches(clauses_a: Iterable[str], clauses_b: list[str], threshold: float) -> bool:
    return any(string_similarity(ca, cb) > threshold for ca in clauses_a for cb in clauses_b)


def asking_different_properties(
    text_a: str,
    text_b: str,
    clause_threshold: float = 0.5,
) -> bool:
    """Whether two questions ask about different facts despite a shared answer."""
    text_a = (text_a or "").lower()
    text_b = (text_b or "").lower()
    fp_a = generate_fingerprint(text_a)
    fp_b = generate_fingerprint(text_b)

    if bool(fp_a.quoted_entities) != bool(fp_b.quoted_entities):
        return True

    if fp_a.quoted_entities and not set(fp_a.quoted_entities) & set(fp_b.quoted_entities):
        return True

    if fp_a.property_words and fp_b.property_words \
            and not set(fp_a.property_words) & set(fp_b.property_words):
        return True

    clauses_a = extract_known_for_clauses(text_a)
    clauses_b = extract_known_for_clauses(text_b)
    if clauses_a and clauses_b and not _any_clause_matches(clauses_a, clauses_b, clause_threshold):
        return True

    return False
