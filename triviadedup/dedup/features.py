"""Per-question feature extraction.

Every question is reduced once per run to a normalized answer, a keyword
set, a structural fingerprint and an intent label. All functions here are
pure; nothing is cached between runs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional, Sequence, Tuple

from ..data.schemas import QuestionRecord
from .dedup_config import KNOWN_FOR_RE, PROPERTY_WORDS, QUOTE_RE, STOP_WORDS

_NON_WORD = re.compile(r"[^\w]")
_WHICH_NOUN_RE = re.compile(r"\bwhich\s+([a-z]+)\b")
_KNOWN_FOR_WORD_RE = re.compile(r"\b(known|famous|recognized|remembered|celebrated)\s+(for|as)\b")
_DATE_VERB_RE = re.compile(r"\b(occur|happened|established|founded|created|built|launched|released|started)\b")
_CREATION_VERB_RE = re.compile(r"\b(paint|wrote|directed|composed|created|designed|built|constructed)\b")


@dataclass(frozen=True)
class Fingerprint:
    """Structural features used to tell apart questions sharing an answer."""
    has_known_for: bool = False
    known_for_position: int = -1
    quoted_entities: Tuple[str, ...] = ()
    property_words: Tuple[str, ...] = ()


@dataclass(frozen=True)
class QuestionFeatures:
    record: QuestionRecord
    normalized_answer: str
    keywords: FrozenSet[str]
    fingerprint: Fingerprint
    intent: str

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def text(self) -> str:
        return self.record.question_text


def normalize_answer(answer: Optional[str]) -> str:
    return answer.strip().lower() if answer else ""


def extract_keywords(text: Optional[str]) -> FrozenSet[str]:
    """Extract meaningful keywords: tokens longer than two chars, minus stop words."""
    if not text:
        return frozenset()
    words = (w.lower() for w in _NON_WORD.split(text))
    return frozenset(w for w in words if len(w) > 2 and w not in STOP_WORDS)


def extract_quoted_entities(text: str) -> Tuple[str, ...]:
    entities = []
    for match in QUOTE_RE.finditer(text):
        entity = next(g for g in match.groups() if g is not None)
        if len(entity) > 2:
            entities.append(entity.lower())
    return tuple(entities)


def generate_fingerprint(text: Optional[str]) -> Fingerprint:
    """Capture known-for clauses, quoted entities and property words."""
    if not text:
        return Fingerprint()

    lowered = text.lower()
    known_for = KNOWN_FOR_RE.search(lowered)
    return Fingerprint(
        has_known_for=known_for is not None,
        known_for_position=known_for.start() if known_for else -1,
        quoted_entities=extract_quoted_entities(lowered),
        property_words=tuple(w for w in PROPERTY_WORDS if w in lowered),
    )


# ---------------------------------------------------------------------------
# Intent classification
# ---------------------------------------------------------------------------

IntentRule = Callable[[str], Optional[str]]


def _has_any(text: str, words: Sequence[str]) -> bool:
    return any(w in text for w in words)


def _rule(label: str, predicate: Callable[[str], bool]) -> IntentRule:
    def apply(text: str) -> Optional[str]:
        return label if predicate(text) else None
    apply.__name__ = f"rule_{label}"
    return apply


def _which_noun(text: str) -> Optional[str]:
    m = _WHICH_NOUN_RE.search(text)
    return f"which_{m.group(1)}" if m else None


def _question_word_fallback(text: str) -> Optional[str]:
    for word in ("what", "which", "where", "when", "who", "why", "how"):
        if word in text:
            return f"{word}_general"
    return None


# Checked top to bottom; the first rule returning a label wins. Specific
# intents precede the bare question-word fallback ("how many" is a quantity,
# not how_general).
INTENT_RULES: Tuple[Tuple[str, IntentRule], ...] = (
    ("year_or_date", _rule("year_or_date", lambda t: _has_any(t, ("year", "date", "when"))
                           and _DATE_VERB_RE.search(t) is not None)),
    ("location", _rule("location", lambda t: _has_any(t, ("where", "location", "place"))
                       or ("which" in t and _has_any(t, ("country", "city", "continent", "region", "located"))))),
    ("person", _rule("person", lambda t: "who" in t
                     or ("which" in t and _has_any(t, ("person", "individual", "actor", "actress", "scientist", "artist"))))),
    ("quantity", _rule("quantity", lambda t: _has_any(
        t, ("how many", "how much", "number of", "amount of", "percentage", "proportion")))),
    ("reason", _rule("reason", lambda t: _has_any(t, ("why", "reason")))),
    ("process", _rule("process", lambda t: _has_any(t, ("how does", "how do", "process", "mechanism")))),
    ("definition", _rule("definition", lambda t: _has_any(t, ("what is", "what are"))
                         and _has_any(t, ("defined", "definition", "characterized", "term")))),
    ("characteristic", _rule("characteristic", lambda t: _has_any(
        t, ("characteristic", "feature", "property", "attribute", "adaptation", "trait")))),
    ("example", _rule("example", lambda t: _has_any(t, ("example", "instance")))),
    ("comparison", _rule("comparison", lambda t: _has_any(
        t, ("compared", "difference", "contrast", "versus", "vs")))),
    ("category", _rule("category", lambda t: _has_any(t, ("category", "type", "classification", "classified")))),
    ("which_noun", _which_noun),
    ("known_for", _rule("known_for", lambda t: _KNOWN_FOR_WORD_RE.search(t) is not None)),
    ("creation", _rule("creation", lambda t: _CREATION_VERB_RE.search(t) is not None)),
    ("question_word", _question_word_fallback),
)


def classify_intent(text: Optional[str]) -> str:
    """Return the kind of answer a question asks for (``unknown`` if no rule fires)."""
    if not text:
        return "unknown"
    lowered = text.lower()
    for _, rule in INTENT_RULES:
        label = rule(lowered)
        if label:
            return label
    return "unknown"


def extract_features(record: QuestionRecord) -> QuestionFeatures:
    return QuestionFeatures(
        record=record,
        normalized_answer=normalize_answer(record.correct_answer),
        keywords=extract_keywords(record.question_text),
        fingerprint=generate_fingerprint(record.question_text),
        intent=classify_intent(record.question_text),
    )
