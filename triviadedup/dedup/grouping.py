"""Two-pass duplicate grouping.

Pass 1 buckets questions by normalized correct answer and clusters each
bucket by text and fingerprint similarity, vetoing pairs that ask about
different facts of the same answer. Pass 2 sweeps whatever Pass 1 left
unclaimed and clusters by text similarity with a loose answer-agreement
check, catching rephrasings whose answers differ in spelling.

Both passes share one ``processed`` id set, so a question belongs to at
most one group. Complexity is O(n^2) in the worst case.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set

from tqdm import tqdm

from .dedup_config import DEFAULT_DEDUP_CONFIG, GENERIC_ANSWERS, DedupConfig
from .features import QuestionFeatures
from .similarity import asking_different_properties, fingerprint_similarity, string_similarity

logger = logging.getLogger(__name__)


class GroupType(str, Enum):
    ANSWER = "answer"
    TEXT = "text"


@dataclass
class DuplicateGroup:
    """Questions judged to ask the same thing.

    After canonical selection ``members[0]`` is the record to keep.
    """
    type: GroupType
    members: List[QuestionFeatures] = field(default_factory=list)
    answer: Optional[str] = None

    @property
    def canonical(self) -> QuestionFeatures:
        return self.members[0]

    @property
    def removal_candidates(self) -> List[QuestionFeatures]:
        return self.members[1:]

    @property
    def removal_ids(self) -> List[str]:
        return [m.id for m in self.removal_candidates]

    @property
    def ids(self) -> List[str]:
        return [m.id for m in self.members]

    @property
    def distinct_answers(self) -> Set[str]:
        return {m.record.correct_answer for m in self.members}

    @property
    def has_divergent_answers(self) -> bool:
        return len(self.distinct_answers) > 1

    def __len__(self) -> int:
        return len(self.members)


def _progress(items: Sequence, show_progress: bool, desc: str) -> Iterable:
    if show_progress:
        return tqdm(items, total=len(items), desc=desc, ncols=80)
    return items


def _same_question_by_answer(a: QuestionFeatures, b: QuestionFeatures, config: DedupConfig) -> bool:
    if a.intent != b.intent and asking_different_properties(
        a.text, b.text, clause_threshold=config.property_clause_threshold
    ):
        return False
    if string_similarity(a.text, b.text) <= config.answer_text_threshold:
        return False
    fp_score = fingerprint_similarity(
        a.fingerprint, b.fingerprint, position_window=config.known_for_position_window
    )
    return fp_score > config.fingerprint_threshold


def _same_question_by_text(a: QuestionFeatures, b: QuestionFeatures, config: DedupConfig) -> bool:
    if string_similarity(a.text, b.text) <= config.text_threshold:
        return False
    return string_similarity(a.normalized_answer, b.normalized_answer) > config.answer_similarity_threshold


def answer_pass(
    features: Sequence[QuestionFeatures],
    processed: Set[str],
    config: DedupConfig = DEFAULT_DEDUP_CONFIG,
    show_progress: bool = False,
) -> List[DuplicateGroup]:
    """Group questions that share a non-generic normalized answer.

    Mutates ``processed`` with every id that was examined as a group seed
    or joined a group.
    """
    buckets: Dict[str, List[QuestionFeatures]] = defaultdict(list)
    for f in features:
        if f.normalized_answer and f.normalized_answer not in GENERIC_ANSWERS:
            buckets[f.normalized_answer].append(f)

    candidates = [(answer, bucket) for answer, bucket in buckets.items() if len(bucket) >= 2]
    logger.debug("Answer pass: %d buckets with 2+ questions", len(candidates))

    groups: List[DuplicateGroup] = []
    for answer, bucket in _progress(candidates, show_progress, "Grouping by answer"):
        for i, seed in enumerate(bucket):
            if seed.id in processed:
                continue
            processed.add(seed.id)
            group = DuplicateGroup(type=GroupType.ANSWER, members=[seed], answer=answer)

            for other in bucket[i + 1:]:
                if other.id in processed:
                    continue
                if _same_question_by_answer(seed, other, config):
                    group.members.append(other)
                    processed.add(other.id)

            if len(group) > 1:
                groups.append(group)

    logger.info("Answer pass found %d groups", len(groups))
    return groups


def text_pass(
    features: Sequence[QuestionFeatures],
    processed: Set[str],
    config: DedupConfig = DEFAULT_DEDUP_CONFIG,
    show_progress: bool = False,
) -> List[DuplicateGroup]:
    """Group remaining questions with near-identical text and similar answers."""
    remaining = [f for f in features if f.id not in processed]
    if config.deny_list_in_text_pass:
        remaining = [f for f in remaining if f.normalized_answer not in GENERIC_ANSWERS]
    logger.debug("Text pass: %d unclaimed questions", len(remaining))

    groups: List[DuplicateGroup] = []
    for i, seed in enumerate(_progress(remaining, show_progress, "Grouping by text")):
        if seed.id in processed:
            continue
        processed.add(seed.id)
        group = DuplicateGroup(type=GroupType.TEXT, members=[seed])

        for other in remaining[i + 1:]:
            if other.id in processed:
                continue
            if _same_question_by_text(seed, other, config):
                group.members.append(other)
                processed.add(other.id)

        if len(group) > 1:
            groups.append(group)

    logger.info("Text pass found %d groups", len(groups))
    return groups


def find_duplicate_groups(
    features: Sequence[QuestionFeatures],
    config: DedupConfig = DEFAULT_DEDUP_CONFIG,
    show_progress: bool = False,
) -> List[DuplicateGroup]:
    """Run both passes over ``features`` (in fetch order).

    Returns answer groups followed by text groups. Members are in
    grouping order; canonical selection is a separate step.
    """
    processed: Set[str] = set()
    groups = answer_pass(features, processed, config, show_progress)
    groups.extend(text_pass(features, processed, config, show_progress))
    logger.info(
        "Found %d duplicate groups over %d questions", len(groups), len(features),
        extra={"group_count": len(groups), "record_count": len(features)},
    )
    return groups


def filter_groups(groups: Iterable[DuplicateGroup], keyword: Optional[str]) -> List[DuplicateGroup]:
    """Keep groups where some member's question or answer mentions ``keyword``."""
    groups = list(groups)
    if not keyword:
        return groups
    needle = keyword.lower()
    kept = [
        g for g in groups
        if any(
            needle in (m.record.question_text or "").lower()
            or needle in (m.record.correct_answer or "").lower()
            for m in g.members
        )
    ]
    logger.info("Filter %r kept %d of %d groups", keyword, len(kept), len(groups))
    return kept


def summarize_groups(groups: Sequence[DuplicateGroup]) -> dict:
    """Summary statistics for a set of groups."""
    answer_groups = sum(1 for g in groups if g.type == GroupType.ANSWER)
    return {
        "total_groups": len(groups),
        "answer_groups": answer_groups,
        "text_groups": len(groups) - answer_groups,
        "questions_in_groups": sum(len(g) for g in groups),
        "removal_candidates": sum(len(g.removal_candidates) for g in groups),
        "divergent_answer_groups": sum(1 for g in groups if g.has_divergent_answers),
    }
