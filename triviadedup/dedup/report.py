"""Rendering and export of duplicate groups.

Console output mirrors what an operator needs to judge a group: every
member with its keep/remove tag, the words that set it apart from the
canonical record, and a warning when the members disagree on the answer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence, Union

import pandas as pd

from .grouping import DuplicateGroup, GroupType

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "group",
    "group_type",
    "group_answer",
    "keep",
    "id",
    "question_text",
    "correct_answer",
    "topic",
    "subtopic",
    "difficulty",
    "created_at",
    "intent",
    "differing_words",
    "different_answer",
]

_TYPE_LABELS = {GroupType.ANSWER: "Same Answer", GroupType.TEXT: "Similar Text"}


def differing_words(reference: str, other: str) -> List[str]:
    """Words (longer than two chars) in ``other`` that ``reference`` lacks."""
    ref_words = {w for w in (reference or "").lower().split() if len(w) > 2}
    seen = set()
    unique = []
    for w in (other or "").lower().split():
        if len(w) > 2 and w not in ref_words and w not in seen:
            seen.add(w)
            unique.append(w)
    return unique


def _or_unknown(value) -> str:
    return str(value) if value else "Unknown"


def format_group(group: DuplicateGroup, number: int) -> str:
    lines = [
        f"----- Duplicate Group #{number} ({len(group)} questions) -----",
        f"Type: {_TYPE_LABELS[group.type]}",
    ]
    if group.answer is not None:
        lines.append(f'Answer: "{group.answer}"')
    if group.has_divergent_answers:
        lines.append("WARNING: This group contains questions with different answers")

    keep = group.canonical.record
    for index, member in enumerate(group.members):
        record = member.record
        tag = "(KEEPING)" if index == 0 else "(REMOVING)"
        created = record.created_at.strftime("%Y-%m-%d %H:%M:%S %Z") if record.created_at else "Unknown"
        lines.extend([
            "",
            f"  [{index + 1}] ID: {record.id} {tag}",
            f"      Text: {record.question_text}",
            f"      Answer: {_or_unknown(record.correct_answer)}",
            f"      Topic: {_or_unknown(record.topic)}",
            f"      Subtopic: {_or_unknown(record.subtopic)}",
            f"      Difficulty: {record.difficulty.value}",
            f"      Created: {created}",
        ])
        if index > 0:
            unique = differing_words(keep.question_text, record.question_text)
            if unique:
                lines.append(f"      Unique words: {', '.join(unique)}")
            if record.correct_answer != keep.correct_answer:
                lines.append("      DIFFERENT ANSWER from question to keep")
    return "\n".join(lines)


def format_summary(summary: dict) -> str:
    lines = [
        "=== Summary ===",
        f"Found {summary['total_groups']} duplicate groups "
        f"({summary['answer_groups']} by answer, {summary['text_groups']} by text) "
        f"with a total of {summary['questions_in_groups']} questions.",
        f"Will keep {summary['total_groups']} questions (1 per group) "
        f"and remove {summary['removal_candidates']} duplicates.",
    ]
    if summary.get("divergent_answer_groups"):
        lines.append(
            f"IMPORTANT: {summary['divergent_answer_groups']} groups have questions with different answers. "
            "These might be false positives that shouldn't be merged."
        )
    return "\n".join(lines)


def groups_to_frame(groups: Sequence[DuplicateGroup]) -> pd.DataFrame:
    """One row per group member, canonical first within each group."""
    rows = []
    for number, group in enumerate(groups, start=1):
        keep = group.canonical.record
        for index, member in enumerate(group.members):
            record = member.record
            rows.append({
                "group": number,
                "group_type": group.type.value,
                "group_answer": group.answer,
                "keep": index == 0,
                "id": record.id,
                "question_text": record.question_text,
                "correct_answer": record.correct_answer,
                "topic": record.topic,
                "subtopic": record.subtopic,
                "difficulty": record.difficulty.value,
                "created_at": record.created_at.isoformat() if record.created_at else None,
                "intent": member.intent,
                "differing_words": " ".join(differing_words(keep.question_text, record.question_text))
                if index > 0 else "",
                "different_answer": record.correct_answer != keep.correct_answer,
            })
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def export_report(groups: Sequence[DuplicateGroup], path: Union[str, Path]) -> Path:
    """Write the group report as CSV or JSON, chosen by file suffix.

    Raises:
        ValueError: If the suffix is neither .csv nor .json
    """
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix not in (".csv", ".json"):
        raise ValueError(f"Unsupported report format: {p.suffix or '(none)'} (use .csv or .json)")

    df = groups_to_frame(groups)
    p.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".csv":
        df.to_csv(p, index=False)
    else:
        df.to_json(p, orient="records", indent=2, force_ascii=False)
    logger.info("Wrote report with %d rows to %s", len(df), p)
    return p
