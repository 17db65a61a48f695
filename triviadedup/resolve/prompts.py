"""Operator interaction for the resolution step.

The resolver never reads stdin directly; it asks a ``Prompter``. The console
prompter is line based and can be given the policy up front for unattended
runs. The scripted prompter replays canned answers in tests.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable, Optional, Protocol

from ..dedup.grouping import DuplicateGroup, GroupType

logger = logging.getLogger(__name__)


class Policy(str, Enum):
    REMOVE_ALL = "1"
    REMOVE_SAFE = "2"
    REVIEW = "3"
    CANCEL = "4"

    @classmethod
    def parse(cls, text: Optional[str]) -> "Policy":
        """Map an operator choice to a policy; anything unrecognized cancels."""
        try:
            return cls((text or "").strip())
        except ValueError:
            return cls.CANCEL


class Decision(str, Enum):
    YES = "yes"
    NO = "no"
    ALL = "all"
    SKIP = "skip"

    @classmethod
    def parse(cls, text: Optional[str]) -> "Decision":
        """Map a review response to a decision; anything unrecognized is NO."""
        value = (text or "").strip().lower()
        if value in ("yes", "y"):
            return cls.YES
        if value == "all":
            return cls.ALL
        if value == "skip":
            return cls.SKIP
        return cls.NO


POLICY_MENU = (
    "Options:\n"
    "1. Remove all duplicates\n"
    "2. Remove only duplicates with identical answers (safer option)\n"
    "3. Review each group individually\n"
    "4. Cancel and exit"
)


def is_confirmation(text: Optional[str]) -> bool:
    return (text or "").strip().lower() in ("yes", "y")


class Prompter(Protocol):
    def choose_policy(self, summary: dict) -> Policy:
        ...

    def review_group(self, group: DuplicateGroup, index: int, total: int) -> Decision:
        ...

    def confirm_removal(self, count: int) -> bool:
        ...


def format_review(group: DuplicateGroup, index: int, total: int) -> str:
    """Compact group view shown during one-by-one review (``index`` is 0-based)."""
    lines = [
        f"----- Group {index + 1}/{total} -----",
        f"Type: {'Same Answer' if group.type == GroupType.ANSWER else 'Similar Text'}",
    ]
    if group.answer is not None:
        lines.append(f'Answer: "{group.answer}"')
    if group.has_divergent_answers:
        lines.append("WARNING: This group has questions with different answers")
    for j, member in enumerate(group.members):
        lines.append("")
        lines.append(f"  [{j + 1}] {'(KEEPING)' if j == 0 else '(TO REMOVE)'}")
        lines.append(f"      {member.text}")
        lines.append(f"      Answer: {member.record.correct_answer or 'Unknown'}")
    return "\n".join(lines)


class ConsolePrompter:
    """Interactive prompter over ``input``/``print``. End of input means cancel.

    A preset ``policy`` skips the option menu; reviews and the final
    confirmation are still asked.
    """

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
        policy: Optional[Policy] = None,
    ):
        self._input = input_fn
        self._output = output_fn
        self._preset_policy = policy

    def _ask(self, prompt: str) -> Optional[str]:
        try:
            return self._input(prompt)
        except EOFError:
            logger.info("End of input while prompting; treating as cancel")
            return None

    def choose_policy(self, summary: dict) -> Policy:
        if self._preset_policy is not None:
            logger.info("Using preset policy %s", self._preset_policy.name)
            return self._preset_policy
        self._output("")
        self._output(POLICY_MENU)
        return Policy.parse(self._ask("\nChoose an option (1-4): "))

    def review_group(self, group: DuplicateGroup, index: int, total: int) -> Decision:
        self._output("")
        self._output(format_review(group, index, total))
        return Decision.parse(self._ask("\nRemove duplicates from this group? (yes/no/all/skip): "))

    def confirm_removal(self, count: int) -> bool:
        return is_confirmation(self._ask(f"\nConfirm removal of {count} questions? (yes/no): "))


class ScriptedPrompter:
    """Replays pre-recorded answers.

    ``policy`` is returned from ``choose_policy``; ``reviews`` are consumed
    one per reviewed group (running out means NO); ``confirm`` answers the
    final confirmation. Every prompt is appended to ``calls``.
    """

    def __init__(
        self,
        policy: Policy = Policy.CANCEL,
        reviews: Iterable[Decision] = (),
        confirm: bool = False,
    ):
        self.policy = policy
        self._reviews = list(reviews)
        self.confirm = confirm
        self.calls: list = []

    def choose_policy(self, summary: dict) -> Policy:
        self.calls.append(("choose_policy", summary.get("total_groups")))
        return self.policy

    def review_group(self, group: DuplicateGroup, index: int, total: int) -> Decision:
        self.calls.append(("review_group", index))
        return self._reviews.pop(0) if self._reviews else Decision.NO

    def confirm_removal(self, count: int) -> bool:
        self.calls.append(("confirm_removal", count))
        return self.confirm
