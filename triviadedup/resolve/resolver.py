"""Removal policy and batched deletion.

Selection turns groups plus an operator policy into an ordered list of ids
to delete; only non-canonical members are ever selected. Deletion runs in
small batches with a pause between them. A batch that fails is logged and
counted, and the remaining batches still run.
"""

from __future__ import annotations

import logging
import signal
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from tqdm import tqdm

from ..config import ResolutionConfig
from ..data.store import QuestionStore
from ..dedup.grouping import DuplicateGroup, summarize_groups
from .prompts import Decision, Policy, Prompter

logger = logging.getLogger(__name__)


@dataclass
class Selection:
    ids: List[str] = field(default_factory=list)
    groups_selected: int = 0
    unsafe_groups: int = 0
    cancelled: bool = False


@dataclass
class DeletionReport:
    queued: int = 0
    removed: int = 0
    failed_batches: List[int] = field(default_factory=list)  # 1-based batch indices
    interrupted: bool = False


@dataclass
class ResolutionOutcome:
    policy: Policy
    selection: Selection
    confirmed: bool = False
    deletion: Optional[DeletionReport] = None

    @property
    def removed(self) -> int:
        return self.deletion.removed if self.deletion else 0


class DeletionInterrupted(KeyboardInterrupt):
    """Re-raised after all batches ran when SIGINT arrived mid-deletion."""

    def __init__(self, report: DeletionReport):
        super().__init__(f"Interrupted during deletion ({report.removed}/{report.queued} removed)")
        self.report = report


class _InterruptState:
    def __init__(self):
        self.received = False


@contextmanager
def deferred_interrupts():
    """Hold SIGINT until the block finishes.

    Only the main thread can install signal handlers; elsewhere the block
    runs unprotected.
    """
    state = _InterruptState()
    if threading.current_thread() is not threading.main_thread():
        yield state
        return

    def handler(signum, frame):
        state.received = True
        logger.warning("Interrupt received during deletion; finishing remaining batches first")

    old_handler = signal.signal(signal.SIGINT, handler)
    try:
        yield state
    finally:
        signal.signal(signal.SIGINT, old_handler)


def _add_group(selection: Selection, group: DuplicateGroup, seen: set) -> None:
    selection.groups_selected += 1
    for id_ in group.removal_ids:
        if id_ not in seen:
            seen.add(id_)
            selection.ids.append(id_)


def select_for_removal(
    groups: Sequence[DuplicateGroup],
    policy: Policy,
    prompter: Optional[Prompter] = None,
) -> Selection:
    """Collect the non-canonical ids to delete under ``policy``.

    Raises:
        ValueError: If ``policy`` is REVIEW and no prompter is given
    """
    selection = Selection()
    seen: set = set()

    if policy == Policy.CANCEL:
        selection.cancelled = True
        return selection

    if policy == Policy.REMOVE_ALL:
        for group in groups:
            _add_group(selection, group, seen)
        logger.info("Will remove all %d duplicate questions", len(selection.ids))

    elif policy == Policy.REMOVE_SAFE:
        for group in groups:
            if group.has_divergent_answers:
                selection.unsafe_groups += 1
                continue
            _add_group(selection, group, seen)
        logger.info(
            "Will remove %d duplicate questions from %d safe groups; skipping %d groups with different answers",
            len(selection.ids), selection.groups_selected, selection.unsafe_groups,
        )

    elif policy == Policy.REVIEW:
        if prompter is None:
            raise ValueError("Review policy requires a prompter")
        total = len(groups)
        for i, group in enumerate(groups):
            decision = prompter.review_group(group, i, total)
            if decision == Decision.ALL:
                for remaining in groups[i:]:
                    _add_group(selection, remaining, seen)
                break
            if decision == Decision.YES:
                _add_group(selection, group, seen)
        logger.info("Will remove %d questions after individual review", len(selection.ids))

    return selection


def delete_in_batches(
    store: QuestionStore,
    ids: Sequence[str],
    batch_size: int = 10,
    batch_delay: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
    show_progress: bool = False,
) -> DeletionReport:
    """Delete ``ids`` from ``store`` in batches of ``batch_size``.

    SIGINT is deferred until every batch has been attempted.

    Raises:
        DeletionInterrupted: If an interrupt arrived while deleting
        ValueError: If batch_size is not positive
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    ids = list(ids)
    report = DeletionReport(queued=len(ids))
    batches = [ids[i:i + batch_size] for i in range(0, len(ids), batch_size)]
    start = time.time()

    with deferred_interrupts() as interrupts:
        iterator = enumerate(batches, start=1)
        if show_progress:
            iterator = tqdm(iterator, total=len(batches), desc="Deleting", ncols=80)

        for batch_index, batch in iterator:
            if batch_index > 1 and batch_delay > 0:
                sleep(batch_delay)
            try:
                removed = store.delete_batch(batch)
            except Exception as e:
                report.failed_batches.append(batch_index)
                logger.error(
                    "Error removing batch %d: %s", batch_index, e,
                    extra={"batch_index": batch_index, "batch_size": len(batch), "error_type": type(e).__name__},
                )
                continue
            report.removed += removed
            logger.debug("Progress: %d/%d questions removed", report.removed, report.queued)

        report.interrupted = interrupts.received

    logger.info(
        "Duplicate removal complete. Removed %d of %d queued questions (%d failed batches)",
        report.removed, report.queued, len(report.failed_batches),
        extra={"duration_ms": round((time.time() - start) * 1000, 1)},
    )
    if report.interrupted:
        raise DeletionInterrupted(report)
    return report


def resolve_duplicates(
    groups: Sequence[DuplicateGroup],
    store: QuestionStore,
    prompter: Prompter,
    config: Optional[ResolutionConfig] = None,
    assume_yes: bool = False,
    sleep: Callable[[float], None] = time.sleep,
    show_progress: bool = False,
) -> ResolutionOutcome:
    """Choose a policy, select ids, confirm, then delete.

    Nothing is deleted unless the operator confirms or ``assume_yes`` is set.
    """
    config = config or ResolutionConfig()
    policy = prompter.choose_policy(summarize_groups(groups))
    selection = select_for_removal(groups, policy, prompter)
    outcome = ResolutionOutcome(policy=policy, selection=selection)

    if selection.cancelled:
        logger.debug("Resolution cancelled by operator")
        return outcome
    if not selection.ids:
        logger.debug("No questions selected for removal")
        return outcome

    outcome.confirmed = assume_yes or prompter.confirm_removal(len(selection.ids))
    if not outcome.confirmed:
        logger.debug("Removal not confirmed by operator")
        return outcome

    outcome.deletion = delete_in_batches(
        store,
        selection.ids,
        batch_size=config.batch_size,
        batch_delay=config.batch_delay,
        sleep=sleep,
        show_progress=show_progress,
    )
    return outcome
