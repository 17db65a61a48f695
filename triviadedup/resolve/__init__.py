"""Resolution of duplicate groups: operator policy and batched deletion."""

from .prompts import ConsolePrompter, Decision, Policy, Prompter, ScriptedPrompter
from .resolver import (
    DeletionInterrupted,
    DeletionReport,
    ResolutionOutcome,
    Selection,
    delete_in_batches,
    resolve_duplicates,
    select_for_removal,
)

__all__ = [
    "Policy",
    "Decision",
    "Prompter",
    "ConsolePrompter",
    "ScriptedPrompter",
    "Selection",
    "DeletionReport",
    "DeletionInterrupted",
    "ResolutionOutcome",
    "select_for_removal",
    "delete_in_batches",
    "resolve_duplicates",
]
