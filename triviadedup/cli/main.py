from __future__ import annotations

import argparse
import json
import sys
import time
from typing import List, Optional, Tuple

import yaml

from triviadedup.config import AppConfig, default_app_config
from triviadedup.data.fetcher import FetchError, FetchResult, fetch_all_records
from triviadedup.data.rest import RestQuestionStore
from triviadedup.data.store import JsonlQuestionStore, QuestionStore, StoreError
from triviadedup.dedup.canonical import assign_canonicals
from triviadedup.dedup.features import extract_features
from triviadedup.dedup.grouping import DuplicateGroup, filter_groups, find_duplicate_groups, summarize_groups
from triviadedup.dedup.report import export_report, format_group, format_summary
from triviadedup.resolve.prompts import ConsolePrompter, Policy
from triviadedup.resolve.resolver import DeletionInterrupted, resolve_duplicates
from triviadedup.utils.logging import setup_logging


def build_store(cfg: AppConfig, jsonl_path: Optional[str] = None) -> QuestionStore:
    """Pick the question store: a JSONL export if given, else the REST table.

    Raises:
        ValueError: If neither a JSONL path nor a store URL and key are configured
    """
    path = jsonl_path or cfg.store.jsonl_path
    if path:
        return JsonlQuestionStore(path)
    if cfg.store.url and cfg.store.key:
        return RestQuestionStore(cfg.store.url, cfg.store.key, table=cfg.store.table)
    raise ValueError(
        "No question store configured: pass --jsonl or set SUPABASE_URL and SUPABASE_KEY"
    )


def load_config(config_path: Optional[str]) -> AppConfig:
    if config_path is None:
        return default_app_config()
    return AppConfig.from_file(config_path)


def detect_groups(
    store: QuestionStore,
    cfg: AppConfig,
    keyword: Optional[str] = None,
    show_progress: bool = False,
) -> Tuple[FetchResult, List[DuplicateGroup]]:
    """Fetch every question, group duplicates and pick canonical records."""
    fetched = fetch_all_records(
        store,
        page_size=cfg.store.page_size,
        page_delay=cfg.store.page_delay,
        show_progress=show_progress,
    )
    features = [extract_features(r) for r in fetched.records]
    groups = find_duplicate_groups(features, cfg.dedup, show_progress=show_progress)
    groups = assign_canonicals(groups)
    groups = filter_groups(groups, keyword if keyword is not None else cfg.dedup.filter_keyword)
    return fetched, groups


def print_groups(groups: List[DuplicateGroup]) -> None:
    print("\nFound potential semantic duplicate questions:")
    for number, group in enumerate(groups, start=1):
        print()
        print(format_group(group, number))
    print()
    print(format_summary(summarize_groups(groups)))


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--jsonl", help="Read questions from a JSONL export instead of the REST table")
    parser.add_argument("--config", "-c", default=None, help="Configuration file (.json or .yaml)")
    parser.add_argument("--filter", dest="filter_keyword", default=None,
                        help="Only report groups whose questions or answers mention this keyword")
    parser.add_argument("--output", "-o", help="Write the group report to this .csv or .json file")
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="triviadedup - find and remove semantically duplicate trivia questions",
        epilog="""Examples:
  # Report duplicate groups from a JSONL export
  python -m triviadedup.cli.main detect --jsonl data/questions.jsonl --output artifacts/duplicates.csv

  # Interactive removal against the Supabase table (SUPABASE_URL / SUPABASE_KEY)
  python -m triviadedup.cli.main remove

  # Unattended: remove only groups whose answers agree, without prompting
  python -m triviadedup.cli.main remove --policy 2 --yes
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    detect_parser = subparsers.add_parser("detect", help="Report duplicate groups without changing the store")
    _add_common_arguments(detect_parser)

    remove_parser = subparsers.add_parser("remove", help="Report duplicate groups and remove confirmed duplicates")
    _add_common_arguments(remove_parser)
    remove_parser.add_argument("--policy", choices=[p.value for p in Policy],
                               help="Removal policy: 1=all, 2=safe only, 3=review each group, 4=cancel")
    remove_parser.add_argument("--yes", "-y", action="store_true",
                               help="Skip the final confirmation before deleting")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        cfg = load_config(args.config)
    except FileNotFoundError:
        print(f"Error: Config file '{args.config}' not found")
        return 1
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        print(f"Error: Invalid config format in '{args.config}': {e}")
        return 1
    except (TypeError, ValueError) as e:
        print(f"Error: Invalid configuration - {e}")
        return 1

    if args.verbose:
        cfg.logging.level = "DEBUG"
    logger = setup_logging(cfg.logging.log_dir, cfg.logging.filename, cfg.logging.level, cfg.logging.structured)
    show_progress = not args.no_progress

    try:
        store = build_store(cfg, args.jsonl)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        logger.error("Store configuration error: %s", e)
        return 1

    start_time = time.time()
    try:
        print("Checking for semantically similar questions...")
        fetched, groups = detect_groups(store, cfg, args.filter_keyword, show_progress)
        print(f"Checked {len(fetched.records)} of {fetched.total_count} questions.")
        if fetched.failed_pages:
            print(f"Warning: {len(fetched.failed_pages)} pages could not be read; results are partial.")

        if args.output and groups:
            export_report(groups, args.output)
            print(f"Report written to {args.output}")

        if not groups:
            print("\nNo semantic duplicates found!")
            return 0

        if args.command == "detect":
            print_groups(groups)
            logger.info("Detection completed in %.2f seconds", time.time() - start_time)
            return 0

        print_groups(groups)
        prompter = ConsolePrompter(policy=Policy(args.policy) if args.policy else None)
        outcome = resolve_duplicates(
            groups, store, prompter, cfg.resolution,
            assume_yes=args.yes, show_progress=show_progress,
        )
        if outcome.deletion is None:
            if outcome.selection.ids or outcome.selection.cancelled:
                print("Operation cancelled. No questions were removed.")
            else:
                print("No questions selected for removal.")
        else:
            print(
                f"\nDuplicate removal complete. Removed {outcome.deletion.removed} of "
                f"{outcome.deletion.queued} queued questions."
            )
            if outcome.deletion.failed_batches:
                print(f"Warning: {len(outcome.deletion.failed_batches)} batches failed; see log for details.")
        return 0

    except FetchError as e:
        print(f"Error: {e}")
        logger.error("Fatal fetch error: %s", e)
        return 1
    except StoreError as e:
        print(f"Error: Store error - {e}")
        logger.error("Store error: %s", e, exc_info=True)
        return 1
    except ValueError as e:
        print(f"Error: {e}")
        logger.error("ValueError: %s", e)
        return 1
    except DeletionInterrupted as e:
        print(f"\nInterrupted. Removed {e.report.removed} of {e.report.queued} queued questions before stopping.")
        logger.info("Removal interrupted by user after all batches ran")
        return 0
    except KeyboardInterrupt:
        # Raised outside deletion, so nothing has been removed.
        print("\nOperation cancelled. No questions were removed.")
        logger.debug("Operation interrupted by user (KeyboardInterrupt)")
        return 0


if __name__ == "__main__":
    sys.exit(main())
