#!/usr/bin/env python3
"""Peloton: weekly cycling news report for Notion.

This CLI tool reads the NOS cycling RSS feed, keeps recent road-cycling
items, has a Cerebras model write one Dutch narrative and stores it as a new
page in a Notion database.

Commands:
    run          Execute the pipeline once
    preview      Fetch and filter the feed without calling the model
    check-store  Verify the Notion connection and required columns
    status       Show the effective configuration

Examples:
    python main.py run                 # Weekly window (DAYS_BACK, default 6)
    python main.py run --days 2        # Short test window
    python main.py run --json          # Print the run result as JSON
    python main.py preview --days 3
    python main.py check-store

Environment:
    CEREBRAS_API_KEY, NOTION_API_KEY, NOTION_DATABASE_ID are required for run.
    A .env file in the working directory is loaded automatically.
    See config.py for all configuration options.
"""

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from config import IGNORED_KEYWORDS, Config
from observability.logging import setup_logging


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def cmd_run(args: argparse.Namespace, config: Config) -> int:
    """Execute the pipeline once.

    Returns:
        Exit code (0 when the run succeeded)
    """
    from pipeline import run_once

    days_back = args.days or config.days_back
    logger = logging.getLogger(__name__)

    try:
        result = asyncio.run(run_once(config, days_back))
    except KeyboardInterrupt:
        logger.info("Stopped by user (Ctrl+C)")
        return 130

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print("\n--- LOGS ---")
        for line in result.logs:
            print(line)
        print("\n--- OUTPUT ---")
        print(result.content)

    return 0 if result.success else 1


def cmd_preview(args: argparse.Namespace, config: Config) -> int:
    """Fetch and filter the feed and list the items that would be summarized."""
    from errors import FetchError
    from models.run import RunLog
    from pipeline import Pipeline

    days_back = args.days or config.days_back
    pipeline = Pipeline(config)
    log = RunLog()

    try:
        items = asyncio.run(pipeline.fetch_and_filter(days_back, log))
    except FetchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not items:
        print(f"No items in the last {days_back} days.")
        return 0

    print(f"\n=== {len(items)} item(s) from the last {days_back} days ===\n")
    for item in items:
        print(f"- {item.title}")
        print(f"   Published: {item.published_at:%Y-%m-%d %H:%M}")
        print(f"   Link: {item.link}")
    return 0


def cmd_check_store(args: argparse.Namespace, config: Config) -> int:
    """Verify that the Notion database is reachable and has the right columns."""
    from errors import PersistError
    from notion_store import NotionStore

    try:
        check = asyncio.run(NotionStore(config).check_database())
    except PersistError as e:
        print(f"Notion Error: {e}", file=sys.stderr)
        return 1

    print(check.message)
    return 0 if check.success else 1


def cmd_status(args: argparse.Namespace, config: Config) -> int:
    """Display the effective configuration with secrets redacted."""
    status = {
        "feed_url": config.feed_url,
        "days_back": config.days_back,
        "ignored_keywords": list(IGNORED_KEYWORDS),
        "models": config.models,
        "cerebras_base_url": config.cerebras_base_url,
        "cerebras_api_key_set": bool(config.cerebras_api_key),
        "notion_api_key_set": bool(config.notion_api_key),
        "notion_database_id": config.notion_database_id,
        "log_dir": str(config.log_dir),
        "log_level": config.log_level,
    }
    print(json.dumps(status, indent=2))
    return 0


def main() -> int:
    """Main entry point.

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        description="Peloton: weekly cycling news report for Notion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the pipeline once")
    run_parser.add_argument(
        "--days",
        type=_positive_int,
        help="Look back N days (default: DAYS_BACK)",
    )
    run_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the run result as JSON",
    )

    preview_parser = subparsers.add_parser("preview", help="Fetch and filter without summarizing")
    preview_parser.add_argument(
        "--days",
        type=_positive_int,
        help="Look back N days (default: DAYS_BACK)",
    )

    subparsers.add_parser("check-store", help="Verify the Notion database")
    subparsers.add_parser("status", help="Show configuration")

    args = parser.parse_args()

    load_dotenv()
    try:
        config = Config.load()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(config, verbose=args.verbose)

    # Only run needs every secret; check-store needs Notion but reports it itself
    if args.command in ("run", "preview", "check-store"):
        error = config.validate(require_secrets=args.command == "run")
        if error:
            print(f"Configuration error: {error}", file=sys.stderr)
            return 1

    commands = {
        "run": cmd_run,
        "preview": cmd_preview,
        "check-store": cmd_check_store,
        "status": cmd_status,
    }

    if args.command in commands:
        try:
            return commands[args.command](args, config)
        except Exception as e:
            logging.getLogger(__name__).error("Command failed | cmd=%s error=%s", args.command, e, exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
