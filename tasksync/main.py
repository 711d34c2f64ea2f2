"""
Main application entry point
"""

import argparse
import asyncio
from typing import List, Optional

from tasksync.config.settings import settings
from tasksync.db.repository import SqliteRepository
from tasksync.services.filter_service import ViewBucket, classify, sort_by_due_date
from tasksync.services.sync_service import SyncService
from tasksync.utils.date_utils import get_current_date
from tasksync.utils.error_handler import StorageError, format_error_message
from tasksync.utils.formatters import format_bucket_counts, format_reconcile_report, format_task_list
from tasksync.utils.logger import logger


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tasksync", description="Sync GitHub work items into local tasks")
    parser.add_argument("--db", default=None, help="Path to the SQLite database")
    parser.add_argument("--no-sync", action="store_true", help="Only show local views")
    parser.add_argument(
        "--view",
        choices=[b.value for b in ViewBucket],
        default=None,
        help="Print the tasks of one view",
    )
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """Run one sync pass and print the view summary"""
    args = _parse_args(argv)
    db_path = args.db or settings.database_file()

    if not args.no_sync:
        try:
            settings.validate()
        except ValueError as e:
            logger.error(f"Invalid configuration: {e}")
            print(f"{e}. Set them in .env or use --no-sync.")
            return 1

    try:
        repository = SqliteRepository(db_path)
    except StorageError as e:
        print(format_error_message(e))
        return 1

    with repository:
        if not args.no_sync:
            service = SyncService(repository)
            result = await service.sync_once()
            if result.success and result.report is not None:
                print(format_reconcile_report(result.report))
            elif result.error is not None:
                print(result.error.message)

        try:
            tasks = repository.get_all_tasks()
        except StorageError as e:
            print(format_error_message(e))
            return 1

        today = get_current_date()
        buckets = classify(tasks, today)
        print(format_bucket_counts({bucket: len(items) for bucket, items in buckets.items()}))

        if args.view:
            print()
            print(format_task_list(sort_by_due_date(buckets[ViewBucket(args.view)])))

    logger.debug("tasksync finished")
    return 0


def run() -> None:
    """Console script entry point"""
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
