#!/usr/bin/env python
"""Onboard or offboard a repository without going through the webhook.

Usage:
    python -m scripts.backfill onboard octo-org/octo-repo --installation-id 123
    python -m scripts.backfill offboard octo-org/octo-repo

Onboarding enumerates the repository's issues and comments and indexes
them in this process; offboarding deletes all of its vectors.
"""

import argparse
import asyncio
import sys

from issuedigger.api.container import ServiceContainer
from issuedigger.config import get_settings
from issuedigger.logging_config import get_logger, setup_logging
from issuedigger.queue import Offboard, Onboard
from issuedigger.vectors import RepositoryKey
from issuedigger.worker import BackfillResult

logger = get_logger(__name__)

IDLE_POLL_SECONDS = 0.1


async def drain(container: ServiceContainer, producer: asyncio.Task[BackfillResult]) -> None:
    """Consume the queue until the producer is done and nothing is pending."""
    queue = container.queue

    while not producer.done() or queue.qsize():
        if not queue.qsize():
            await asyncio.sleep(IDLE_POLL_SECONDS)
            continue
        batch = await queue.receive_batch()
        await container.consumer.process_batch(batch)


async def run_onboard(
    repository: RepositoryKey,
    installation_id: int,
    limit: int | None = None,
) -> bool:
    """Index a repository; returns whether all items were submitted."""
    settings = get_settings()
    if limit is not None:
        settings = settings.model_copy(
            update={"github": settings.github.model_copy(update={"onboarding_lookback_limit": limit})}
        )

    container = ServiceContainer.build(settings)
    try:
        await container.start(consume=False)

        item = Onboard(
            repo_owner=repository.owner,
            repo_name=repository.name,
            installation_id=installation_id,
        )
        producer = asyncio.create_task(container.dispatcher.onboard(item))
        await drain(container, producer)
        result = producer.result()
    finally:
        await container.close()

    print("\n" + "=" * 60)
    print("ONBOARDING SUMMARY")
    print("=" * 60)
    print(f"Repository: {repository}")
    print(f"Items submitted: {result.submitted}")
    print(f"Lookback limit: {settings.github.onboarding_lookback_limit}")
    if not result.complete:
        print("Backfill stopped early: the work queue rejected an item")
    print("=" * 60)

    return result.complete


async def run_offboard(repository: RepositoryKey) -> bool:
    """Delete all vectors of a repository."""
    container = ServiceContainer.build()
    try:
        swept = await container.dispatcher.offboard(
            Offboard(repo_owner=repository.owner, repo_name=repository.name)
        )
    finally:
        await container.close()

    print(f"\nOffboarded {repository}: {swept} vectors deleted")
    return True


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Onboard or offboard a repository",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    onboard = subparsers.add_parser("onboard", help="Index all issues and comments")
    onboard.add_argument("repository", help="Repository as owner/name")
    onboard.add_argument(
        "--installation-id",
        type=int,
        required=True,
        help="GitHub App installation with access to the repository",
    )
    onboard.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of items to index (default from settings)",
    )

    offboard = subparsers.add_parser("offboard", help="Delete all vectors")
    offboard.add_argument("repository", help="Repository as owner/name")

    args = parser.parse_args()
    setup_logging(level=args.log_level)

    try:
        repository = RepositoryKey.from_full_name(args.repository)
    except ValueError as e:
        parser.error(str(e))

    if args.command == "onboard":
        ok = asyncio.run(run_onboard(repository, args.installation_id, args.limit))
    else:
        ok = asyncio.run(run_offboard(repository))

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
