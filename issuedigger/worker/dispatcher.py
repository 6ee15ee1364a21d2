"""Dispatch of work items to their side effects."""

import time
from dataclasses import dataclass
from typing import assert_never

from issuedigger.entity.store import EntityStore
from issuedigger.exceptions import IssueDiggerError
from issuedigger.github.models import GitHubItem
from issuedigger.github.registry import GitHubClientRegistry
from issuedigger.logging_config import get_logger
from issuedigger.observability import track_similarity_response
from issuedigger.queue.messages import (
    IndexItem,
    Offboard,
    Onboard,
    PostComment,
    ReindexComments,
    WorkItem,
)
from issuedigger.queue.transport import WorkQueue
from issuedigger.routing.submitter import Submitter
from issuedigger.similarity.responder import SimilarityResponder
from issuedigger.vectors.naming import base_vector_id
from issuedigger.vectorstore.gateway import VectorIndexGateway

logger = get_logger(__name__)


@dataclass(frozen=True)
class BackfillResult:
    """What one backfill submitted, and whether it ran to its end.

    Stopping at the lookback limit still counts as complete; a submission
    rejected by the queue does not.
    """

    submitted: int
    complete: bool


def _index_item(item: GitHubItem, installation_id: int) -> IndexItem:
    return IndexItem(
        kind=item.kind,
        repo_owner=item.repository.owner,
        repo_name=item.repository.name,
        issue_number=item.issue_number,
        title=item.title,
        body=item.body,
        is_self_authored=item.is_self_authored,
        installation_id=installation_id,
    )


class Dispatcher:
    """Performs the side effect of each work item, chosen by its type.

    Errors that indicate a bug (invalid metadata, vector collisions) and
    errors of the indexing path propagate, so the transport can redeliver.
    Partial failures of sweeps and comment posting are logged and skipped.
    """

    def __init__(
        self,
        entity_store: EntityStore,
        gateway: VectorIndexGateway,
        responder: SimilarityResponder,
        registry: GitHubClientRegistry,
        queue: WorkQueue,
        onboarding_lookback_limit: int = 1000,
    ) -> None:
        self._entity_store = entity_store
        self._gateway = gateway
        self._responder = responder
        self._registry = registry
        # Items re-emitted from the API cannot be app commands.
        self._submitter = Submitter(queue)
        self._lookback_limit = onboarding_lookback_limit

    async def handle(self, item: WorkItem) -> None:
        """Perform the side effect of one work item."""
        start = time.perf_counter()
        logger.debug("Processing message", extra={"type": item.type})

        match item:
            case IndexItem():
                await self._entity_store.apply(item)
            case Onboard():
                await self.onboard(item)
            case Offboard():
                await self.offboard(item)
            case ReindexComments():
                await self._reindex_comments(item)
            case PostComment():
                await self._post_comment(item)
            case _:
                assert_never(item)

        logger.debug(
            "Processed message",
            extra={"type": item.type, "duration_ms": round((time.perf_counter() - start) * 1000, 2)},
        )

    async def onboard(self, item: Onboard) -> BackfillResult:
        """Backfill a repository."""
        client = self._registry.get(item.installation_id)
        repository = item.repository
        logger.info(f"Backfilling issues for repo {repository}")

        complete = True
        count = 0
        async for github_item in client.iter_issues_with_comments(repository):
            if count >= self._lookback_limit:
                logger.info(f"Reached lookback limit ({self._lookback_limit}), stopping")
                break

            logger.debug(
                f"Backfilling item {github_item.issue_number} {github_item.kind.value}"
            )
            if not await self._submitter.submit(_index_item(github_item, item.installation_id)):
                # Queue saturated; stop producing.
                logger.error(
                    "Stopping backfill, work queue rejected an item",
                    extra={"repository": str(repository), "submitted": count},
                )
                complete = False
                break
            count += 1

        logger.info(
            "Backfilling complete" if complete else "Backfilling truncated",
            extra={"repository": str(repository), "submitted": count},
        )
        return BackfillResult(submitted=count, complete=complete)

    async def offboard(self, item: Offboard) -> int:
        """Delete every vector of a repository; returns the number of keys swept."""
        # Trailing slash so `repo` does not sweep `repo2` as well.
        prefix = f"{base_vector_id(item.repo_owner, item.repo_name)}/"
        logger.debug(f"Deleting vectors with prefix {prefix}")

        swept = 0
        cursor: str | None = None
        while True:
            page = await self._gateway.list_ids(prefix, cursor)

            for key in page.keys:
                logger.debug(f"Deleting vector with ID {key}")
                try:
                    await self._gateway.forget(key)
                except IssueDiggerError as e:
                    logger.error(f"Error deleting bookkeeping entry {key}: {e.message}")

                try:
                    await self._gateway.delete(key)
                except IssueDiggerError as e:
                    logger.error(f"Error deleting vector {key}: {e.message}")

                swept += 1

            if page.complete or page.cursor is None:
                break
            logger.debug("List not complete, fetching more")
            cursor = page.cursor

        logger.info(
            f"Offboarding complete, deleted all vectors for repository {item.repository}",
            extra={"keys": swept},
        )
        return swept

    async def _reindex_comments(self, item: ReindexComments) -> int:
        client = self._registry.get(item.installation_id)

        count = 0
        async for comment in client.iter_user_comments(item.repository, item.issue_number):
            if not await self._submitter.submit(_index_item(comment, item.installation_id)):
                logger.error(
                    "Stopping comment reindex, work queue rejected an item",
                    extra={"repository": str(item.repository), "issue_number": item.issue_number},
                )
                break
            count += 1

        logger.info(
            f"Resubmitted {count} comments for reindexing",
            extra={"repository": str(item.repository), "issue_number": item.issue_number},
        )
        return count

    async def _post_comment(self, item: PostComment) -> None:
        body, matches = await self._responder.respond(
            item.repo_owner,
            item.repo_name,
            item.issue_number,
            item.title,
            item.body,
        )
        track_similarity_response(matches[0].score if matches else None)

        client = self._registry.get(item.installation_id)
        try:
            await client.create_comment(item.repository, item.issue_number, body)
        except IssueDiggerError as e:
            logger.error(
                f"Failed to post comment: {e.message}",
                extra={"repository": str(item.repository), "issue_number": item.issue_number},
            )
