"""Submission of work items to the queue."""

from collections.abc import Callable

from issuedigger.exceptions import QueueError
from issuedigger.logging_config import get_logger
from issuedigger.observability import track_queue_send
from issuedigger.queue import IndexItem, WorkItem, WorkQueue

logger = get_logger(__name__)


def _never(body: str) -> bool:
    return False


class Submitter:
    """Sends work items, dropping index items the app should not learn from.

    Index items are suppressed when the app authored them, or when their
    body is a command addressed to the app. Either would otherwise pollute
    the index with the app's own output.

    A submitter with `wait` false never blocks on a full queue; the webhook
    path uses one so a saturated queue cannot eat its delivery deadline.
    """

    def __init__(
        self,
        queue: WorkQueue,
        is_app_command: Callable[[str], bool] = _never,
        wait: bool = True,
    ) -> None:
        self._queue = queue
        self._is_app_command = is_app_command
        self._wait = wait

    def should_suppress(self, item: WorkItem) -> bool:
        if not isinstance(item, IndexItem):
            return False
        if item.is_self_authored:
            return True
        return bool(item.body) and self._is_app_command(item.body)

    async def submit(self, item: WorkItem) -> bool:
        """Send one item.

        Returns:
            False if sending failed, True otherwise (including suppression).
        """
        if self.should_suppress(item):
            logger.info(
                "Suppressing self-authored or command item",
                extra={"type": item.type, "repository": str(item.repository)},
            )
            track_queue_send(item.type, "suppressed")
            return True

        try:
            await self._queue.send(item, wait=self._wait)
        except QueueError as e:
            logger.error(
                f"Failed to submit work item: {e.message}",
                extra={"type": item.type, "code": e.code.value},
            )
            track_queue_send(item.type, "failed")
            return False

        track_queue_send(item.type, "sent")
        return True
