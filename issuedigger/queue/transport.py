"""Queue transport with at-least-once, batched delivery.

Backfill producers block for a bounded time when the queue is full and
then fail, so they cannot grow it without limit. Webhook senders do not
wait at all.
Messages whose handler fails are redelivered until their attempts run out.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass

from issuedigger.config import QueueSettings, get_settings
from issuedigger.exceptions import ErrorCode, QueueError
from issuedigger.logging_config import get_logger
from issuedigger.queue.messages import WorkItem, encode_work_item

logger = get_logger(__name__)


@dataclass(frozen=True)
class Delivery:
    """One delivery of a message: the JSON body plus its attempt counter."""

    body: str
    attempts: int = 1


class WorkQueue(ABC):
    """Abstract work queue; message bodies are opaque JSON to the transport."""

    @abstractmethod
    async def send(self, item: WorkItem, *, wait: bool = True) -> None:
        """Enqueue a work item.

        With `wait` false a full queue fails immediately instead of after
        the send timeout.

        Raises:
            QueueError: If the item could not be enqueued.
        """
        ...

    @abstractmethod
    async def receive_batch(self) -> list[Delivery]:
        """Wait for the next batch of deliveries (never empty)."""
        ...

    @abstractmethod
    async def retry(self, delivery: Delivery) -> bool:
        """Schedule a failed delivery again. Returns False if it was dropped."""
        ...


class InMemoryWorkQueue(WorkQueue):
    """Bounded in-process queue built on `asyncio.Queue`."""

    def __init__(self, settings: QueueSettings | None = None) -> None:
        self._settings = settings or get_settings().queue
        self._queue: asyncio.Queue[Delivery] = asyncio.Queue(maxsize=self._settings.max_size)

    def qsize(self) -> int:
        """Number of pending deliveries."""
        return self._queue.qsize()

    async def send(self, item: WorkItem, *, wait: bool = True) -> None:
        delivery = Delivery(body=encode_work_item(item))

        try:
            if wait:
                await asyncio.wait_for(
                    self._queue.put(delivery),
                    timeout=self._settings.send_timeout,
                )
            else:
                self._queue.put_nowait(delivery)
        except (TimeoutError, asyncio.QueueFull) as e:
            raise QueueError(
                "Work queue is full",
                code=ErrorCode.QUEUE_FULL,
                details={"max_size": self._settings.max_size, "type": item.type},
            ) from e

    async def receive_batch(self) -> list[Delivery]:
        batch = [await self._queue.get()]

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._settings.batch_timeout

        while len(batch) < self._settings.max_batch_size:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                batch.append(await asyncio.wait_for(self._queue.get(), timeout=remaining))
            except TimeoutError:
                break

        return batch

    async def retry(self, delivery: Delivery) -> bool:
        if delivery.attempts >= self._settings.max_attempts:
            logger.error(
                "Message exhausted its delivery attempts, dropping it",
                extra={"attempts": delivery.attempts, "body": delivery.body},
            )
            return False

        # The consumer itself retries, so it must never wait on a full queue.
        try:
            self._queue.put_nowait(Delivery(body=delivery.body, attempts=delivery.attempts + 1))
        except asyncio.QueueFull:
            logger.error("Work queue is full, dropping redelivery", extra={"body": delivery.body})
            return False

        return True
