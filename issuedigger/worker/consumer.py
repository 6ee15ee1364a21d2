"""Queue consumer loop."""

import asyncio
import time
from collections.abc import Coroutine
from typing import Any

from issuedigger.exceptions import DispatchError
from issuedigger.logging_config import get_logger
from issuedigger.observability import track_queue_message
from issuedigger.queue.messages import Onboard, ReindexComments, WorkItem, decode_work_item
from issuedigger.queue.transport import Delivery, WorkQueue
from issuedigger.worker.dispatcher import Dispatcher

logger = get_logger(__name__)

# Handlers of these send work back into the queue they are consumed from.
PRODUCER_TYPES = (Onboard, ReindexComments)


class QueueConsumer:
    """Receives messages and handles each one in its own task.

    The loop keeps receiving while handlers run, so a handler that waits on
    a full queue is drained by the same consumer. Producer messages run
    outside the handler slots; every other message takes one of
    `max_concurrency` slots, and the loop stops receiving while none is
    free.

    Messages run without any ordering between them. A message whose handler
    raises is handed back to the queue for redelivery; messages that cannot
    be decoded are dropped, as redelivery would not change them.
    """

    def __init__(self, queue: WorkQueue, dispatcher: Dispatcher, max_concurrency: int = 10) -> None:
        self._queue = queue
        self._dispatcher = dispatcher
        self._slots = asyncio.Semaphore(max_concurrency)
        self._in_flight: set[asyncio.Task[bool]] = set()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def in_flight(self) -> int:
        """Number of messages currently being handled by the loop."""
        return len(self._in_flight)

    def _decode(self, delivery: Delivery) -> WorkItem | None:
        try:
            return decode_work_item(delivery.body)
        except DispatchError as e:
            logger.error(
                f"Dropping undecodable message: {e.message}",
                extra={"code": e.code.value, "body": delivery.body},
            )
            track_queue_message("unknown", 0.0, success=False)
            return None

    async def _handle(self, item: WorkItem, delivery: Delivery) -> bool:
        start = time.perf_counter()
        try:
            await self._dispatcher.handle(item)
        except Exception as e:
            duration = time.perf_counter() - start
            logger.exception(
                f"Failed to process {item.type} message: {e}",
                extra={"type": item.type, "attempts": delivery.attempts},
            )
            track_queue_message(item.type, duration, success=False)
            await self._queue.retry(delivery)
            return False

        track_queue_message(item.type, time.perf_counter() - start)
        return True

    async def process(self, delivery: Delivery) -> bool:
        """Handle one delivery. Returns whether it succeeded."""
        item = self._decode(delivery)
        if item is None:
            return False
        return await self._handle(item, delivery)

    async def process_batch(self, batch: list[Delivery]) -> list[bool]:
        logger.debug(f"Queue received batch of {len(batch)} messages")
        return list(await asyncio.gather(*(self.process(d) for d in batch)))

    async def _handle_in_slot(self, item: WorkItem, delivery: Delivery) -> bool:
        try:
            return await self._handle(item, delivery)
        finally:
            self._slots.release()

    def _spawn(self, coro: Coroutine[Any, Any, bool], item: WorkItem) -> None:
        task = asyncio.create_task(coro, name=f"handle-{item.type}")
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _dispatch(self, delivery: Delivery) -> None:
        item = self._decode(delivery)
        if item is None:
            return

        if isinstance(item, PRODUCER_TYPES):
            self._spawn(self._handle(item, delivery), item)
            return

        await self._slots.acquire()
        self._spawn(self._handle_in_slot(item, delivery), item)

    async def run(self) -> None:
        """Consume until cancelled."""
        logger.info("Queue consumer started")
        try:
            while True:
                batch = await self._queue.receive_batch()
                logger.debug(f"Queue received batch of {len(batch)} messages")
                for delivery in batch:
                    await self._dispatch(delivery)
        except asyncio.CancelledError:
            logger.info("Queue consumer stopped", extra={"in_flight": len(self._in_flight)})
            raise

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="queue-consumer")

    async def stop(self) -> None:
        """Stop receiving and cancel the messages still being handled."""
        if self._task is None:
            return
        self._task.cancel()
        for task in list(self._in_flight):
            task.cancel()
        await asyncio.gather(self._task, *self._in_flight, return_exceptions=True)
        self._task = None
