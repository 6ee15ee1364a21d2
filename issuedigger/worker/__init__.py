"""Background processing of queued work."""

from issuedigger.worker.consumer import QueueConsumer
from issuedigger.worker.dispatcher import BackfillResult, Dispatcher

__all__ = ["BackfillResult", "Dispatcher", "QueueConsumer"]
