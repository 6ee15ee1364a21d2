"""Work items and the queue carrying them."""

from issuedigger.queue.messages import (
    IndexItem,
    ItemKind,
    Offboard,
    Onboard,
    PostComment,
    ReindexComments,
    WorkItem,
    decode_work_item,
    encode_work_item,
)
from issuedigger.queue.transport import Delivery, InMemoryWorkQueue, WorkQueue

__all__ = [
    "Delivery",
    "InMemoryWorkQueue",
    "IndexItem",
    "ItemKind",
    "Offboard",
    "Onboard",
    "PostComment",
    "ReindexComments",
    "WorkItem",
    "WorkQueue",
    "decode_work_item",
    "encode_work_item",
]
