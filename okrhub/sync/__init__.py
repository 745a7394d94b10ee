"""Outbox queue, LinkHub transport and batch processor."""

from .processor import process_sync_queue
from .queue import enqueue, get_pending_sync_items, release_stuck_items, resubmit_failed

__all__ = [
    "enqueue",
    "get_pending_sync_items",
    "process_sync_queue",
    "release_stuck_items",
    "resubmit_failed",
]
