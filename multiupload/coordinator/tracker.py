"""Pending-queue tracker: how many files are queued and whether one is streaming."""
import logging
from typing import Optional, Sized

logger = logging.getLogger(__name__)


class PendingQueueTracker:
    """
    Counts files queued but not yet started.

    The count is reassigned on every batch announcement and decremented once
    per stream start. It is not clamped: a start without a matching batch
    drives it below zero, which is logged and otherwise left as is.
    """

    def __init__(self):
        self._pending_count = 0
        self._in_process = False

    @property
    def pending_count(self) -> int:
        return self._pending_count

    @property
    def in_process(self) -> bool:
        return self._in_process

    def on_batch_queued(self, batch: Optional[Sized]) -> None:
        if not batch:
            self._pending_count = 0
        else:
            self._pending_count = len(batch)

    def on_stream_started(self) -> None:
        self._pending_count -= 1
        self._in_process = True
        if self._pending_count < 0:
            logger.warning(
                f"Pending file count dropped to {self._pending_count}: "
                "stream started without a queued batch"
            )

    def on_stream_progress(self) -> None:
        self._in_process = True

    def on_stream_ended_or_failed(self) -> None:
        self._in_process = False

    def is_busy(self) -> bool:
        """True while a file streams or files are still pending."""
        return self._in_process or self._pending_count > 0
