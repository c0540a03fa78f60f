"""Upload coordinator - drives tracker, indicators and listeners from channel events."""
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Iterable, Optional
import logging
import threading

from ..exceptions import NoPendingFileError, UnknownEventError
from ..models import FileDetail, UploadEvent, UploadEventType
from ..protocols import IFileBuffer, IIndicatorContainer, IUploadChannel
from ..utils.events import ListenerRegistry
from .indicators import ProgressIndicatorPool
from .tracker import PendingQueueTracker

logger = logging.getLogger(__name__)

FileHandler = Callable[[Optional[Path], str, Optional[str], int], None]


class CoordinatorState(Enum):
    """Where the coordinator is in a batch."""
    IDLE = "idle"
    BATCH_QUEUED = "batch_queued"
    STREAMING = "streaming"
    STREAM_ENDED = "stream_ended"
    STREAM_FAILED = "stream_failed"


class UploadCoordinator:
    """
    State machine for one multi-file upload channel.

    Every channel callback goes through ``handle`` (or the matching method)
    and updates the pending-queue tracker, the indicator pool and the
    listeners in lockstep. Bytes go to a single reusable file buffer, so the
    channel must stream one file at a time.

    Usage:
        coordinator = UploadCoordinator(channel, FileBuffer(), widget.handle_file)
        coordinator.handle(UploadEvent.queued([FileDetail("a.txt", "text/plain")]))
        sink = coordinator.get_output_stream()
        coordinator.handle(UploadEvent.started("a.txt", "text/plain"))
        ...
    """

    def __init__(
        self,
        channel: IUploadChannel,
        buffer: IFileBuffer,
        file_handler: FileHandler,
        listeners: Optional[ListenerRegistry] = None,
        tracker: Optional[PendingQueueTracker] = None,
        pool: Optional[ProgressIndicatorPool] = None,
        container: Optional[IIndicatorContainer] = None,
    ):
        """
        Initialize coordinator with its collaborators.

        Args:
            channel: Upload channel, asked for the next pending file when a sink is opened
            buffer: Receiver the bytes of the current file are written to
            file_handler: Called once per completed file with (file, name, mime, length)
            listeners: Shared listener registry (a private one is created if omitted)
            tracker: Pending-queue tracker
            pool: Indicator pool (built on ``container`` if omitted)
            container: Area the pool shows indicators in
        """
        self._channel = channel
        self._buffer = buffer
        self._file_handler = file_handler
        self._listeners = listeners if listeners is not None else ListenerRegistry()
        self._tracker = tracker or PendingQueueTracker()
        self._pool = pool or ProgressIndicatorPool(container)
        self._state = CoordinatorState.IDLE
        self._current_file: Optional[str] = None
        self._lock = threading.RLock()

        self._dispatch: Dict[UploadEventType, Callable[[UploadEvent], None]] = {
            UploadEventType.FILES_QUEUED: lambda event: self.files_queued(event.files),
            UploadEventType.STREAMING_STARTED: self.streaming_started,
            UploadEventType.STREAMING_PROGRESS: self.on_progress,
            UploadEventType.STREAMING_FINISHED: self.streaming_finished,
            UploadEventType.STREAMING_FAILED: self.streaming_failed,
        }

    @property
    def tracker(self) -> PendingQueueTracker:
        return self._tracker

    @property
    def pool(self) -> ProgressIndicatorPool:
        return self._pool

    @property
    def listeners(self) -> ListenerRegistry:
        return self._listeners

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def current_file(self) -> Optional[str]:
        return self._current_file

    @property
    def pending_count(self) -> int:
        with self._lock:
            return self._tracker.pending_count

    def is_busy(self) -> bool:
        with self._lock:
            return self._tracker.is_busy()

    def handle(self, event: UploadEvent) -> None:
        """Apply one channel event."""
        handler = self._dispatch.get(event.type)
        if handler is None:
            raise UnknownEventError(f"No handler for event type {event.type!r}")
        handler(event)

    def files_queued(self, files: Optional[Iterable[FileDetail]]) -> None:
        batch = list(files) if files is not None else None
        with self._lock:
            self._tracker.on_batch_queued(batch)
            self._pool.on_batch_queued(batch)
            self._state = CoordinatorState.BATCH_QUEUED
        logger.debug(f"Queued {len(batch or ())} file(s)")

    def streaming_started(self, event: UploadEvent) -> None:
        with self._lock:
            self._tracker.on_stream_started()
            self._state = CoordinatorState.STREAMING
            self._current_file = event.file_name
            pending = self._tracker.pending_count
        logger.debug(f"Streaming started: {event.file_name} ({pending} pending)")
        self._listeners.notify_started(event.file_name, pending)

    def get_output_stream(self) -> BinaryIO:
        """Open the buffer's sink for the channel's next pending file."""
        with self._lock:
            pending = iter(self._channel.pending_file_names())
            try:
                detail = next(pending)
            except StopIteration:
                raise NoPendingFileError("Upload channel has no pending file to receive") from None
            return self._buffer.receive_upload(detail.file_name, detail.mime_type)

    def on_progress(self, event: UploadEvent) -> None:
        with self._lock:
            self._pool.on_stream_progress(event.bytes_received, event.content_length)
            self._tracker.on_stream_progress()

    def streaming_finished(self, event: UploadEvent) -> None:
        with self._lock:
            self._pool.on_stream_ended()
            file = self._buffer.get_file()
        # The host handler runs without the lock held.
        try:
            self._file_handler(file, event.file_name, event.mime_type, event.bytes_received)
        finally:
            with self._lock:
                self._buffer.set_value(None)
                self._tracker.on_stream_ended_or_failed()
                self._state = CoordinatorState.STREAM_ENDED
                self._current_file = None
                pending = self._tracker.pending_count
        logger.debug(f"Streaming finished: {event.file_name} ({event.bytes_received} bytes)")
        self._listeners.notify_finished(event.file_name, pending)

    def streaming_failed(self, event: UploadEvent) -> None:
        logger.debug(f"Streaming failed: {event.file_name}", exc_info=event.error)
        with self._lock:
            self._buffer.release()
            self._pool.on_stream_failed()
            self._tracker.on_stream_ended_or_failed()
            self._state = CoordinatorState.STREAM_FAILED
            self._current_file = None
            pending = self._tracker.pending_count
        self._listeners.notify_error(event.file_name, pending)
