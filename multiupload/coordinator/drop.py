"""Drop coordinator - independent uploads for drag-and-dropped files."""
from typing import BinaryIO, Callable, Iterable, List, Optional
import logging

from ..protocols import IDroppedFile, IFileBuffer
from .core import FileHandler
from .indicators import ProgressIndicator, ProgressIndicatorPool

logger = logging.getLogger(__name__)


class DroppedFileUpload:
    """
    Stream sink for a single dropped file.

    Owns its own indicator and buffer; nothing here touches the pending count
    or the shared indicator queue of the upload coordinator.
    """

    def __init__(
        self,
        dropped: IDroppedFile,
        indicator: ProgressIndicator,
        buffer: IFileBuffer,
        pool: ProgressIndicatorPool,
        file_handler: FileHandler,
    ):
        self.dropped = dropped
        self.indicator = indicator
        self.buffer = buffer
        self._pool = pool
        self._file_handler = file_handler
        self.name: Optional[str] = None
        self.mime: Optional[str] = None
        self.finished = False
        self.failed = False

    def get_output_stream(self) -> BinaryIO:
        return self.buffer.receive_upload(self.name, self.mime)

    def listen_progress(self) -> bool:
        return True

    def is_interrupted(self) -> bool:
        return False

    def streaming_started(self, file_name: str, mime_type: str) -> None:
        self.name = file_name
        self.mime = mime_type

    def on_progress(self, bytes_received: int, content_length: int) -> None:
        self._pool.set_value(self.indicator, bytes_received, content_length)

    def streaming_finished(self, bytes_received: int = 0) -> None:
        self._pool.remove(self.indicator)
        try:
            self._file_handler(
                self.buffer.get_file(),
                self.dropped.file_name,
                self.dropped.type,
                self.dropped.file_size,
            )
        finally:
            self.buffer.set_value(None)
            self.finished = True

    def streaming_failed(self, error: Optional[BaseException] = None) -> None:
        logger.debug(f"Dropped file streaming failed: {self.dropped.file_name}", exc_info=error)
        self.buffer.release()
        self._pool.remove(self.indicator)
        self.failed = True


class DropCoordinator:
    """Wires a per-file sink onto each file of a drop event."""

    def __init__(
        self,
        pool: ProgressIndicatorPool,
        buffer_factory: Callable[[], IFileBuffer],
        file_handler: FileHandler,
    ):
        self._pool = pool
        self._buffer_factory = buffer_factory
        self._file_handler = file_handler

    def drop(self, files: Iterable[IDroppedFile]) -> List[DroppedFileUpload]:
        uploads = []
        for dropped in files or ():
            indicator = self._pool.create_indicator(dropped.file_name)
            upload = DroppedFileUpload(
                dropped,
                indicator,
                self._buffer_factory(),
                self._pool,
                self._file_handler,
            )
            dropped.set_stream_variable(upload)
            uploads.append(upload)
        logger.debug(f"Accepted {len(uploads)} dropped file(s)")
        return uploads
