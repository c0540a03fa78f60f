"""Local upload channel - feeds files from disk through the upload callbacks."""
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, Iterable, List, Optional, Tuple
import asyncio
import logging
import mimetypes

from ..exceptions import MultiUploadError
from ..models import FileDetail, UploadEvent

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


def guess_mime_type(path: Path) -> str:
    mimetype, _ = mimetypes.guess_type(str(path))
    return mimetype or "application/octet-stream"


class LocalUploadChannel:
    """
    Multi-file upload channel backed by local files.

    Announces a batch, then streams the files one after another through the
    handler (normally an ``UploadCoordinator``): start, sink request, progress
    per chunk, then finish or failure.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, button_caption: str = "..."):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._chunk_size = chunk_size
        self._pending: Deque[Tuple[Path, FileDetail]] = deque()
        self._handler = None
        self.button_caption = button_caption
        self.visible = True

    def set_handler(self, handler) -> None:
        self._handler = handler

    def pending_file_names(self) -> List[FileDetail]:
        return [detail for _, detail in self._pending]

    async def submit(self, paths: Iterable[Path]) -> Dict[str, Any]:
        """Queue and stream the given files; returns upload stats."""
        if self._handler is None:
            raise RuntimeError("No handler set on upload channel")

        batch = [(Path(p), FileDetail(Path(p).name, guess_mime_type(Path(p)))) for p in paths]
        self._pending.extend(batch)
        self._handler.handle(UploadEvent.queued([detail for _, detail in batch]))

        stats = {"total_files": len(batch), "uploaded": 0, "failed": 0}
        while self._pending:
            if await self._transfer_next():
                stats["uploaded"] += 1
            else:
                stats["failed"] += 1
        return stats

    async def _transfer_next(self) -> bool:
        path, detail = self._pending[0]
        self._handler.handle(UploadEvent.started(detail.file_name, detail.mime_type))

        received = 0
        sink = None
        try:
            content_length = path.stat().st_size
            sink = self._handler.get_output_stream()
            with open(path, "rb") as source:
                while True:
                    chunk = await asyncio.to_thread(source.read, self._chunk_size)
                    if not chunk:
                        break
                    sink.write(chunk)
                    received += len(chunk)
                    self._handler.handle(
                        UploadEvent.progress(detail.file_name, received, content_length)
                    )
            sink.close()
        except (OSError, MultiUploadError) as exc:
            if sink is not None:
                sink.close()
            self._pending.popleft()
            logger.debug(f"Transfer of {path} failed: {exc}")
            self._handler.handle(UploadEvent.failed(detail.file_name, exc))
            return False

        self._pending.popleft()
        self._handler.handle(UploadEvent.finished(detail.file_name, detail.mime_type, received))
        return True


class LocalDroppedFile:
    """A local file handed over as if it had been dropped onto the widget."""

    def __init__(self, path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.path = Path(path)
        self.file_name = self.path.name
        self.type = guess_mime_type(self.path)
        try:
            self.file_size = self.path.stat().st_size
        except OSError:
            self.file_size = 0
        self._chunk_size = chunk_size
        self._stream_variable = None

    def set_stream_variable(self, stream_variable) -> None:
        self._stream_variable = stream_variable

    @property
    def stream_variable(self) -> Optional[Any]:
        return self._stream_variable

    async def transfer(self) -> bool:
        """Stream the file into its registered sink."""
        variable = self._stream_variable
        if variable is None:
            raise RuntimeError(f"No stream variable set for {self.file_name}")

        variable.streaming_started(self.file_name, self.type)
        received = 0
        sink = None
        try:
            sink = variable.get_output_stream()
            with open(self.path, "rb") as source:
                while not variable.is_interrupted():
                    chunk = await asyncio.to_thread(source.read, self._chunk_size)
                    if not chunk:
                        break
                    sink.write(chunk)
                    received += len(chunk)
                    if variable.listen_progress():
                        variable.on_progress(received, self.file_size)
            sink.close()
        except (OSError, MultiUploadError) as exc:
            if sink is not None:
                sink.close()
            variable.streaming_failed(exc)
            return False

        variable.streaming_finished(received)
        return True
