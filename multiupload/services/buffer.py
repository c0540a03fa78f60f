"""File buffer - reusable receiver for one upload at a time."""
from pathlib import Path
from typing import BinaryIO, Callable, Optional
import logging

from ..exceptions import FileBufferError
from ..protocols import IFileFactory
from .factory import TempFileFactory

logger = logging.getLogger(__name__)


class FileBuffer:
    """
    Streams one file straight to disk and exposes the result.

    The factory is looked up on every upload, so a widget can swap its file
    factory after the buffer was created.

    Usage:
        buffer = FileBuffer(lambda: DirectoryFileFactory(Path("uploads")))
        with buffer.receive_upload("a.txt", "text/plain") as sink:
            sink.write(data)
        handle(buffer.get_file())
        buffer.set_value(None)
    """

    def __init__(self, file_factory: Optional[Callable[[], IFileFactory]] = None):
        self._file_factory = file_factory
        self._file: Optional[Path] = None
        self._sink: Optional[BinaryIO] = None
        self.last_file_name: Optional[str] = None
        self.last_mime_type: Optional[str] = None

    def get_file_factory(self) -> IFileFactory:
        if self._file_factory is None:
            return TempFileFactory()
        return self._file_factory()

    def receive_upload(self, file_name: str, mime_type: str) -> BinaryIO:
        """Create the target file and return a writable sink on it."""
        if self._sink is not None and not self._sink.closed:
            raise FileBufferError(
                f"Buffer is still receiving {self.last_file_name!r}, cannot receive {file_name!r}"
            )
        target = self.get_file_factory().create_file(file_name, mime_type)
        try:
            self._sink = open(target, "wb")
        except OSError as exc:
            raise FileBufferError(f"Cannot open {target} for writing: {exc}") from exc
        self._file = target
        self.last_file_name = file_name
        self.last_mime_type = mime_type
        logger.debug(f"Receiving {file_name} ({mime_type}) into {target}")
        return self._sink

    def release(self) -> None:
        """Close a sink left open by an aborted stream. The file is kept."""
        if self._sink is not None and not self._sink.closed:
            logger.debug(f"Closing abandoned sink for {self.last_file_name}")
            self._sink.close()

    def get_file(self) -> Optional[Path]:
        """The materialized file; closes a sink the channel left open."""
        if self._sink is not None and not self._sink.closed:
            self._sink.close()
        return self._file

    def set_value(self, value: Optional[Path]) -> None:
        """Reset (``None``) or point the buffer at an existing file."""
        if self._sink is not None and not self._sink.closed:
            self._sink.close()
        self._sink = None
        self._file = Path(value) if value is not None else None
        if value is None:
            self.last_file_name = None
            self.last_mime_type = None
