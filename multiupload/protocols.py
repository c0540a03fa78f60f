"""
Protocols (Interfaces) for the upload widget collaborators.

The host framework supplies the upload channel, dropped file handles and the
place indicators are shown in; the widget only talks to them through these.
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Protocol, runtime_checkable

from .models import FileDetail


@runtime_checkable
class IUploadActionListener(Protocol):
    """Observer notified about file upload actions."""

    def file_upload_started(self, file_name: str, pending_count: int) -> None:
        ...

    def file_upload_finished(self, file_name: str, pending_count: int) -> None:
        ...

    def file_upload_error(self, file_name: str, pending_count: int) -> None:
        ...


@runtime_checkable
class IUploadChannel(Protocol):
    """Interface for the multi-file upload channel."""

    def pending_file_names(self) -> Iterable[FileDetail]:
        """Files announced by the channel and not yet opened."""
        ...


@runtime_checkable
class IFileBuffer(Protocol):
    """Interface for a reusable single-file receiver."""

    def receive_upload(self, file_name: str, mime_type: str) -> BinaryIO:
        ...

    def get_file(self) -> Optional[Path]:
        ...

    def release(self) -> None:
        ...

    def set_value(self, value: Optional[Path]) -> None:
        ...


@runtime_checkable
class IIndicatorContainer(Protocol):
    """Area progress indicators are shown in."""

    def add_indicator(self, indicator) -> None:
        ...

    def remove_indicator(self, indicator) -> None:
        ...

    def indicator_changed(self, indicator) -> None:
        ...


@runtime_checkable
class IDroppedFile(Protocol):
    """A file handle delivered by a drag-and-drop event."""

    file_name: str
    type: str
    file_size: int

    def set_stream_variable(self, stream_variable) -> None:
        ...


class IFileFactory(ABC):
    """Interface for choosing where received files are materialized."""

    @abstractmethod
    def create_file(self, file_name: str, mime_type: str) -> Path:
        """Create an empty target file for an upload."""
        pass
