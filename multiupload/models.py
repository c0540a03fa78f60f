"""
Models for multiupload module.

Immutable dataclasses describing queued files, channel events and widget
configuration.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Iterable


@dataclass(frozen=True)
class FileDetail:
    """One queued file awaiting transfer."""
    file_name: str
    mime_type: str = "application/octet-stream"


class UploadEventType(Enum):
    """Callback kinds reported by an upload channel."""
    FILES_QUEUED = "files_queued"
    STREAMING_STARTED = "streaming_started"
    STREAMING_PROGRESS = "streaming_progress"
    STREAMING_FINISHED = "streaming_finished"
    STREAMING_FAILED = "streaming_failed"


@dataclass(frozen=True)
class UploadEvent:
    """Immutable channel event consumed by ``UploadCoordinator.handle``."""
    type: UploadEventType
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    bytes_received: int = 0
    content_length: int = -1
    files: Optional[Tuple[FileDetail, ...]] = None
    error: Optional[BaseException] = None

    @classmethod
    def queued(cls, files: Optional[Iterable[FileDetail]]):
        return cls(
            type=UploadEventType.FILES_QUEUED,
            files=tuple(files) if files is not None else None,
        )

    @classmethod
    def started(cls, file_name: str, mime_type: str = None, content_length: int = -1):
        return cls(
            type=UploadEventType.STREAMING_STARTED,
            file_name=file_name,
            mime_type=mime_type,
            content_length=content_length,
        )

    @classmethod
    def progress(cls, file_name: str, bytes_received: int, content_length: int):
        return cls(
            type=UploadEventType.STREAMING_PROGRESS,
            file_name=file_name,
            bytes_received=bytes_received,
            content_length=content_length,
        )

    @classmethod
    def finished(cls, file_name: str, mime_type: str, bytes_received: int):
        return cls(
            type=UploadEventType.STREAMING_FINISHED,
            file_name=file_name,
            mime_type=mime_type,
            bytes_received=bytes_received,
        )

    @classmethod
    def failed(cls, file_name: str, error: Optional[BaseException] = None):
        return cls(
            type=UploadEventType.STREAMING_FAILED,
            file_name=file_name,
            error=error,
        )


@dataclass(frozen=True)
class ReceivedFile:
    """A fully received file as handed to the host."""
    path: Optional[Path]
    file_name: str
    mime_type: Optional[str]
    length: int

    @property
    def exists(self) -> bool:
        return self.path is not None and self.path.exists()


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for the multi-file upload widget."""
    upload_button_caption: str = "..."
    area_text: str = "<small>DROP<br/>FILES</small>"
    drop_zone_visible: bool = True
    polling_interval: int = 500  # ms
    indicator_polling_interval: int = 300  # ms
    root_directory: Optional[Path] = None
    chunk_size: int = 64 * 1024
    drop_browsers: Tuple[str, ...] = ("chrome", "firefox", "safari")
