"""
multiupload - Multi-file upload widget core.

Queues files selected together, streams them one at a time into a reusable
file buffer, tracks per-file progress and notifies upload action listeners.
Dropped files take an independent path with their own buffer and indicator.

Usage:
    from multiupload import MultiFileUpload, UploadEvent, FileDetail

    class Inbox(MultiFileUpload):
        def handle_file(self, file, file_name, mime_type, length):
            print(f"{file_name}: {length} bytes at {file}")

    inbox = Inbox()
    inbox.add_upload_action_listener(listener)

    # Channel callbacks
    inbox.handle(UploadEvent.queued([FileDetail("a.txt", "text/plain")]))
    inbox.handle(UploadEvent.started("a.txt", "text/plain"))
    sink = inbox.coordinator.get_output_stream()
    ...
    inbox.handle(UploadEvent.finished("a.txt", "text/plain", 42))

    # Local files through the built-in channel
    stats = await inbox.channel.submit([Path("a.txt"), Path("b.png")])
"""
from .coordinator import (
    CoordinatorState,
    DropCoordinator,
    DroppedFileUpload,
    IndicatorList,
    PendingQueueTracker,
    ProgressIndicator,
    ProgressIndicatorPool,
    UploadCoordinator,
)
from .exceptions import FileBufferError, MultiUploadError, NoPendingFileError, UnknownEventError
from .models import FileDetail, ReceivedFile, UploadConfig, UploadEvent, UploadEventType
from .services import (
    DirectoryFileFactory,
    FileBuffer,
    LocalDroppedFile,
    LocalUploadChannel,
    TempFileFactory,
)
from .utils.events import ListenerRegistry
from .widget import MultiFileUpload, supports_file_drops

__version__ = "0.1.0"
__all__ = [
    # Main
    "MultiFileUpload",
    "supports_file_drops",
    "UploadCoordinator",
    "DropCoordinator",
    "DroppedFileUpload",
    "CoordinatorState",
    # State
    "PendingQueueTracker",
    "ProgressIndicator",
    "ProgressIndicatorPool",
    "IndicatorList",
    "ListenerRegistry",
    # Models
    "FileDetail",
    "ReceivedFile",
    "UploadConfig",
    "UploadEvent",
    "UploadEventType",
    # Services
    "FileBuffer",
    "TempFileFactory",
    "DirectoryFileFactory",
    "LocalUploadChannel",
    "LocalDroppedFile",
    # Errors
    "MultiUploadError",
    "NoPendingFileError",
    "FileBufferError",
    "UnknownEventError",
]
