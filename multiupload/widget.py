"""Multi-file upload widget facade."""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional
import logging

from .coordinator import (
    DropCoordinator,
    DroppedFileUpload,
    IndicatorList,
    ProgressIndicatorPool,
    UploadCoordinator,
)
from .models import UploadConfig, UploadEvent
from .protocols import IDroppedFile, IFileFactory, IIndicatorContainer, IUploadActionListener
from .services.buffer import FileBuffer
from .services.channel import LocalUploadChannel
from .services.factory import DirectoryFileFactory, TempFileFactory
from .utils.events import ListenerRegistry

logger = logging.getLogger(__name__)


def supports_file_drops(user_agent: Optional[str], browsers=("chrome", "firefox", "safari")) -> bool:
    """Whether the browser behind ``user_agent`` can drop files onto the widget."""
    if not user_agent:
        return False
    agent = user_agent.lower()
    return any(browser in agent for browser in browsers)


class MultiFileUpload(ABC):
    """
    Upload widget for several files at once.

    Selected files are streamed one after another through the upload channel
    while the button is free for the next selection; dropped files stream
    independently. Each file goes straight to disk through a file factory
    (temporary files by default) and is handed to ``handle_file`` when done.

    Usage:
        class Inbox(MultiFileUpload):
            def handle_file(self, file, file_name, mime_type, length):
                shutil.move(file, archive / file_name)

        inbox = Inbox()
        inbox.add_upload_action_listener(listener)
        inbox.attach(request.headers.get("user-agent"))
    """

    def __init__(
        self,
        config: Optional[UploadConfig] = None,
        channel=None,
        progress_bars: Optional[IIndicatorContainer] = None,
    ):
        self._config = config or UploadConfig()
        self._upload_button_caption = self._config.upload_button_caption
        self.area_text = self._config.area_text
        self.drop_zone_visible = self._config.drop_zone_visible
        self._file_factory: Optional[IFileFactory] = None
        if self._config.root_directory is not None:
            self.set_root_directory(self._config.root_directory)

        self._listeners = ListenerRegistry()
        self.progress_bars = progress_bars if progress_bars is not None else IndicatorList()
        self._pool = ProgressIndicatorPool(
            self.progress_bars,
            polling_interval=self._config.indicator_polling_interval,
        )
        self._drop_coordinator = DropCoordinator(self._pool, self.create_receiver, self.handle_file)
        self._drop_zone_ready = False

        self.uploads: List = []
        self._coordinator = self._prepare_upload(channel)

    def _prepare_upload(self, channel) -> UploadCoordinator:
        if channel is None:
            channel = LocalUploadChannel(chunk_size=self._config.chunk_size)
        coordinator = UploadCoordinator(
            channel,
            self.create_receiver(),
            self.handle_file,
            listeners=self._listeners,
            pool=self._pool,
        )
        set_handler = getattr(channel, "set_handler", None)
        if callable(set_handler):
            set_handler(coordinator)
        if hasattr(channel, "button_caption"):
            channel.button_caption = self.upload_button_caption
        self.uploads.append(channel)
        return coordinator

    @property
    def config(self) -> UploadConfig:
        return self._config

    @property
    def polling_interval(self) -> int:
        return self._config.polling_interval

    @property
    def coordinator(self) -> UploadCoordinator:
        return self._coordinator

    @property
    def channel(self):
        return self.uploads[-1]

    # Listeners

    def add_upload_action_listener(self, listener: IUploadActionListener) -> None:
        """Register a listener; a listener must remove itself when done with the widget."""
        self._listeners.add(listener)

    def remove_upload_action_listener(self, listener: IUploadActionListener) -> None:
        self._listeners.remove(listener)

    def is_in_process(self) -> bool:
        """True if a file is uploading or files are pending."""
        return self._coordinator.is_busy()

    # Upload button

    @property
    def upload_button_caption(self) -> str:
        return self._upload_button_caption

    @upload_button_caption.setter
    def upload_button_caption(self, caption: str) -> None:
        self._upload_button_caption = caption
        for upload in self.uploads:
            if getattr(upload, "visible", True) and hasattr(upload, "button_caption"):
                upload.button_caption = caption

    # File factory

    @property
    def file_factory(self) -> IFileFactory:
        if self._file_factory is None:
            self._file_factory = TempFileFactory()
        return self._file_factory

    @file_factory.setter
    def file_factory(self, factory: Optional[IFileFactory]) -> None:
        self._file_factory = factory

    def set_root_directory(self, directory: Path) -> None:
        """Upload straight into ``directory`` instead of temporary files."""
        self.file_factory = DirectoryFileFactory(Path(directory))

    def create_receiver(self) -> FileBuffer:
        return FileBuffer(lambda: self.file_factory)

    # Drop zone

    @property
    def drop_zone_ready(self) -> bool:
        return self._drop_zone_ready

    def supports_file_drops(self, user_agent: Optional[str]) -> bool:
        return supports_file_drops(user_agent, self._config.drop_browsers)

    def attach(self, user_agent: Optional[str] = None) -> None:
        """Called when the widget is shown; sets up the drop zone if the browser can drop files."""
        if self.supports_file_drops(user_agent):
            self._prepare_drop_zone()

    def _prepare_drop_zone(self) -> None:
        if not self._drop_zone_ready and self.drop_zone_visible:
            self._drop_zone_ready = True
            logger.debug("Drop zone prepared")

    def drop(self, files: Iterable[IDroppedFile]) -> List[DroppedFileUpload]:
        return self._drop_coordinator.drop(files)

    # Channel events

    def handle(self, event: UploadEvent) -> None:
        self._coordinator.handle(event)

    @abstractmethod
    def handle_file(self, file: Optional[Path], file_name: str, mime_type: Optional[str], length: int) -> None:
        """
        Process a fully received file.

        Called without the coordinator lock held; it may query or drive the
        widget from other threads.
        """
        pass
