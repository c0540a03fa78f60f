from typing import Iterator, List
import logging
import threading

from multiupload.protocols import IUploadActionListener

logger = logging.getLogger(__name__)


class ListenerRegistry:
    """Registered upload action listeners, notified in registration order."""

    def __init__(self):
        self._listeners: List[IUploadActionListener] = []
        self._lock = threading.Lock()

    def add(self, listener: IUploadActionListener):
        """Register a listener. Adding one that is already registered does nothing."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove(self, listener: IUploadActionListener):
        """Unregister a listener. Removing an unknown listener does nothing."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def __iter__(self) -> Iterator[IUploadActionListener]:
        return iter(self._snapshot())

    def __contains__(self, listener) -> bool:
        with self._lock:
            return listener in self._listeners

    def _snapshot(self) -> List[IUploadActionListener]:
        with self._lock:
            return self._listeners[:]  # Copy list to avoid modification during iteration

    def _emit(self, method_name: str, file_name: str, pending_count: int):
        for listener in self._snapshot():
            try:
                getattr(listener, method_name)(file_name, pending_count)
            except Exception as e:
                logger.error(f"Error in upload listener {listener!r} for {method_name}: {e}")

    def notify_started(self, file_name: str, pending_count: int):
        self._emit("file_upload_started", file_name, pending_count)

    def notify_finished(self, file_name: str, pending_count: int):
        self._emit("file_upload_finished", file_name, pending_count)

    def notify_error(self, file_name: str, pending_count: int):
        self._emit("file_upload_error", file_name, pending_count)
