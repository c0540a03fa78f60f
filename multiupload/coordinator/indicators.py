"""Progress indicators for in-flight files."""
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, List, Optional
import logging

from multiupload.models import FileDetail
from multiupload.protocols import IIndicatorContainer

logger = logging.getLogger(__name__)

DEFAULT_INDICATOR_POLLING_INTERVAL = 300  # ms


def progress_fraction(bytes_received: int, content_length: int) -> Optional[float]:
    """
    Fraction of a file received so far.

    Returns None when the content length is unknown (zero or negative) so the
    caller can leave the indicator where it is.
    """
    if content_length is None or content_length <= 0:
        return None
    fraction = bytes_received / content_length
    return min(max(fraction, 0.0), 1.0)


@dataclass(eq=False)
class ProgressIndicator:
    """Progress of a single file, 0.0 to 1.0."""
    caption: str = ""
    value: float = 0.0
    visible: bool = False
    polling_interval: int = DEFAULT_INDICATOR_POLLING_INTERVAL


class IndicatorList:
    """In-memory indicator area; keeps indicators in the order they were added."""

    def __init__(self):
        self._indicators: List[ProgressIndicator] = []

    def add_indicator(self, indicator: ProgressIndicator) -> None:
        self._indicators.append(indicator)

    def remove_indicator(self, indicator: ProgressIndicator) -> None:
        if indicator in self._indicators:
            self._indicators.remove(indicator)

    def indicator_changed(self, indicator: ProgressIndicator) -> None:
        pass

    def __len__(self) -> int:
        return len(self._indicators)

    def __iter__(self):
        return iter(self._indicators[:])

    def __contains__(self, indicator) -> bool:
        return indicator in self._indicators


class ProgressIndicatorPool:
    """
    One indicator per queued file, consumed in FIFO order.

    The channel transfers one file at a time, so the front of the queue is
    always the file currently streaming; indicators behind it stay at zero
    until their turn.
    """

    def __init__(
        self,
        container: Optional[IIndicatorContainer] = None,
        polling_interval: int = DEFAULT_INDICATOR_POLLING_INTERVAL,
    ):
        self._container = container if container is not None else IndicatorList()
        self._polling_interval = polling_interval
        self._queue: Optional[Deque[ProgressIndicator]] = None

    @property
    def container(self) -> IIndicatorContainer:
        return self._container

    @property
    def queue(self) -> List[ProgressIndicator]:
        return list(self._queue or ())

    @property
    def front(self) -> Optional[ProgressIndicator]:
        if not self._queue:
            return None
        return self._queue[0]

    def __len__(self) -> int:
        return len(self._queue or ())

    def create_indicator(self, caption: str) -> ProgressIndicator:
        """Create an indicator at zero and show it in the container."""
        indicator = ProgressIndicator(
            caption=caption,
            value=0.0,
            polling_interval=self._polling_interval,
        )
        self._container.add_indicator(indicator)
        indicator.visible = True
        return indicator

    def remove(self, indicator: ProgressIndicator) -> None:
        indicator.visible = False
        self._container.remove_indicator(indicator)

    def set_value(self, indicator: ProgressIndicator, bytes_received: int, content_length: int) -> None:
        fraction = progress_fraction(bytes_received, content_length)
        if fraction is None:
            logger.debug(f"Unknown content length for {indicator.caption!r}, progress not updated")
            return
        indicator.value = fraction
        self._container.indicator_changed(indicator)

    def on_batch_queued(self, batch: Optional[Iterable[FileDetail]]) -> None:
        if self._queue is None:
            self._queue = deque()
        for detail in batch or ():
            self._queue.append(self.create_indicator(detail.file_name))

    def on_stream_progress(self, bytes_received: int, content_length: int) -> None:
        indicator = self.front
        if indicator is None:
            logger.debug("Progress reported with no queued indicator")
            return
        self.set_value(indicator, bytes_received, content_length)

    def on_stream_ended(self) -> None:
        if self._queue:
            self.remove(self._queue.popleft())

    def on_stream_failed(self) -> None:
        while self._queue:
            self.remove(self._queue.popleft())
