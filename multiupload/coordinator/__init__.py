"""Coordinator package - upload queue, progress and drop coordination."""
from .core import CoordinatorState, UploadCoordinator
from .drop import DropCoordinator, DroppedFileUpload
from .indicators import IndicatorList, ProgressIndicator, ProgressIndicatorPool, progress_fraction
from .tracker import PendingQueueTracker

__all__ = [
    "CoordinatorState",
    "UploadCoordinator",
    "DropCoordinator",
    "DroppedFileUpload",
    "IndicatorList",
    "ProgressIndicator",
    "ProgressIndicatorPool",
    "PendingQueueTracker",
    "progress_fraction",
]
