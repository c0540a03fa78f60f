"""Exceptions raised by multiupload."""


class MultiUploadError(Exception):
    """Base class for all multiupload errors."""


class NoPendingFileError(MultiUploadError):
    """A sink was requested but the channel reports no pending file."""


class FileBufferError(MultiUploadError):
    """The file buffer was used out of order or its sink could not be opened."""


class UnknownEventError(MultiUploadError):
    """An event type has no handler in the coordinator dispatch table."""
