from .buffer import FileBuffer
from .channel import LocalDroppedFile, LocalUploadChannel, guess_mime_type
from .factory import DirectoryFileFactory, TempFileFactory

__all__ = [
    "FileBuffer",
    "LocalDroppedFile",
    "LocalUploadChannel",
    "guess_mime_type",
    "DirectoryFileFactory",
    "TempFileFactory",
]
