"""File factories - decide where received files are materialized."""
from pathlib import Path
from typing import Optional
import logging
import mimetypes
import os
import tempfile

from ..protocols import IFileFactory

logger = logging.getLogger(__name__)


def _safe_name(file_name: Optional[str]) -> str:
    """Strip any directory part a client may have sent along with the name."""
    name = Path((file_name or "").replace("\\", "/")).name
    return name if name not in {"", ".", ".."} else "upload"


class TempFileFactory(IFileFactory):
    """Creates every upload as a fresh temporary file."""

    def __init__(self, prefix: str = "multiupload_", directory: Optional[Path] = None):
        self._prefix = prefix
        self._directory = Path(directory) if directory else None

    def create_file(self, file_name: str, mime_type: str) -> Path:
        suffix = Path(_safe_name(file_name)).suffix
        if not suffix and mime_type:
            suffix = mimetypes.guess_extension(mime_type) or ""
        fd, path = tempfile.mkstemp(
            prefix=self._prefix,
            suffix=suffix,
            dir=str(self._directory) if self._directory else None,
        )
        os.close(fd)
        logger.debug(f"Temp file for {file_name}: {path}")
        return Path(path)


class DirectoryFileFactory(IFileFactory):
    """Writes uploads straight into a target directory under their own name."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def create_file(self, file_name: str, mime_type: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / _safe_name(file_name)
        target.touch()
        return target
