"""
Infrastructure adapters for checksums and the checksum marker sidecar.
"""

import hashlib
import logging
import tempfile
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

from ..application.domain import Hasher
from ..application.exceptions import FileOperationError


def checksum_marker_path(base: Path, extension: str) -> Path:
    """Return the hidden sidecar path '.{name}.{extension}' next to base."""
    return base.with_name(f".{base.name}.{extension}")


class ChecksumMarker:
    """The last confirmed checksum of an archive, cached beside it."""

    def __init__(self, path: Path):
        self.path = path

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise FileOperationError(self.path, "read", e) from e

    def write(self, checksum: str):
        try:
            self.path.write_text(checksum, encoding="utf-8")
        except OSError as e:
            raise FileOperationError(self.path, "write", e) from e

    def matches(self, checksum: str) -> bool:
        return self.read() == checksum


class Md5Hasher(Hasher):
    """An adapter that implements the Hasher port using MD5."""

    def __init__(
        self,
        chunk_size: int = 65536,
        spool_max_size: int = 32 * 1024 * 1024,
    ):
        """Initializes the hasher."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.chunk_size = chunk_size
        self.spool_max_size = spool_max_size

    def checksum_file(self, file_path: Path) -> str:
        """Compute the MD5 digest of a file on disk."""

        self.logger.debug(f"Computing checksum for {file_path.name}...")

        hasher = hashlib.md5(usedforsecurity=False)
        try:
            with open(file_path, "rb") as f:
                while chunk := f.read(self.chunk_size):
                    hasher.update(chunk)
        except OSError as e:
            raise FileOperationError(file_path, "read", e) from e
        return hasher.hexdigest()

    def checksum_stream(self, stream: BinaryIO) -> Tuple[str, BinaryIO]:
        """
        Compute the MD5 digest of a stream and keep its bytes for replay.

        The bytes are spooled in memory and roll over to a temporary file
        once they exceed spool_max_size. The returned reader is rewound and
        must be closed by the caller.

        Args:
            stream: A binary stream, consumed until EOF.

        Returns:
            A tuple of the hex digest and the replay reader.
        """

        hasher = hashlib.md5(usedforsecurity=False)
        spool = tempfile.SpooledTemporaryFile(max_size=self.spool_max_size)
        try:
            while chunk := stream.read(self.chunk_size):
                hasher.update(chunk)
                spool.write(chunk)
            spool.seek(0)
        except Exception:
            spool.close()
            raise
        return hasher.hexdigest(), spool
