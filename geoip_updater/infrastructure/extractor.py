"""
Infrastructure adapters for walking archives and extracting payload files.
"""

import dataclasses
import logging
import os
import shutil
import tarfile
import zipfile
import zlib
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Callable, Iterator, List, Sequence

from tqdm import tqdm

from ..application.domain import (
    PAYLOAD_EXTENSIONS,
    ArchivedBundle,
    ExtractedEntry,
    Extractor,
    Hasher,
)
from ..application.exceptions import FileOperationError

_ARCHIVE_READ_ERRORS = (
    tarfile.TarError,
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    OSError,
)


@dataclasses.dataclass(frozen=True)
class ArchiveMember:
    """
    A single member of an archive as seen while walking it.

    The opener is only usable until the walk moves past this member.
    """

    name: str
    path: str
    is_file: bool
    size: int
    modified: datetime
    opener: Callable[[], BinaryIO] = dataclasses.field(repr=False)

    def open(self) -> BinaryIO:
        return self.opener()


def _walk_tar(archive_path: Path) -> Iterator[ArchiveMember]:
    with tarfile.open(archive_path, "r:*") as tar:
        for info in tar:
            yield ArchiveMember(
                name=PurePosixPath(info.name).name,
                path=info.name,
                is_file=info.isfile(),
                size=info.size,
                modified=datetime.fromtimestamp(info.mtime, tz=timezone.utc),
                opener=lambda info=info: tar.extractfile(info),
            )


def _walk_zip(archive_path: Path) -> Iterator[ArchiveMember]:
    with zipfile.ZipFile(archive_path) as archive:
        for info in archive.infolist():
            yield ArchiveMember(
                name=PurePosixPath(info.filename).name,
                path=info.filename,
                is_file=not info.is_dir(),
                size=info.file_size,
                # Zip timestamps carry no zone, read them as UTC.
                modified=datetime(*info.date_time, tzinfo=timezone.utc),
                opener=lambda info=info: archive.open(info),
            )


def _walker_for(archive_path: Path) -> Callable[[Path], Iterator[ArchiveMember]]:
    name = archive_path.name.lower()
    if name.endswith(".zip"):
        return _walk_zip
    if name.endswith((".tar.gz", ".tgz", ".tar")):
        return _walk_tar
    if zipfile.is_zipfile(archive_path):
        return _walk_zip
    if tarfile.is_tarfile(archive_path):
        return _walk_tar
    raise tarfile.ReadError(f"unsupported archive format: {archive_path.name}")


def walk_archive(archive_path: Path) -> Iterator[ArchiveMember]:
    """
    Lazily yield every member of a tar or zip archive in archive order.

    Members of nested directories are yielded as they appear; the archive
    stays open until the generator is exhausted or closed.
    """
    yield from _walker_for(archive_path)(archive_path)


class ArchiveExtractor(Extractor):
    """
    An adapter that implements the Extractor port, materializing the
    database files of an archive and leaving current ones untouched.
    """

    def __init__(
        self,
        hasher: Hasher,
        extensions: Sequence[str] = PAYLOAD_EXTENSIONS,
    ):
        """Initializes the extractor."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.hasher = hasher
        self.extensions = tuple(extensions)

    def _is_payload(self, member: ArchiveMember) -> bool:
        return member.is_file and Path(member.name).suffix in self.extensions

    def _is_current(self, destination: Path, checksum: str) -> bool:
        if not destination.exists():
            return False
        return self.hasher.checksum_file(destination) == checksum

    def _write_entry(self, reader: BinaryIO, destination: Path):
        try:
            with open(destination, "wb") as out:
                shutil.copyfileobj(reader, out)
        except OSError as e:
            raise FileOperationError(destination, "write", e) from e

    def _preserve_modtime(self, destination: Path, modified: datetime):
        timestamp = modified.timestamp()
        try:
            os.utime(destination, (timestamp, timestamp))
        except OSError as e:
            self.logger.warning(
                f"Cannot preserve modtime of database file "
                f"{destination.name}: {e}"
            )

    def _extract_member(
        self, member: ArchiveMember, destination_dir: Path
    ) -> ExtractedEntry:
        """Hash one member and write it out unless already current."""
        with member.open() as stream:
            checksum, reader = self.hasher.checksum_stream(stream)

        entry = ExtractedEntry(
            name=member.name,
            size=member.size,
            modified=member.modified,
            checksum=checksum,
        )
        summary = (
            f"{entry.name} ({tqdm.format_sizeof(entry.size, suffix='B')}, "
            f"modified {entry.modified.isoformat()}, md5 {checksum})"
        )

        destination = destination_dir / member.name
        with reader:
            if self._is_current(destination, checksum):
                self.logger.debug(f"Database {summary} is already up to date")
            else:
                self.logger.debug(f"Extracting database {summary}")
                self._write_entry(reader, destination)
                self._preserve_modtime(destination, member.modified)

        return entry

    def extract(
        self, archive: ArchivedBundle, destination_dir: Path
    ) -> List[ExtractedEntry]:
        """
        Materialize the payload files of an archive into destination_dir.

        Only regular files with an allowed extension are considered; others
        are skipped silently. Every considered entry is reported, whether it
        was rewritten or found already current. Files written before a
        failure are left in place.

        Args:
            archive: The verified archive to extract.
            destination_dir: Directory receiving the payload files.

        Returns:
            The payload entries in archive order.

        Raises:
            FileOperationError: If the archive cannot be read or a payload
                                file cannot be written.
        """

        self.logger.info(f"Extracting {archive.path.name}...")

        entries = []
        try:
            for member in walk_archive(archive.path):
                if not self._is_payload(member):
                    continue
                entries.append(self._extract_member(member, destination_dir))
        except _ARCHIVE_READ_ERRORS as e:
            raise FileOperationError(archive.path, "read", e) from e

        return entries
