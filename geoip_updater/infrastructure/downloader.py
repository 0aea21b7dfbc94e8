"""HTTP implementation of the Downloader port."""

import contextlib
from pathlib import Path
from typing import Generator, Optional

import httpx
from tqdm import tqdm

from ..application.domain import (
    CHECKSUM_EXTENSION,
    ArchivedBundle,
    Downloader,
    Edition,
    Hasher,
)
from ..application.exceptions import (
    FileOperationError,
    IntegrityError,
    TransportError,
)

from .base_client import BaseClient
from .hashing import ChecksumMarker, checksum_marker_path


class HttpArchiveDownloader(BaseClient, Downloader):
    """A downloader that fetches edition archives via HTTP atomically."""

    def __init__(
        self,
        client: httpx.Client,
        license_key: str,
        base_url: str,
        hasher: Hasher,
        chunk_size: int,
        user_agent: Optional[str] = None,
        trust_marker: bool = False,
        show_progress: bool = True,
    ):
        """Initializes the downloader adapter."""
        super().__init__(client, license_key, base_url, user_agent)
        self.hasher = hasher
        self.chunk_size = chunk_size
        self.trust_marker = trust_marker
        self.show_progress = show_progress

    @contextlib.contextmanager
    def _atomic_target(self, destination: Path) -> Generator[Path, None, None]:
        """Provides a temporary '.part' path and ensures cleanup."""
        part_path = destination.with_name(destination.name + ".part")
        try:
            yield part_path
        finally:
            part_path.unlink(missing_ok=True)

    def _stream_chunks(
        self, response: httpx.Response, target_file: Path,
    ) -> Generator[int, None, None]:
        """Produce byte chunks from a response and write them to a file."""
        try:
            f = open(target_file, "wb")
        except OSError as e:
            raise FileOperationError(target_file, "create", e) from e
        with f:
            for chunk in response.iter_bytes(self.chunk_size):
                try:
                    f.write(chunk)
                except OSError as e:
                    raise FileOperationError(target_file, "write", e) from e
                yield len(chunk)

    def _consume_stream_with_progress(
        self,
        stream: Generator[int, None, None],
        total_size: int,
        desc: str,
    ):
        """Consume the byte stream to update a TQDM progress bar.

        Returns the number of bytes written.
        """

        with tqdm(
            total=total_size or None,
            unit="B",
            unit_scale=True,
            desc=desc,
            disable=not self.show_progress,
        ) as progress_bar:
            written = 0
            for progress in stream:
                written += progress
                progress_bar.update(progress)
        return written

    def _stream_from_network(self, edition: Edition, target_file: Path):
        """Manage the network request and the streaming process."""
        params = self._params(edition, edition.suffix.value)
        try:
            with self.client.stream(
                "GET", self.endpoint, params=params, headers=self._headers()
            ) as response:
                self._raise_for_status(response)
                total_size = int(response.headers.get("Content-Length", 0))
                # Content-Length counts encoded bytes
                if "Content-Encoding" in response.headers:
                    total_size = 0
                stream = self._stream_chunks(response, target_file)
                received = self._consume_stream_with_progress(
                    stream, total_size, target_file.name
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Cannot download archive: {e}") from e

        if total_size != 0 and received != total_size:
            raise TransportError(
                f"Size mismatch: {received} != {total_size}"
            )

    def _execute_atomic_download(
        self, edition: Edition, checksum: str, destination: Path
    ):
        """Download to a '.part' file and move it in place once verified."""
        self.logger.info(f"Downloading {destination.name} archive...")
        with self._atomic_target(destination) as part_path:
            self._stream_from_network(edition, part_path)

            actual = self.hasher.checksum_file(part_path)
            if actual != checksum:
                raise IntegrityError(
                    f"downloaded archive {destination.name}", checksum, actual
                )

            try:
                part_path.replace(destination)
            except OSError as e:
                raise FileOperationError(destination, "replace", e) from e
        self.logger.info(f"Finished downloading {destination.name}")

    def _is_current(
        self, destination: Path, checksum: str, marker: ChecksumMarker
    ) -> bool:
        """Tell whether the archive on disk already has the checksum."""
        if not destination.exists():
            return False
        if self.trust_marker and marker.matches(checksum):
            return True
        return self.hasher.checksum_file(destination) == checksum

    def download(
        self, edition: Edition, checksum: str, destination: Path
    ) -> ArchivedBundle:
        """
        Guarantee that a valid archive exists, downloading only if necessary.

        This is the public method that fulfills the Downloader port contract.
        An existing archive is kept when its content matches the expected
        checksum. With trust_marker set, a matching checksum marker is taken
        as proof without rehashing. The marker is written once the archive
        on disk is known to be valid.

        Args:
            edition: The edition the archive belongs to.
            checksum: The expected MD5 checksum of the archive.
            destination: The final desired path for the archive.

        Returns:
            An ArchivedBundle object representing the file on disk.

        Raises:
            TransportError: If the request fails or the status is not 200.
            IntegrityError: If the downloaded archive does not match.
            FileOperationError: If the archive cannot be written.
        """

        marker = ChecksumMarker(
            checksum_marker_path(destination, CHECKSUM_EXTENSION)
        )

        if self._is_current(destination, checksum, marker):
            self.logger.debug(
                f"Archive {destination.name} already downloaded and valid "
                f"({checksum}). Skipping download."
            )
        else:
            self._execute_atomic_download(edition, checksum, destination)

        marker.write(checksum)

        return ArchivedBundle(path=destination, checksum=checksum)
