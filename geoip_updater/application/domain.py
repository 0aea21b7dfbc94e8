"""
This module defines the core domain models for the application.

These classes represent the pure, technology-agnostic entities and data
structures that the application's business logic operates on.
"""

import dataclasses
import enum
from datetime import datetime
from pathlib import Path

from abc import ABC, abstractmethod
from typing import BinaryIO, List, Tuple


CHECKSUM_EXTENSION = "md5"

# Only these payload files are materialized from an archive.
PAYLOAD_EXTENSIONS = (".csv", ".mmdb")


# --- Domain Models ---

class ArchiveSuffix(str, enum.Enum):
    """Archive formats served by the download service."""

    TAR_GZ = "tar.gz"
    ZIP = "zip"

    def __str__(self) -> str:
        return self.value


class Edition(str, enum.Enum):
    """A dataset variant offered by the download service."""

    GEOIP2_ANONYMOUS_IP = "GeoIP2-Anonymous-IP"
    GEOIP2_ANONYMOUS_IP_CSV = "GeoIP2-Anonymous-IP-CSV"
    GEOIP2_CITY = "GeoIP2-City"
    GEOIP2_CITY_CSV = "GeoIP2-City-CSV"
    GEOIP2_CONNECTION_TYPE = "GeoIP2-Connection-Type"
    GEOIP2_CONNECTION_TYPE_CSV = "GeoIP2-Connection-Type-CSV"
    GEOIP2_COUNTRY = "GeoIP2-Country"
    GEOIP2_COUNTRY_CSV = "GeoIP2-Country-CSV"
    GEOIP2_DOMAIN = "GeoIP2-Domain"
    GEOIP2_DOMAIN_CSV = "GeoIP2-Domain-CSV"
    GEOIP2_ENTERPRISE = "GeoIP2-Enterprise"
    GEOIP2_ENTERPRISE_CSV = "GeoIP2-Enterprise-CSV"
    GEOIP2_ISP = "GeoIP2-ISP"
    GEOIP2_ISP_CSV = "GeoIP2-ISP-CSV"
    GEOLITE2_ASN = "GeoLite2-ASN"
    GEOLITE2_ASN_CSV = "GeoLite2-ASN-CSV"
    GEOLITE2_CITY = "GeoLite2-City"
    GEOLITE2_CITY_CSV = "GeoLite2-City-CSV"
    GEOLITE2_COUNTRY = "GeoLite2-Country"
    GEOLITE2_COUNTRY_CSV = "GeoLite2-Country-CSV"

    def __str__(self) -> str:
        return self.value

    @property
    def suffix(self) -> ArchiveSuffix:
        """CSV editions ship as zip files, binary databases as tarballs."""
        if self.value.endswith("-CSV"):
            return ArchiveSuffix.ZIP
        return ArchiveSuffix.TAR_GZ

    @property
    def checksum_suffix(self) -> str:
        return f"{self.suffix}.{CHECKSUM_EXTENSION}"

    @property
    def filename(self) -> str:
        return f"{self.value}.{self.suffix}"


@dataclasses.dataclass(frozen=True)
class ArchivedBundle:
    """
    A domain model representing a downloaded archive file on disk,
    defined by its location and confirmed checksum.
    """

    path: Path
    checksum: str


@dataclasses.dataclass(frozen=True)
class ExtractedEntry:
    """A payload file of an archive that is now current on disk."""

    name: str
    size: int
    modified: datetime
    checksum: str


# --- Ports (Interfaces) ---

class ChecksumSource(ABC):
    """A port for any source of expected archive checksums."""

    @abstractmethod
    def get_expected_checksum(self, edition: Edition) -> str:
        """Fetches the checksum of the current archive of an edition."""
        pass


class Downloader(ABC):
    """A port for any archive downloader."""

    @abstractmethod
    def download(
        self, edition: Edition, checksum: str, destination: Path
    ) -> ArchivedBundle:
        """
        Ensures a valid archive of the edition exists at destination.
        Raises IntegrityError if the downloaded archive does not match.
        """
        pass


class Hasher(ABC):
    """A port for hashing file and stream contents."""

    @abstractmethod
    def checksum_file(self, file_path: Path) -> str:
        """Computes the hex digest of a file on disk."""
        pass

    @abstractmethod
    def checksum_stream(self, stream: BinaryIO) -> Tuple[str, BinaryIO]:
        """
        Consumes a stream and returns its hex digest together with a
        reader positioned at the start of the consumed bytes.
        """
        pass


class Extractor(ABC):
    """A port for extracting payload files from an archive."""

    @abstractmethod
    def extract(
        self, archive: ArchivedBundle, destination_dir: Path
    ) -> List[ExtractedEntry]:
        """Materializes the archive's payload files into destination_dir."""
        pass
