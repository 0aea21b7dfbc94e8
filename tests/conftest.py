import hashlib
import io
import tarfile
import time
import zipfile
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import pytest

from geoip_updater.application.domain import Edition
from geoip_updater.infrastructure.api_client import HttpChecksumSource
from geoip_updater.infrastructure.downloader import HttpArchiveDownloader
from geoip_updater.infrastructure.extractor import ArchiveExtractor
from geoip_updater.infrastructure.hashing import Md5Hasher
from geoip_updater.application.service import EditionPipeline

BASE_URL = "https://updates.example.test"
LICENSE_KEY = "test-license-key"

# 2024-01-02T03:04:06Z, an even second so zip timestamps round-trip
ENTRY_MTIME = 1704164646


def md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def build_tar_gz(members: Dict[str, Optional[bytes]], mtime: int = ENTRY_MTIME) -> bytes:
    """Build a tar.gz in memory; a None value stands for a directory."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.mtime = mtime
            if data is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def build_zip(members: Dict[str, Optional[bytes]], mtime: int = ENTRY_MTIME) -> bytes:
    """Build a zip in memory; a None value stands for a directory."""
    buffer = io.BytesIO()
    date_time = time.gmtime(mtime)[:6]
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, data in members.items():
            if data is None:
                archive.writestr(zipfile.ZipInfo(name.rstrip("/") + "/", date_time), b"")
            else:
                archive.writestr(zipfile.ZipInfo(name, date_time), data)
    return buffer.getvalue()


class FakeDownloadService:
    """Stands in for the download endpoint behind an httpx.MockTransport."""

    def __init__(self, archive: bytes, checksum: Optional[str] = None):
        self.archive = archive
        self.checksum = md5(archive) if checksum is None else checksum
        self.checksum_status = 200
        self.archive_status = 200
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.params["suffix"].endswith(".md5"):
            return httpx.Response(self.checksum_status, text=self.checksum)
        return httpx.Response(self.archive_status, content=self.archive)

    @property
    def archive_requests(self) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if not r.url.params["suffix"].endswith(".md5")
        ]

    @property
    def checksum_requests(self) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.url.params["suffix"].endswith(".md5")
        ]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


PAYLOAD = {
    "GeoLite2-City_20240102/": None,
    "GeoLite2-City_20240102/COPYRIGHT.txt": b"copyright",
    "GeoLite2-City_20240102/GeoLite2-City.mmdb": b"mmdb-bytes" * 100,
    "GeoLite2-City_20240102/GeoLite2-City-Locations.csv": b"id,name\n1,Paris\n",
}


@pytest.fixture
def archive_bytes() -> bytes:
    return build_tar_gz(PAYLOAD)


@pytest.fixture
def fake_service(archive_bytes) -> FakeDownloadService:
    return FakeDownloadService(archive_bytes)


@pytest.fixture
def hasher() -> Md5Hasher:
    return Md5Hasher(chunk_size=16, spool_max_size=64)


@pytest.fixture
def work_dir(tmp_path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def download_dir(tmp_path) -> Path:
    path = tmp_path / "databases"
    path.mkdir()
    return path


@pytest.fixture
def make_pipeline(hasher, work_dir, download_dir):
    def _make(service: FakeDownloadService, **downloader_kwargs) -> EditionPipeline:
        client = service.client()
        return EditionPipeline(
            checksum_source=HttpChecksumSource(client, LICENSE_KEY, BASE_URL),
            downloader=HttpArchiveDownloader(
                client,
                LICENSE_KEY,
                BASE_URL,
                hasher=hasher,
                chunk_size=32,
                show_progress=False,
                **downloader_kwargs,
            ),
            extractor=ArchiveExtractor(hasher),
            work_dir=work_dir,
            download_dir=download_dir,
        )
    return _make


@pytest.fixture
def edition() -> Edition:
    return Edition.GEOLITE2_CITY
