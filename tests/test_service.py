"""Tests for the edition pipeline and the updater service."""

import pytest

from geoip_updater.application.domain import Edition
from geoip_updater.application.exceptions import IntegrityError, TransportError
from geoip_updater.application.service import UpdaterService
from geoip_updater.infrastructure.extractor import ArchiveExtractor

from conftest import PAYLOAD, FakeDownloadService, build_tar_gz, md5


def _count_writes(monkeypatch):
    writes = []
    original = ArchiveExtractor._write_entry

    def counting_write(self, reader, destination):
        writes.append(destination.name)
        return original(self, reader, destination)

    monkeypatch.setattr(ArchiveExtractor, "_write_entry", counting_write)
    return writes


def test_run_fetches_verifies_and_extracts(
    fake_service, make_pipeline, edition, work_dir, download_dir
):
    entries = make_pipeline(fake_service).run(edition)

    assert [e.name for e in entries] == ["GeoLite2-City.mmdb", "GeoLite2-City-Locations.csv"]
    assert (work_dir / "GeoLite2-City.tar.gz").read_bytes() == fake_service.archive
    assert (work_dir / ".GeoLite2-City.tar.gz.md5").read_text() == fake_service.checksum
    for entry in entries:
        source = PAYLOAD[f"GeoLite2-City_20240102/{entry.name}"]
        assert (download_dir / entry.name).read_bytes() == source
        assert entry.checksum == md5(source)
    assert len(fake_service.checksum_requests) == 1
    assert len(fake_service.archive_requests) == 1


def test_second_run_transfers_and_writes_nothing(
    fake_service, make_pipeline, edition, monkeypatch
):
    pipeline = make_pipeline(fake_service)
    first = pipeline.run(edition)

    writes = _count_writes(monkeypatch)
    second = pipeline.run(edition)

    assert second == first
    assert writes == []
    assert len(fake_service.archive_requests) == 1
    assert len(fake_service.checksum_requests) == 2


def test_corrupt_archive_behind_matching_marker_is_replaced(
    fake_service, make_pipeline, edition, work_dir, download_dir
):
    (work_dir / "GeoLite2-City.tar.gz").write_bytes(b"truncated by a crash")
    (work_dir / ".GeoLite2-City.tar.gz.md5").write_text(fake_service.checksum)

    entries = make_pipeline(fake_service).run(edition)

    assert len(fake_service.archive_requests) == 1
    assert (work_dir / "GeoLite2-City.tar.gz").read_bytes() == fake_service.archive
    assert [e.name for e in entries] == ["GeoLite2-City.mmdb", "GeoLite2-City-Locations.csv"]
    assert (download_dir / "GeoLite2-City.mmdb").exists()


def test_checksum_mismatch_fails_closed(
    fake_service, make_pipeline, edition, work_dir, download_dir
):
    fake_service.checksum = "deadbeef"

    with pytest.raises(IntegrityError) as exc_info:
        make_pipeline(fake_service).run(edition)

    assert "deadbeef" in str(exc_info.value)
    assert md5(fake_service.archive) in str(exc_info.value)
    assert not (work_dir / ".GeoLite2-City.tar.gz.md5").exists()
    assert not (work_dir / "GeoLite2-City.tar.gz").exists()
    assert list(download_dir.iterdir()) == []


def test_checksum_fetch_failure_aborts_before_download(
    fake_service, make_pipeline, edition, work_dir
):
    fake_service.checksum_status = 503

    with pytest.raises(TransportError) as exc_info:
        make_pipeline(fake_service).run(edition)

    assert exc_info.value.status_code == 503
    assert fake_service.archive_requests == []
    assert list(work_dir.iterdir()) == []


def test_new_edition_release_is_picked_up(fake_service, make_pipeline, edition, download_dir):
    pipeline = make_pipeline(fake_service)
    pipeline.run(edition)

    updated = dict(PAYLOAD)
    updated["GeoLite2-City_20240102/GeoLite2-City.mmdb"] = b"next release"
    fake_service.archive = build_tar_gz(updated)
    fake_service.checksum = md5(fake_service.archive)

    entries = pipeline.run(edition)

    assert len(fake_service.archive_requests) == 2
    assert (download_dir / "GeoLite2-City.mmdb").read_bytes() == b"next release"
    assert entries[0].checksum == md5(b"next release")


def test_updater_service_runs_editions_in_order(make_pipeline, archive_bytes):
    service = FakeDownloadService(archive_bytes)

    results = UpdaterService(make_pipeline(service)).run(
        [Edition.GEOLITE2_CITY, Edition.GEOLITE2_ASN]
    )

    assert list(results) == [Edition.GEOLITE2_CITY, Edition.GEOLITE2_ASN]
    assert [r.url.params["edition_id"] for r in service.archive_requests] == [
        "GeoLite2-City", "GeoLite2-ASN",
    ]


def test_updater_service_with_no_editions(make_pipeline, fake_service):
    assert UpdaterService(make_pipeline(fake_service)).run([]) == {}
    assert fake_service.requests == []
