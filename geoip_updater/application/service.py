"""
The core application service and pipeline, containing pure business logic.

This module defines the main orchestrator (UpdaterService) for the update
process and the pipeline (EditionPipeline) that fetches, verifies and
extracts the archive of a single edition.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List

from .domain import *

logger = logging.getLogger(__name__)


class EditionPipeline:
    """Encapsulates the fetch-verify-extract pipeline for a single edition."""

    def __init__(
        self,
        checksum_source: ChecksumSource,
        downloader: Downloader,
        extractor: Extractor,
        work_dir: Path,
        download_dir: Path,
    ):
        """Initializes the pipeline with necessary dependencies (ports)."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.checksum_source = checksum_source
        self.downloader = downloader
        self.extractor = extractor
        self.work_dir = Path(work_dir)
        self.download_dir = Path(download_dir)

    def run(self, edition: Edition) -> List[ExtractedEntry]:
        """Executes the sequential steps for updating one edition.

        Any failure aborts the pipeline immediately; entries extracted
        before the failure stay on disk.

        Args:
            edition: The edition to update.

        Returns:
            The payload entries that are now current in the download
            directory, in archive order.
        """

        archive_path = self.work_dir / edition.filename

        self.logger.info(f"Starting pipeline for {edition}...")

        # Step 1: Expected checksum (Edition -> str)
        checksum = self.checksum_source.get_expected_checksum(edition)

        # Step 2: Fetch and verify (str -> ArchivedBundle), persists the marker
        archive = self.downloader.download(edition, checksum, archive_path)

        # Step 3: Extract (ArchivedBundle -> List[ExtractedEntry])
        entries = self.extractor.extract(archive, self.download_dir)

        self.logger.info(
            f"{edition} is up to date ({len(entries)} databases)"
        )

        return entries


class UpdaterService:
    """Orchestrates the update of several editions, one after the other."""

    def __init__(self, pipeline: EditionPipeline):
        self.pipeline = pipeline

    def run(
        self, editions: Iterable[Edition]
    ) -> Dict[Edition, List[ExtractedEntry]]:
        """Updates every requested edition, stopping at the first failure."""

        editions = list(editions)
        if not editions:
            logger.info("No editions configured.")
            return {}

        logger.info(
            f"Starting updater for {', '.join(str(e) for e in editions)}"
        )

        results = {}
        for edition in editions:
            results[edition] = self.pipeline.run(edition)

        logger.info("All editions updated.")

        return results
