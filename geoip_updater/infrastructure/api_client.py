"""HTTP implementation of the ChecksumSource port."""

from typing import Dict

import httpx

from ..application.domain import ChecksumSource, Edition
from ..application.exceptions import TransportError

from .base_client import BaseClient


class HttpChecksumSource(BaseClient, ChecksumSource):
    """Fetches the expected archive checksum from the download service."""

    def _execute_fetch(self, params: Dict[str, str]) -> str:
        """Executes the raw HTTP GET request."""
        try:
            response = self.client.get(
                self.endpoint, params=params, headers=self._headers()
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {e}") from e
        self._raise_for_status(response)
        return response.text

    def get_expected_checksum(self, edition: Edition) -> str:
        """
        Fetches the MD5 checksum of the current archive of an edition.

        The response body is the checksum itself, it is returned as is.

        Args:
            edition: The edition whose archive checksum is requested.

        Returns:
            The expected checksum as a hex string.

        Raises:
            TransportError: If the request fails or the status is not 200.
        """

        params = self._params(edition, edition.checksum_suffix)
        self.logger.info(f"Fetching archive checksum for {edition}...")

        checksum = self._execute_fetch(params)

        self.logger.debug(f"Expected checksum for {edition} is {checksum}")

        return checksum
