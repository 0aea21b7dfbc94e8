"""Base class for clients of the download service."""

import logging
from typing import Dict, Optional

import httpx

from ..application.domain import Edition
from ..application.exceptions import ConfigurationError, TransportError

_DOWNLOAD_ENDPOINT = "/app/geoip_download"


class BaseClient:
    """A base client that holds the HTTP client and account configuration."""

    def __init__(
        self,
        client: httpx.Client,
        license_key: str,
        base_url: str,
        user_agent: Optional[str] = None,
    ):
        """
        Initializes the base client.

        Args:
            client: An instance of httpx.Client.
            license_key: The account license key.
            base_url: Root URL of the download service.
            user_agent: Optional User-Agent header value.

        Raises:
            ConfigurationError: If the license key is missing or appears to
                                be a placeholder.
        """

        if not license_key or "YOUR_" in license_key.upper():
            raise ConfigurationError(
                f"License key for {self.__class__.__name__} is missing "
                f"or is a placeholder. Please check your config files."
            )

        self.client = client
        self.license_key = license_key
        self.endpoint = base_url.rstrip("/") + _DOWNLOAD_ENDPOINT
        self.user_agent = user_agent
        self.logger = logging.getLogger(self.__class__.__name__)

    def _params(self, edition: Edition, suffix: str) -> Dict[str, str]:
        return {
            "license_key": self.license_key,
            "edition_id": edition.value,
            "suffix": suffix,
        }

    def _headers(self) -> Dict[str, str]:
        if self.user_agent:
            return {"User-Agent": self.user_agent}
        return {}

    def _raise_for_status(self, response: httpx.Response):
        """Raise TransportError for anything but a 200 response."""
        if response.status_code == httpx.codes.OK:
            return
        body = response.read().decode("utf-8", errors="replace")
        raise TransportError(
            f"Received invalid status code {response.status_code}: {body}",
            status_code=response.status_code,
            body=body,
        )
