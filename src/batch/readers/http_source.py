"""
One-shot HTTP download of the wastewater CSV.
"""

import io
import logging
from typing import BinaryIO

import httpx

from src.core.errors import FetchError
from src.observability import metrics
from src.observability.logger import get_logger


class HttpSource:
    """
    Downloads the source file with a single best-effort GET.

    There is no retry: a failed attempt raises FetchError and the next
    scheduled run tries again.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize HTTP source.

        Args:
            url: CSV location
            timeout: Request timeout in seconds
            client: Optional preconfigured httpx client (tests inject a MockTransport)
            logger: Logger instance
        """
        self.url = url
        self.timeout = timeout
        self.logger = logger or get_logger(__name__)
        if client is None:
            self._client = httpx.Client(timeout=timeout, follow_redirects=True)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    def fetch(self) -> BinaryIO:
        """
        Download the file into memory.

        Returns:
            Binary stream positioned at the start of the body

        Raises:
            FetchError: On transport errors or non-2xx responses
        """
        self.logger.info("Requesting wastewater data", extra={"url": self.url})
        try:
            response = self._client.get(self.url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to download {self.url}: {e}") from e

        metrics.fetch_bytes.set(len(response.content))
        self.logger.info(
            "Downloaded wastewater data",
            extra={"url": self.url, "bytes": len(response.content)},
        )
        return io.BytesIO(response.content)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
