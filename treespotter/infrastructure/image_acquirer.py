"""
Infrastructure layer: Image download with a single retry and format validation.
"""
import asyncio
import logging
from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_fixed,
    retry_if_exception_type,
)

from treespotter.config import settings
from treespotter.domain.exceptions import ImageAcquisitionError
from treespotter.infrastructure.api_constants import APIConstants, ImageSignatures

logger = logging.getLogger(__name__)


class ImageAcquirer:
    """
    Downloads submitted images from provider-hosted URLs.

    Timeouts and transport failures are retried with a fixed delay up to
    max_attempts in total. HTTP status, content-type and signature failures
    are definitive and never retried.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        """
        Initialize the acquirer.

        Args:
            client: Optional pre-configured HTTP client (mainly for tests)
            timeout: Per-attempt timeout in seconds
            max_attempts: Total attempts on timeout/transport failure
            retry_delay: Fixed delay in seconds between attempts
        """
        self.timeout = timeout if timeout is not None else settings.image_fetch_timeout
        self.max_attempts = max_attempts or settings.image_fetch_max_attempts
        self.retry_delay = (
            retry_delay if retry_delay is not None else settings.image_fetch_retry_delay
        )
        self.client = client or httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "ImageAcquirer":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _fetch(self, url: str) -> httpx.Response:
        """
        GET the URL, retrying on timeout or transport failure.

        The timeout bounds each whole attempt, body included, not only the
        individual connect/read phases httpx times on its own.

        Raises:
            httpx.TransportError: If every attempt failed
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                logger.debug(f"Fetching {url} (attempt {attempt_number}/{self.max_attempts})")
                try:
                    return await asyncio.wait_for(
                        self.client.get(url, timeout=self.timeout),
                        timeout=self.timeout,
                    )
                except asyncio.TimeoutError:
                    raise httpx.ReadTimeout(f"Attempt exceeded {self.timeout}s")

    async def acquire(self, url: str, content_type: str) -> bytes:
        """
        Download an image and validate it against its declared type.

        Args:
            url: Image URL
            content_type: MIME type declared by the submitting provider

        Returns:
            Raw image bytes

        Raises:
            ImageAcquisitionError: On network, status, content-type or
                signature failure
        """
        try:
            response = await self._fetch(url)
        except httpx.TimeoutException as e:
            raise ImageAcquisitionError(
                f"Timed out fetching image after {self.max_attempts} attempts: {e}",
                image_ref=url,
            )
        except httpx.TransportError as e:
            raise ImageAcquisitionError(
                f"Failed to fetch image after {self.max_attempts} attempts: {e}",
                image_ref=url,
            )

        if not response.is_success:
            raise ImageAcquisitionError(
                f"Failed to fetch image: {response.status_code} {response.reason_phrase}",
                image_ref=url,
            )

        response_type = response.headers.get("content-type", "")
        if not response_type.lower().startswith(APIConstants.IMAGE_CONTENT_TYPE_PREFIX):
            raise ImageAcquisitionError(
                f"Invalid content type: {response_type or 'missing'}. Expected an image.",
                image_ref=url,
            )

        content = response.content
        if not ImageSignatures.matches(content_type, content):
            raise ImageAcquisitionError(
                f"Image data does not match declared content type {content_type}",
                image_ref=url,
            )

        logger.debug(f"Fetched {len(content)} bytes from {url}")
        return content
