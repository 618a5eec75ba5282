"""
Unit tests for image acquisition.

Tests cover:
- Successful downloads
- Single retry on timeout/transport errors, with the timeout bounding each whole attempt
- No retry on HTTP status errors
- Content-type and signature validation
"""
import asyncio

import pytest
import httpx
import respx

from treespotter.domain.exceptions import ImageAcquisitionError
from treespotter.domain.models import ProcessingStage
from treespotter.infrastructure.api_constants import ImageSignatures
from treespotter.infrastructure.image_acquirer import ImageAcquirer

IMAGE_URL = "https://media.example.com/IMG_9883.jpeg"
JPEG_BYTES = bytes([0xFF, 0xD8, 0xFF, 0xE0]) + b"\x00" * 16
PNG_BYTES = bytes([0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A])


def image_response(content: bytes = JPEG_BYTES, content_type: str = "image/jpeg") -> httpx.Response:
    return httpx.Response(200, content=content, headers={"content-type": content_type})


# ============================================================
# Successful Download Tests
# ============================================================

class TestSuccessfulDownloads:
    """Tests for successful downloads."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_returns_image_bytes(self):
        """A valid JPEG response should return its bytes."""
        respx.get(IMAGE_URL).mock(return_value=image_response())

        async with ImageAcquirer() as acquirer:
            content = await acquirer.acquire(IMAGE_URL, "image/jpeg")

        assert content == JPEG_BYTES
        assert respx.calls.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_unknown_declared_type_is_not_checked(self):
        """Types without a known signature should pass through."""
        respx.get(IMAGE_URL).mock(return_value=image_response(b"ftypheic", "image/heic"))

        async with ImageAcquirer() as acquirer:
            content = await acquirer.acquire(IMAGE_URL, "image/heic")

        assert content == b"ftypheic"


# ============================================================
# Retry Tests
# ============================================================

class TestRetry:
    """Tests for the single-retry policy."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_then_success(self):
        """A timeout followed by success should succeed after two attempts."""
        route = respx.get(IMAGE_URL)
        route.side_effect = [httpx.ReadTimeout, image_response()]

        async with ImageAcquirer() as acquirer:
            content = await acquirer.acquire(IMAGE_URL, "image/jpeg")

        assert content == JPEG_BYTES
        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_two_timeouts_fail(self):
        """Two timeouts should fail permanently without a third attempt."""
        route = respx.get(IMAGE_URL)
        route.side_effect = httpx.ConnectTimeout

        async with ImageAcquirer() as acquirer:
            with pytest.raises(ImageAcquisitionError, match="Timed out") as exc_info:
                await acquirer.acquire(IMAGE_URL, "image/jpeg")

        assert route.call_count == 2
        assert exc_info.value.image_ref == IMAGE_URL
        assert exc_info.value.stage == ProcessingStage.IMAGE_ACQUISITION

    @pytest.mark.asyncio
    async def test_slow_attempt_is_bounded_as_a_whole(self):
        """An attempt that outlasts the timeout should count as a timed-out attempt."""
        calls = []

        async def slow_handler(request):
            calls.append(request)
            if len(calls) == 1:
                await asyncio.sleep(1.0)
            return image_response()

        client = httpx.AsyncClient(transport=httpx.MockTransport(slow_handler))
        async with ImageAcquirer(client=client, timeout=0.05, retry_delay=0) as acquirer:
            content = await acquirer.acquire(IMAGE_URL, "image/jpeg")

        assert content == JPEG_BYTES
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_slow_attempts_fail_as_timeout(self):
        calls = []

        async def slow_handler(request):
            calls.append(request)
            await asyncio.sleep(1.0)
            return image_response()

        client = httpx.AsyncClient(transport=httpx.MockTransport(slow_handler))
        async with ImageAcquirer(client=client, timeout=0.05, retry_delay=0) as acquirer:
            with pytest.raises(ImageAcquisitionError, match="Timed out fetching image after 2 attempts"):
                await acquirer.acquire(IMAGE_URL, "image/jpeg")

        assert len(calls) == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_errors_fail(self):
        """Connection errors should be retried once, then fail."""
        route = respx.get(IMAGE_URL)
        route.side_effect = httpx.ConnectError

        async with ImageAcquirer(retry_delay=0) as acquirer:
            with pytest.raises(ImageAcquisitionError, match="Failed to fetch image after 2 attempts"):
                await acquirer.acquire(IMAGE_URL, "image/jpeg")

        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_not_retried(self):
        """Non-2xx responses should fail immediately with the status."""
        route = respx.get(IMAGE_URL).mock(return_value=httpx.Response(404, text="Not Found"))

        async with ImageAcquirer() as acquirer:
            with pytest.raises(ImageAcquisitionError, match="404 Not Found"):
                await acquirer.acquire(IMAGE_URL, "image/jpeg")

        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_not_retried(self):
        """5xx responses are definitive too."""
        route = respx.get(IMAGE_URL).mock(return_value=httpx.Response(503))

        async with ImageAcquirer() as acquirer:
            with pytest.raises(ImageAcquisitionError, match="503"):
                await acquirer.acquire(IMAGE_URL, "image/jpeg")

        assert route.call_count == 1


# ============================================================
# Validation Tests
# ============================================================

class TestValidation:
    """Tests for content-type and signature validation."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_image_content_type(self):
        """Non-image responses should be rejected."""
        route = respx.get(IMAGE_URL).mock(
            return_value=image_response(b"<html></html>", "text/html; charset=utf-8")
        )

        async with ImageAcquirer() as acquirer:
            with pytest.raises(ImageAcquisitionError, match="Invalid content type"):
                await acquirer.acquire(IMAGE_URL, "image/jpeg")

        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_signature_mismatch(self):
        """JPEG bytes declared as PNG should be rejected without retry."""
        route = respx.get(IMAGE_URL).mock(return_value=image_response(JPEG_BYTES, "image/png"))

        async with ImageAcquirer() as acquirer:
            with pytest.raises(ImageAcquisitionError, match="does not match declared content type"):
                await acquirer.acquire(IMAGE_URL, "image/png")

        assert route.call_count == 1


class TestImageSignatures:
    """Tests for the magic-number table."""

    @pytest.mark.parametrize("content_type,content", [
        ("image/jpeg", JPEG_BYTES),
        ("image/png", PNG_BYTES),
        ("image/gif", b"GIF89a"),
        ("image/webp", b"RIFF\x00\x00\x00\x00WEBP"),
        ("image/bmp", b"BM\x00\x00"),
        ("image/tiff", bytes([0x49, 0x49, 0x2A, 0x00])),
        ("IMAGE/JPEG; charset=binary", JPEG_BYTES),
    ])
    def test_known_signatures_match(self, content_type, content):
        assert ImageSignatures.matches(content_type, content)

    @pytest.mark.parametrize("content_type,content", [
        ("image/jpeg", PNG_BYTES),
        ("image/png", b""),
        ("image/gif", b"GIF"[:2]),
    ])
    def test_mismatches(self, content_type, content):
        assert not ImageSignatures.matches(content_type, content)

    def test_unknown_type_passes(self):
        assert ImageSignatures.matches("image/heic", b"anything")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
