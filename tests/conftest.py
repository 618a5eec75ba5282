"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- In-memory JPEG images with GPS EXIF metadata
- Scripted text generation runners
- Processed image factories
- FastAPI test client
"""
import io
import math
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from treespotter.main import app
from treespotter.domain.models import GpsCoordinate, ProcessedImage
from treespotter.utils.geo_distance import EARTH_RADIUS_M

GPS_INFO_IFD = 0x8825

# Meters per degree of latitude on the haversine sphere
METERS_PER_DEGREE = EARTH_RADIUS_M * math.pi / 180


# ============================================================
# Image Fixtures
# ============================================================

def make_jpeg(gps: Optional[Dict[int, Any]] = None) -> bytes:
    """
    Create a small JPEG, optionally carrying a GPS IFD.

    Args:
        gps: Raw GPS IFD, e.g. {1: "S", 2: (33.0, 51.0, 54.0), 3: "E", 4: (...)}

    Returns:
        Encoded JPEG bytes
    """
    image = Image.new("RGB", (8, 8), color=(34, 139, 34))
    exif = Image.Exif()
    if gps is not None:
        exif[GPS_INFO_IFD] = gps
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", exif=exif)
    return buffer.getvalue()


@pytest.fixture
def sydney_jpeg() -> bytes:
    """JPEG geotagged at 33°51'54"S 151°12'36"E."""
    return make_jpeg({
        1: "S",
        2: (33.0, 51.0, 54.0),
        3: "E",
        4: (151.0, 12.0, 36.0),
    })


@pytest.fixture
def plain_jpeg() -> bytes:
    """JPEG without any GPS metadata."""
    return make_jpeg()


# ============================================================
# Text Generation Fixtures
# ============================================================

class ScriptedRunner:
    """Text generation stub that replays a fixed response or error."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls: List[tuple] = []

    async def run(self, model: str, inputs: Dict[str, Any]) -> Any:
        self.calls.append((model, inputs))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def scripted_runner() -> Callable[..., ScriptedRunner]:
    """Factory for scripted text generation runners."""
    return ScriptedRunner


# ============================================================
# Processed Image Fixtures
# ============================================================

def offset_coordinate(
    origin: GpsCoordinate,
    north_m: float = 0.0,
    east_m: float = 0.0,
) -> GpsCoordinate:
    """Move a coordinate by a number of meters north/east (small offsets)."""
    latitude = origin.latitude + north_m / METERS_PER_DEGREE
    longitude = origin.longitude + east_m / (
        METERS_PER_DEGREE * math.cos(math.radians(origin.latitude))
    )
    return GpsCoordinate(latitude=latitude, longitude=longitude)


def make_processed_image(
    gps: GpsCoordinate,
    image_ref: str = "IMG_0001.jpeg",
    diameter_cm: float = 30.0,
) -> ProcessedImage:
    """Create a processed image at the given coordinate."""
    return ProcessedImage(
        image_ref=image_ref,
        content=b"\xff\xd8\xff\xe0",
        content_type="image/jpeg",
        gps=gps,
        diameter_cm=diameter_cm,
    )


@pytest.fixture
def origin() -> GpsCoordinate:
    """Reference coordinate used by grouping tests."""
    return GpsCoordinate(latitude=-33.865, longitude=151.21)


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)
