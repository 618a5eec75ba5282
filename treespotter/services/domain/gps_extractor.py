"""
Domain service: GPS coordinate extraction from image EXIF metadata.

Resolves the GPS IFD of an image to a signed decimal coordinate:
- Sexagesimal "D,M,S" strings, rational triples or plain numbers
- Hemisphere references (S/W negate)
- Range validation of the final coordinate
"""
import io
import logging
import math
from numbers import Real
from typing import Any, Dict, Optional

from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import GPSTAGS

from treespotter.domain.exceptions import GpsExtractionError
from treespotter.domain.models import GpsCoordinate

logger = logging.getLogger(__name__)

GPS_INFO_IFD = 0x8825

SOUTH_REFERENCES = ("S", "South latitude")
WEST_REFERENCES = ("W", "West longitude")


def sexagesimal_to_decimal(value: Any) -> Optional[float]:
    """
    Convert a raw EXIF coordinate value to decimal degrees.

    Accepts a number, a "D,M,S" string (fewer components allowed) or a
    sequence of up to three numbers such as Pillow's rational triples.

    Args:
        value: Raw GPSLatitude/GPSLongitude value

    Returns:
        Unsigned decimal degrees, or None if the value is not a valid coordinate
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, Real):
        parts = [value]
    elif isinstance(value, str):
        parts = [part.strip() for part in value.split(",")]
    elif isinstance(value, (tuple, list)):
        parts = list(value)
    else:
        return None

    if not 1 <= len(parts) <= 3:
        return None

    try:
        numbers = [float(part) for part in parts]
    except (TypeError, ValueError, ZeroDivisionError):
        return None

    if not all(math.isfinite(number) for number in numbers):
        return None

    numbers += [0.0] * (3 - len(numbers))
    degrees, minutes, seconds = numbers
    return degrees + minutes / 60 + seconds / 3600


def _reference(value: Any) -> Optional[str]:
    """Normalize an EXIF reference tag (str or bytes) to a stripped string."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    return str(value).strip("\x00 ")


class GpsExtractor:
    """
    Domain service for reading GPS coordinates from image bytes.

    Parsing is synchronous and side-effect free; there are no retries.
    """

    def read_gps_tags(self, content: bytes) -> Dict[str, Any]:
        """
        Parse the GPS IFD of an image.

        Args:
            content: Raw image bytes

        Returns:
            Mapping of GPS tag name (e.g. "GPSLatitude") to raw value

        Raises:
            Exception: Whatever the image decoder raises on unreadable data
        """
        with Image.open(io.BytesIO(content)) as image:
            gps_ifd = image.getexif().get_ifd(GPS_INFO_IFD)
        return {GPSTAGS.get(tag, tag): value for tag, value in gps_ifd.items()}

    def extract(self, content: bytes, image_ref: str) -> GpsCoordinate:
        """
        Extract a validated GPS coordinate from an image.

        Args:
            content: Raw image bytes
            image_ref: URL or filename used in error reports

        Returns:
            GpsCoordinate with signed decimal degrees

        Raises:
            GpsExtractionError: If metadata is unreadable, missing, malformed
                or out of range
        """
        try:
            tags = self.read_gps_tags(content)
        except UnidentifiedImageError:
            raise GpsExtractionError(
                "Failed to parse EXIF data: unrecognized image format",
                image_ref=image_ref,
            )
        except Exception as e:
            raise GpsExtractionError(
                f"Failed to parse EXIF data: {e}",
                image_ref=image_ref,
            )

        if "GPSLatitude" not in tags or "GPSLongitude" not in tags:
            raise GpsExtractionError(
                "No GPS coordinates found in image EXIF data",
                image_ref=image_ref,
            )

        latitude = sexagesimal_to_decimal(tags["GPSLatitude"])
        if latitude is None:
            raise GpsExtractionError(
                "Invalid GPS latitude format in EXIF data",
                image_ref=image_ref,
            )

        longitude = sexagesimal_to_decimal(tags["GPSLongitude"])
        if longitude is None:
            raise GpsExtractionError(
                "Invalid GPS longitude format in EXIF data",
                image_ref=image_ref,
            )

        if _reference(tags.get("GPSLatitudeRef")) in SOUTH_REFERENCES:
            latitude = -latitude
        if _reference(tags.get("GPSLongitudeRef")) in WEST_REFERENCES:
            longitude = -longitude

        if latitude < -90 or latitude > 90:
            raise GpsExtractionError(
                f"Invalid latitude value: {latitude}. Must be between -90 and 90.",
                image_ref=image_ref,
            )
        if longitude < -180 or longitude > 180:
            raise GpsExtractionError(
                f"Invalid longitude value: {longitude}. Must be between -180 and 180.",
                image_ref=image_ref,
            )

        logger.info(
            f"Extracted GPS coordinates from image: {image_ref} - "
            f"Latitude: {latitude}, Longitude: {longitude}"
        )
        return GpsCoordinate(latitude=latitude, longitude=longitude)
