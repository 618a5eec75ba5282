"""
Stage-specific exceptions raised by the image processing components.

Components raise these; the application service converts them into
ProcessingError values so that no failure escapes a stage boundary.
"""
from typing import Optional

from treespotter.domain.models import ProcessingError, ProcessingStage


class ImageProcessingError(Exception):
    """Base class for per-image pipeline failures."""

    stage: ProcessingStage

    def __init__(self, message: str, image_ref: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.image_ref = image_ref

    def to_processing_error(self, image_ref: Optional[str] = None) -> ProcessingError:
        """
        Convert to the value reported back to callers.

        Args:
            image_ref: Reference to use when the raising component did not
                know which image it was working on (e.g. diameter estimation)

        Returns:
            ProcessingError tagged with this exception's stage
        """
        return ProcessingError(
            stage=self.stage,
            image_ref=self.image_ref or image_ref or "",
            message=self.message,
        )


class ImageAcquisitionError(ImageProcessingError):
    """Download, HTTP status, content-type or signature failure."""
    stage = ProcessingStage.IMAGE_ACQUISITION


class GpsExtractionError(ImageProcessingError):
    """Missing, malformed or out-of-range GPS metadata."""
    stage = ProcessingStage.GPS_EXTRACTION


class DiameterCalculationError(ImageProcessingError):
    """Model failure or unusable diameter value."""
    stage = ProcessingStage.DIAMETER_CALCULATION
