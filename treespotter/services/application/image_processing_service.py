"""
Application service: Orchestration of the image-to-tree pipeline.
"""
import asyncio
import logging
from typing import List, Optional, Union

from treespotter.config import settings
from treespotter.domain.exceptions import (
    DiameterCalculationError,
    GpsExtractionError,
    ImageAcquisitionError,
    ImageProcessingError,
)
from treespotter.domain.models import (
    BatchResult,
    GpsCoordinate,
    InlineImage,
    ProcessedImage,
    ProcessingError,
    Submission,
    SubmittedImage,
)
from treespotter.infrastructure.image_acquirer import ImageAcquirer
from treespotter.services.domain.diameter_estimator import DiameterEstimator
from treespotter.services.domain.gps_extractor import GpsExtractor
from treespotter.services.domain.tree_grouper import TreeGrouper

logger = logging.getLogger(__name__)

ImageOutcome = Union[ProcessedImage, ProcessingError]


class ImageProcessingService:
    """
    Application service turning a submission into trees and errors.

    Orchestrates acquisition, GPS extraction, diameter estimation and
    grouping. Follows the application layer pattern - no business logic here,
    only coordination between infrastructure and domain layers.
    """

    def __init__(
        self,
        acquirer: ImageAcquirer,
        gps_extractor: GpsExtractor,
        diameter_estimator: DiameterEstimator,
        grouper: TreeGrouper,
        max_concurrency: Optional[int] = None,
    ):
        """
        Initialize the service with dependencies.

        Args:
            acquirer: Downloads remote images
            gps_extractor: Reads coordinates from image metadata
            diameter_estimator: Produces the trunk diameter
            grouper: Clusters processed images into trees
            max_concurrency: Maximum images processed at once
        """
        self.acquirer = acquirer
        self.gps_extractor = gps_extractor
        self.diameter_estimator = diameter_estimator
        self.grouper = grouper
        self.max_concurrency = max_concurrency or settings.max_concurrent_images

    async def process(self, submission: Submission) -> BatchResult:
        """
        Process every image of a submission.

        Each image either ends up in exactly one tree or yields exactly one
        stage-tagged error. A failing image never aborts the batch.

        Args:
            submission: Images plus the message subject/body they came with

        Returns:
            BatchResult with grouped trees and per-image errors
        """
        logger.info(f"Processing submission with {len(submission.images)} images")

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(image: SubmittedImage) -> ImageOutcome:
            async with semaphore:
                return await self._process_image(image, submission.subject, submission.body)

        outcomes = await asyncio.gather(*(bounded(image) for image in submission.images))

        processed: List[ProcessedImage] = []
        errors: List[ProcessingError] = []
        for outcome in outcomes:
            if isinstance(outcome, ProcessingError):
                errors.append(outcome)
            else:
                processed.append(outcome)

        trees = self.grouper.group(processed)

        logger.info(f"Submission processed: {len(processed)} images in {len(trees)} trees, "
                    f"{len(errors)} errors")
        return BatchResult(trees=trees, errors=errors)

    async def _process_image(
        self,
        image: SubmittedImage,
        subject: str,
        body: str,
    ) -> ImageOutcome:
        """
        Run one image through every stage.

        Returns:
            The assembled ProcessedImage, or the error of the first failing stage
        """
        image_ref = image.image_ref

        try:
            content = await self._acquire(image)
            gps = self._extract_gps(content, image_ref)
            diameter_cm = await self._estimate(subject, body)
        except ImageProcessingError as e:
            error = e.to_processing_error(image_ref)
            logger.warning(f"{error.stage.value} failed for {image_ref}: {error.message}")
            return error

        return ProcessedImage(
            image_ref=image_ref,
            content=content,
            content_type=image.content_type,
            gps=gps,
            diameter_cm=diameter_cm,
        )

    async def _acquire(self, image: SubmittedImage) -> bytes:
        """Download remote images; inline images already carry their bytes."""
        if isinstance(image, InlineImage):
            return image.content
        try:
            return await self.acquirer.acquire(image.url, image.content_type)
        except ImageAcquisitionError:
            raise
        except Exception as e:
            raise ImageAcquisitionError(f"Failed to acquire image: {e}")

    def _extract_gps(self, content: bytes, image_ref: str) -> GpsCoordinate:
        try:
            return self.gps_extractor.extract(content, image_ref)
        except GpsExtractionError:
            raise
        except Exception as e:
            raise GpsExtractionError(f"Failed to extract GPS coordinates: {e}")

    async def _estimate(self, subject: str, body: str) -> float:
        try:
            diameter_cm = await self.diameter_estimator.estimate(subject, body)
        except DiameterCalculationError:
            raise
        except Exception as e:
            raise DiameterCalculationError(f"Failed to calculate diameter: {e}")

        # ProcessedImage only accepts diameters in (0, 1000]
        if not 0 < diameter_cm <= 1000:
            raise DiameterCalculationError(
                f"Diameter {diameter_cm}cm is outside reasonable range (0-1000cm)"
            )
        return diameter_cm
