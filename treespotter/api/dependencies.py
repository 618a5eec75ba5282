"""
Dependency injection for FastAPI.
"""
from typing import Annotated, Optional
from fastapi import Depends

from treespotter.infrastructure.image_acquirer import ImageAcquirer
from treespotter.infrastructure.text_generation_client import (
    TextGenerationClient,
    get_text_generation_client,
)
from treespotter.services.domain.diameter_estimator import (
    DiameterEstimator,
    TextModelDiameterEstimator,
)
from treespotter.services.domain.gps_extractor import GpsExtractor
from treespotter.services.domain.tree_grouper import TreeGrouper
from treespotter.services.application.image_processing_service import ImageProcessingService


# Shared acquirer so the HTTP connection pool is reused across requests
_image_acquirer: Optional[ImageAcquirer] = None


def get_image_acquirer() -> ImageAcquirer:
    """
    Get or create the singleton image acquirer.

    Returns:
        ImageAcquirer instance
    """
    global _image_acquirer
    if _image_acquirer is None:
        _image_acquirer = ImageAcquirer()
    return _image_acquirer


def get_diameter_estimator(
    client: Annotated[TextGenerationClient, Depends(get_text_generation_client)],
) -> DiameterEstimator:
    """
    Dependency factory for the diameter estimator.

    Args:
        client: Text generation client (injected)

    Returns:
        DiameterEstimator instance
    """
    return TextModelDiameterEstimator(runner=client)


def get_image_processing_service(
    acquirer: Annotated[ImageAcquirer, Depends(get_image_acquirer)],
    diameter_estimator: Annotated[DiameterEstimator, Depends(get_diameter_estimator)],
) -> ImageProcessingService:
    """
    Dependency factory for ImageProcessingService.

    Args:
        acquirer: Image acquirer (injected)
        diameter_estimator: Diameter estimator (injected)

    Returns:
        ImageProcessingService instance
    """
    return ImageProcessingService(
        acquirer=acquirer,
        gps_extractor=GpsExtractor(),
        diameter_estimator=diameter_estimator,
        grouper=TreeGrouper(),
    )


# Type aliases for cleaner route signatures
ImageProcessingServiceDep = Annotated[
    ImageProcessingService, Depends(get_image_processing_service)
]
