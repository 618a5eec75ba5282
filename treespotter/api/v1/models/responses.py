"""
API response models using Pydantic.
"""
from typing import List
from pydantic import BaseModel, Field

from treespotter.domain.models import BatchResult, ProcessingStage


class TreeImageResponse(BaseModel):
    """Single processed image (image bytes are not echoed back)."""
    image_ref: str = Field(description="Source URL or filename")
    content_type: str
    latitude: float = Field(
        description="Latitude coordinate in degrees",
        examples=[-33.865]
    )
    longitude: float = Field(
        description="Longitude coordinate in degrees",
        examples=[151.2094]
    )
    diameter_cm: float = Field(description="Trunk diameter in centimeters")


class TreeResponse(BaseModel):
    """Images grouped as one physical tree."""
    images: List[TreeImageResponse]


class ProcessingErrorResponse(BaseModel):
    """Per-image failure."""
    stage: ProcessingStage
    image_ref: str
    message: str


class SubmissionResponse(BaseModel):
    """Response model for the submissions endpoint."""
    tree_count: int = Field(description="Number of trees identified")
    error_count: int = Field(description="Number of images that failed processing")
    trees: List[TreeResponse]
    errors: List[ProcessingErrorResponse]

    @classmethod
    def from_batch_result(cls, result: BatchResult) -> "SubmissionResponse":
        """Build the response from a pipeline result."""
        return cls(
            tree_count=len(result.trees),
            error_count=len(result.errors),
            trees=[
                TreeResponse(images=[
                    TreeImageResponse(
                        image_ref=image.image_ref,
                        content_type=image.content_type,
                        latitude=image.gps.latitude,
                        longitude=image.gps.longitude,
                        diameter_cm=image.diameter_cm,
                    )
                    for image in tree.images
                ])
                for tree in result.trees
            ],
            errors=[
                ProcessingErrorResponse(
                    stage=error.stage,
                    image_ref=error.image_ref,
                    message=error.message,
                )
                for error in result.errors
            ],
        )

    class Config:
        json_schema_extra = {
            "example": {
                "tree_count": 1,
                "error_count": 1,
                "trees": [
                    {"images": [{
                        "image_ref": "https://example.com/media/IMG_9883.jpeg",
                        "content_type": "image/jpeg",
                        "latitude": -33.865,
                        "longitude": 151.2094,
                        "diameter_cm": 25.0,
                    }]}
                ],
                "errors": [
                    {
                        "stage": "gps_extraction",
                        "image_ref": "https://example.com/media/IMG_9884.jpeg",
                        "message": "No GPS coordinates found in image EXIF data",
                    }
                ]
            }
        }
