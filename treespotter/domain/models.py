"""
Domain models for submitted images, processed images and trees.

These models represent the core domain entities and should be independent
of any infrastructure concerns (HTTP clients, storage, etc.).
"""
from enum import Enum
from typing import List, Union
from pydantic import BaseModel, Field


class GpsCoordinate(BaseModel):
    """Signed decimal GPS coordinate."""
    latitude: float = Field(ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(ge=-180, le=180, description="Longitude in degrees")

    class Config:
        frozen = True


class RemoteImage(BaseModel):
    """Image referenced by URL (messaging-provider flow)."""
    url: str
    content_type: str

    @property
    def image_ref(self) -> str:
        return self.url


class InlineImage(BaseModel):
    """Image already loaded in memory (email-provider flow)."""
    filename: str
    content_type: str
    content: bytes

    @property
    def image_ref(self) -> str:
        return self.filename


SubmittedImage = Union[RemoteImage, InlineImage]


class Submission(BaseModel):
    """All images accompanying one inbound message."""
    subject: str = ""
    body: str = ""
    images: List[SubmittedImage] = Field(default_factory=list)


class ProcessedImage(BaseModel):
    """An image that passed acquisition, GPS extraction and diameter estimation."""
    image_ref: str = Field(description="Source URL or filename")
    content: bytes
    content_type: str
    gps: GpsCoordinate
    diameter_cm: float = Field(gt=0, le=1000, description="Trunk diameter in cm")

    class Config:
        frozen = True


class Tree(BaseModel):
    """A cluster of images of the same physical tree."""
    images: List[ProcessedImage]

    class Config:
        frozen = True


class ProcessingStage(str, Enum):
    """Pipeline stage at which an image failed."""
    IMAGE_ACQUISITION = "image_acquisition"
    GPS_EXTRACTION = "gps_extraction"
    DIAMETER_CALCULATION = "diameter_calculation"


class ProcessingError(BaseModel):
    """A per-image failure tagged with the stage that produced it."""
    stage: ProcessingStage
    image_ref: str
    message: str

    class Config:
        frozen = True


class BatchResult(BaseModel):
    """Outcome of processing one submission."""
    trees: List[Tree] = Field(default_factory=list)
    errors: List[ProcessingError] = Field(default_factory=list)

    @property
    def processed_image_count(self) -> int:
        return sum(len(tree.images) for tree in self.trees)
