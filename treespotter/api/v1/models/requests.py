"""
API request models using Pydantic.
"""
from typing import List
from pydantic import BaseModel, Field

from treespotter.domain.models import RemoteImage, Submission


class SubmittedImageRequest(BaseModel):
    """A provider-hosted image to process."""
    url: str = Field(description="Fetchable image URL")
    content_type: str = Field(
        description="MIME type declared by the provider",
        examples=["image/jpeg"],
    )


class SubmissionRequest(BaseModel):
    """Request model for the submissions endpoint."""
    subject: str = Field(default="", description="Subject of the originating message")
    body: str = Field(default="", description="Body text of the originating message")
    images: List[SubmittedImageRequest] = Field(
        min_length=1,
        description="Images attached to the message",
    )

    def to_submission(self) -> Submission:
        """Convert to the domain submission."""
        return Submission(
            subject=self.subject,
            body=self.body,
            images=[
                RemoteImage(url=image.url, content_type=image.content_type)
                for image in self.images
            ],
        )

    class Config:
        json_schema_extra = {
            "example": {
                "subject": "Tree survey",
                "body": "Fallen oak on the trail, DBH: 25 centimeters",
                "images": [
                    {"url": "https://example.com/media/IMG_9883.jpeg", "content_type": "image/jpeg"},
                ]
            }
        }
