"""
API router for image submission endpoints.
"""
from fastapi import APIRouter, Request

from treespotter.api.dependencies import ImageProcessingServiceDep
from treespotter.api.rate_limit import limiter, SUBMISSION_RATE_LIMIT
from treespotter.api.v1.models.requests import SubmissionRequest
from treespotter.api.v1.models.responses import SubmissionResponse


router = APIRouter(
    prefix="/submissions",
    tags=["submissions"],
)


@router.post(
    "",
    response_model=SubmissionResponse,
    summary="Process a tree photo submission",
    description="""
    Turn the photos of one inbound message into tree observations.

    For every image this endpoint:
    1. Downloads the image (one retry on timeout or network failure)
    2. Reads GPS coordinates from the EXIF metadata
    3. Extracts the trunk diameter from the message text
    4. Groups images taken within 3 meters of each other into one tree

    Images that fail any stage are reported in `errors` tagged with the
    failing stage; they never fail the whole request.
    """,
    responses={
        200: {
            "description": "Submission processed (possibly with per-image errors)",
        },
        429: {
            "description": "Rate limit exceeded",
        },
        500: {
            "description": "Internal server error",
        }
    }
)
@limiter.limit(SUBMISSION_RATE_LIMIT)
async def process_submission(
    request: Request,
    payload: SubmissionRequest,
    processing_service: ImageProcessingServiceDep,
) -> SubmissionResponse:
    """
    Process a submission.

    Args:
        request: Incoming request (used for rate limiting)
        payload: Subject, body and image references
        processing_service: Image processing service (injected dependency)

    Returns:
        SubmissionResponse with grouped trees and per-image errors
    """
    # Delegate to service layer (no business logic here)
    result = await processing_service.process(payload.to_submission())

    # Transform to response model
    return SubmissionResponse.from_batch_result(result)
