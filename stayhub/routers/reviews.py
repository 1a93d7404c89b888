"""
Review API endpoints.
"""

from fastapi import APIRouter, Depends, status
from typing import List
from stayhub.schemas.review import ReviewCreate, ReviewResponse
from stayhub.services.auth import RequestIdentity
from stayhub.services.error_handler import get_error_responses
from stayhub.services.review import ReviewService
from stayhub.utils.dependencies import get_current_identity, get_review_service
import uuid


router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a review",
    responses=get_error_responses(400, 401, 404)
)
async def submit_review(
    review_data: ReviewCreate,
    identity: RequestIdentity = Depends(get_current_identity),
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewResponse:
    """
    Submit a review for a listing as the authenticated caller.

    Raises:
        ListingNotFoundError: If the listing does not exist
    """
    review = await review_service.submit_review(review_data, identity)
    return ReviewResponse.model_validate(review)


@router.get(
    "/{hotel_id}",
    response_model=List[ReviewResponse],
    summary="List reviews of a listing",
    description="Reviews newest first"
)
async def list_reviews(
    hotel_id: uuid.UUID,
    review_service: ReviewService = Depends(get_review_service)
) -> List[ReviewResponse]:
    reviews = await review_service.list_reviews(hotel_id)
    return [ReviewResponse.model_validate(review) for review in reviews]
