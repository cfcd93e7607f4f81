"""Entity rating API endpoints.

Ratings are recorded per submission and summarized per entity. Listings
that reveal who rated are filtered to users the caller can see in the
catalog; plain counts are not.
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi import Response as HTTPResponse

from entity_feedback.api.auth import Credentials, get_auth_dependency, get_user_auth_dependency
from entity_feedback.api.dependencies import get_feedback_service
from entity_feedback.lib.feedback.service import FeedbackService
from entity_feedback.schemas.feedback import (
    EntityRatingsData,
    ErrorResponse,
    Rating,
    RatingSubmission,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/entity-feedback/ratings")


@router.get(
    "",
    response_model=List[EntityRatingsData],
    summary="Summarize ratings per entity",
)
async def list_ratings_summary(
    owner_ref: Optional[str] = Query(default=None, alias="ownerRef"),
    service: FeedbackService = Depends(get_feedback_service),
    credentials: Credentials = get_auth_dependency(),
) -> List[EntityRatingsData]:
    """Return rating counts for every entity visible to the caller.

    With ``ownerRef``, only entities owned by that user or group are
    included. Without it, every rated entity the caller can resolve in the
    catalog is included.
    """
    return await service.list_ratings_summary(token=credentials.token, owner_ref=owner_ref)


@router.post(
    "/{entity_ref:path}",
    status_code=201,
    response_class=HTTPResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing rating"},
        403: {"model": ErrorResponse, "description": "Caller is not a user"},
    },
    summary="Rate an entity",
)
async def submit_rating(
    entity_ref: str,
    submission: RatingSubmission,
    service: FeedbackService = Depends(get_feedback_service),
    credentials: Credentials = get_user_auth_dependency(),
) -> HTTPResponse:
    """Record the caller's rating of an entity. Every submission is kept."""
    await service.submit_rating(
        entity_ref=entity_ref,
        user_ref=credentials.user_entity_ref,
        rating=submission.rating,
    )
    return HTTPResponse(status_code=201)


@router.get(
    "/{entity_ref:path}/aggregate",
    response_model=Dict[str, int],
    summary="Count an entity's ratings per value",
)
async def get_rating_aggregate(
    entity_ref: str,
    service: FeedbackService = Depends(get_feedback_service),
    credentials: Credentials = get_auth_dependency(),
) -> Dict[str, int]:
    """Return ``{rating: count}`` over all ratings of the entity."""
    return await service.get_rating_aggregate_for_entity(entity_ref)


@router.get(
    "/{entity_ref:path}",
    response_model=List[Rating],
    summary="List an entity's ratings",
)
async def list_ratings_for_entity(
    entity_ref: str,
    service: FeedbackService = Depends(get_feedback_service),
    credentials: Credentials = get_auth_dependency(),
) -> List[Rating]:
    """Return the entity's individual ratings left by users the caller can see."""
    return await service.list_ratings_for_entity(token=credentials.token, entity_ref=entity_ref)
