"""Entity response (free-text feedback) API endpoints."""

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi import Response as HTTPResponse

from entity_feedback.api.auth import Credentials, get_auth_dependency, get_user_auth_dependency
from entity_feedback.api.dependencies import get_feedback_service
from entity_feedback.lib.feedback.service import FeedbackService
from entity_feedback.schemas.feedback import ErrorResponse, Response, ResponseSubmission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/entity-feedback/responses")


@router.post(
    "/{entity_ref:path}",
    status_code=201,
    response_class=HTTPResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Caller is not a user"},
        500: {"model": ErrorResponse, "description": "Server error during submission"},
    },
    summary="Leave feedback on an entity",
    description="""
    Records the caller's response and returns 201 immediately.

    After the response is stored, the entity's owner is notified in the
    background. Notification failures are logged and never affect the
    result of the submission.
    """,
)
async def submit_response(
    entity_ref: str,
    submission: ResponseSubmission,
    background_tasks: BackgroundTasks,
    service: FeedbackService = Depends(get_feedback_service),
    credentials: Credentials = get_user_auth_dependency(),
) -> HTTPResponse:
    """Record a response, then schedule the owner notification."""
    await service.submit_response(
        entity_ref=entity_ref,
        user_ref=credentials.user_entity_ref,
        response=submission.response,
        comments=submission.comments,
        consent=submission.consent,
    )

    logger.info('Stored response for %s, scheduling owner notification', entity_ref)
    background_tasks.add_task(
        service.notify_owner,
        entity_ref=entity_ref,
        comments=submission.comments,
        token=credentials.token,
    )

    return HTTPResponse(status_code=201)


@router.get(
    "/{entity_ref:path}",
    response_model=List[Response],
    summary="List an entity's responses",
)
async def list_responses_for_entity(
    entity_ref: str,
    service: FeedbackService = Depends(get_feedback_service),
    credentials: Credentials = get_auth_dependency(),
) -> List[Response]:
    """Return the entity's responses left by users the caller can see."""
    return await service.list_responses_for_entity(token=credentials.token, entity_ref=entity_ref)
