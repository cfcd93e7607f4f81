"""FastAPI dependencies shared by the feedback routers."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from entity_feedback.lib.exceptions import ConfigurationError
from entity_feedback.lib.feedback.service import FeedbackOptions, FeedbackService, build_feedback_service


def get_feedback_options(request: Request) -> FeedbackOptions:
    """Return the FeedbackOptions built at startup."""
    options = getattr(request.app.state, "feedback_options", None)
    if options is None:
        raise ConfigurationError("Feedback service is not initialized")
    return options


def get_feedback_db(options: FeedbackOptions = Depends(get_feedback_options)):
    """Yield a database session for feedback operations."""
    db = options.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_feedback_service(
    options: FeedbackOptions = Depends(get_feedback_options),
    db: Session = Depends(get_feedback_db),
) -> FeedbackService:
    """Build the FeedbackService for this request."""
    return build_feedback_service(options, db)
