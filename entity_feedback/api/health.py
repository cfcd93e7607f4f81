"""Health check API endpoint for the Entity Feedback backend."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from typing import Dict, Any
from datetime import datetime, timezone
import logging

from entity_feedback import __version__
from entity_feedback.api.dependencies import get_feedback_options
from entity_feedback.config import is_auth_configured, is_dev_mode
from entity_feedback.lib.feedback.service import FeedbackOptions

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/entity-feedback")


@router.get("/health")
def health_check_endpoint(
    options: FeedbackOptions = Depends(get_feedback_options),
) -> Dict[str, Any]:
    """
    Check health status of the service and its database.

    Returns "degraded" rather than an error status when the database is
    unreachable, so the response body always explains what is wrong.
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "Entity Feedback API",
        "version": __version__,
        "auth_configured": is_auth_configured(),
        "dev_mode": is_dev_mode(),
        "notifications_enabled": options.notifier is not None,
        "checks": {
            "api": "healthy",
            "database": "unknown"
        },
        "details": {}
    }

    db = options.session_factory()
    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = "healthy"
    except Exception as e:
        logger.error('Error checking database health: %s', e)
        health_status["checks"]["database"] = "unhealthy"
        health_status["status"] = "degraded"
        health_status["details"]["database"] = {"error": str(e)}
    finally:
        db.close()

    return health_status
