"""Contract tests for GET /api/entity-feedback/health."""

import inspect
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from entity_feedback.lib.feedback.service import FeedbackOptions


def test_healthy_without_authentication(client):
    response = client.get("/api/entity-feedback/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"] == {"api": "healthy", "database": "healthy"}
    assert body["auth_configured"] is True
    assert body["dev_mode"] is False
    assert body["notifications_enabled"] is True


def test_degraded_when_database_unreachable(client, fake_catalog):
    from main import app

    broken_session = MagicMock()
    broken_session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))
    app.state.feedback_options = FeedbackOptions(
        session_factory=lambda: broken_session,
        catalog=fake_catalog,
        notifier=None,
    )

    body = client.get("/api/entity-feedback/health").json()

    assert body["status"] == "degraded"
    assert body["checks"]["database"] == "unhealthy"
    assert body["notifications_enabled"] is False
    broken_session.close.assert_called_once()


def test_root_lists_health_path(client):
    assert client.get("/").json()["health"] == "/api/entity-feedback/health"


def test_health_check_runs_in_threadpool():
    from entity_feedback.api.health import health_check_endpoint

    assert not inspect.iscoroutinefunction(health_check_endpoint)
