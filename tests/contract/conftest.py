"""Shared configuration for contract tests.

Contract tests validate API endpoint behavior over HTTP. They run with real
authentication enforcement (no DEV_MODE bypass); only JWKS signature
verification is replaced, by a table of known test tokens.
"""

import os

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from entity_feedback.lib.exceptions import AuthenticationError
from entity_feedback.lib.feedback.service import FeedbackOptions

ALICE_TOKEN = "alice-token"
BOB_TOKEN = "bob-token"
SERVICE_TOKEN = "service-token"

TOKEN_SUBJECTS = {
    ALICE_TOKEN: "user:default/alice",
    BOB_TOKEN: "user:default/bob",
    SERVICE_TOKEN: "plugin:search",
}


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="session", autouse=True)
def disable_dev_mode():
    """Disable DEV_MODE for all contract tests.

    Contract tests validate authentication requirements. DEV_MODE bypasses
    authentication, which would make all auth tests pass incorrectly.
    """
    original_dev_mode = os.environ.get("DEV_MODE")
    os.environ["DEV_MODE"] = "false"

    yield

    if original_dev_mode is not None:
        os.environ["DEV_MODE"] = original_dev_mode
    else:
        del os.environ["DEV_MODE"]


def _verify_test_token(token):
    if token not in TOKEN_SUBJECTS:
        raise AuthenticationError("Invalid authentication token")
    return {"sub": TOKEN_SUBJECTS[token]}


@pytest.fixture
def client(monkeypatch, session_factory, fake_catalog, fake_notifier):
    """TestClient wired to SQLite, the in-memory catalog and a recording notifier."""
    from main import app

    monkeypatch.setenv("AUTH_JWKS_URL", "http://auth.test/.well-known/jwks.json")
    app.state.feedback_options = FeedbackOptions(
        session_factory=session_factory,
        catalog=fake_catalog,
        notifier=fake_notifier,
    )

    with patch("entity_feedback.api.auth.verify_token", side_effect=_verify_test_token):
        yield TestClient(app)

    del app.state.feedback_options
