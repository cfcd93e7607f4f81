"""Unit tests for notifier selection from configuration."""

from unittest.mock import patch

from entity_feedback.lib.feedback.notifications_notifier import NotificationsApiNotifier
from entity_feedback.lib.feedback.service import create_notifier


def test_disabled_without_configuration(monkeypatch):
    monkeypatch.delenv("FEEDBACK_USE_SNS", raising=False)
    monkeypatch.delenv("NOTIFICATIONS_BASE_URL", raising=False)

    assert create_notifier() is None


def test_notifications_api_when_base_url_set(monkeypatch):
    monkeypatch.delenv("FEEDBACK_USE_SNS", raising=False)
    monkeypatch.setenv("NOTIFICATIONS_BASE_URL", "http://backend:7007/api/notifications/")

    notifier = create_notifier()

    assert isinstance(notifier, NotificationsApiNotifier)
    assert notifier.base_url == "http://backend:7007/api/notifications"


def test_sns_when_enabled_with_topic(monkeypatch):
    monkeypatch.setenv("FEEDBACK_USE_SNS", "true")
    monkeypatch.setenv("SNS_TOPIC_ARN", "arn:aws:sns:us-east-1:123456789012:feedback")
    monkeypatch.setenv("SNS_REGION", "us-west-2")

    with patch("entity_feedback.lib.feedback.service.SNSNotifier") as mock_sns:
        notifier = create_notifier()

    mock_sns.assert_called_once_with(
        topic_arn="arn:aws:sns:us-east-1:123456789012:feedback", region="us-west-2"
    )
    assert notifier is mock_sns.return_value


def test_sns_without_topic_falls_back(monkeypatch):
    monkeypatch.setenv("FEEDBACK_USE_SNS", "true")
    monkeypatch.delenv("SNS_TOPIC_ARN", raising=False)
    monkeypatch.setenv("NOTIFICATIONS_BASE_URL", "http://backend:7007/api/notifications")

    assert isinstance(create_notifier(), NotificationsApiNotifier)
