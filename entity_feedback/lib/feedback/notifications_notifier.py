"""NotificationsApiNotifier: deliver owner notifications via the notifications service.

Posts ``{recipients, payload}`` to the platform notifications API, where
``recipients`` targets the owning entity (user or group) of the entity that
received feedback.
"""

import logging
from typing import Optional

import httpx

from entity_feedback.lib.exceptions import NotificationError
from entity_feedback.lib.feedback.notification import FeedbackNotification

logger = logging.getLogger(__name__)


class NotificationsApiNotifier:
    """Sends feedback notifications to the notifications service."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize NotificationsApiNotifier.

        Args:
            base_url: Notifications API base URL, e.g. http://backend:7007/api/notifications
            timeout_seconds: Per-request timeout
            http_client: Optional pre-built client
        """
        self.base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._owns_client = http_client is None

        logger.info("NotificationsApiNotifier initialized")

    async def send_feedback_notification(
        self,
        notification: FeedbackNotification,
        token: Optional[str] = None,
    ) -> None:
        """Send one notification to the entity owner.

        Raises:
            NotificationError: If the request fails or is rejected
        """
        body = {
            "recipients": {
                "type": "entity",
                "entityRef": notification.owner_ref,
            },
            "payload": {
                "title": notification.title,
                "description": notification.description,
            },
        }
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.post(
                f"{self.base_url}/notifications", json=body, headers=headers
            )
        except httpx.HTTPError as e:
            raise NotificationError(
                f"Failed to reach notifications service: {e}",
                details={"entity_ref": notification.entity_ref},
            ) from e

        if response.status_code >= 400:
            raise NotificationError(
                f"Notifications service returned {response.status_code}",
                details={"entity_ref": notification.entity_ref, "status": response.status_code},
            )

        logger.info(
            'Sent feedback notification for %s to %s', notification.entity_ref, notification.owner_ref
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
