"""SNS notification service for entity feedback."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from entity_feedback.lib.exceptions import NotificationError
from entity_feedback.lib.feedback.notification import FeedbackNotification

logger = logging.getLogger(__name__)


class SNSNotifier:
    """Send feedback notifications via AWS SNS."""

    def __init__(self, topic_arn: str, region: str = "us-east-1"):
        """Initialize SNS notifier.

        Args:
            topic_arn: ARN of SNS topic to publish to
            region: AWS region (default: us-east-1)
        """
        self.topic_arn = topic_arn
        self.region = region
        self.sns_client = boto3.client("sns", region_name=region)

    def _build_message_body(self, notification: FeedbackNotification) -> str:
        """Build plain text message body."""
        lines = [
            notification.title,
            "=" * 50,
            "",
            f"Entity: {notification.entity_ref}",
            f"Owner: {notification.owner_ref}",
            f"Submitted: {self._get_timestamp()}",
            "",
            notification.description,
            "",
            "-" * 50,
            "This is an automated notification from Entity Feedback",
        ]
        return "\n".join(lines)

    def _get_timestamp(self) -> str:
        """Get current timestamp as string."""
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

    async def send_feedback_notification(
        self,
        notification: FeedbackNotification,
        token: Optional[str] = None,
    ) -> None:
        """Publish the notification to the SNS topic.

        ``token`` is accepted for interface compatibility and not used;
        SNS authenticates with the process's AWS credentials.

        Raises:
            NotificationError: If SNS publish fails
        """
        await asyncio.to_thread(self._publish, notification)

    def _publish(self, notification: FeedbackNotification) -> None:
        log_extra = {
            "topic_arn": self.topic_arn,
            "region": self.region,
            "entity_ref": notification.entity_ref,
            "owner_ref": notification.owner_ref,
        }
        logger.info("SNS publish attempt", extra=log_extra)

        try:
            response = self.sns_client.publish(
                TopicArn=self.topic_arn,
                # SNS subjects are limited to 100 characters
                Subject=notification.title[:100],
                Message=self._build_message_body(notification),
                MessageAttributes={
                    "entity_ref": {
                        "DataType": "String",
                        "StringValue": notification.entity_ref,
                    },
                    "owner_ref": {
                        "DataType": "String",
                        "StringValue": notification.owner_ref,
                    },
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise NotificationError(
                f"Failed to publish SNS notification for {notification.entity_ref}: {e}",
                details=log_extra,
            ) from e

        message_id = response["MessageId"]
        logger.info(
            f"Feedback notification sent via SNS: {message_id} for {notification.entity_ref}",
            extra={**log_extra, "message_id": message_id},
        )
