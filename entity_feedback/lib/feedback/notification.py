"""The owner notification built when a response is submitted."""

import json
from dataclasses import dataclass
from typing import Optional

from entity_feedback.lib.exceptions import NotificationError


@dataclass(frozen=True)
class FeedbackNotification:
    """A notification addressed to the owner of an entity."""

    entity_ref: str
    owner_ref: str
    title: str
    description: str

    @classmethod
    def for_response(cls, entity_ref: str, owner_ref: str, comments: Optional[str]) -> "FeedbackNotification":
        """Build the notification for a new response on ``entity_ref``.

        Raises:
            NotificationError: If ``comments`` is not a JSON object
        """
        return cls(
            entity_ref=entity_ref,
            owner_ref=owner_ref,
            title=f"New feedback for {entity_ref}",
            description=f"Comments: {extract_additional_comments(comments)}",
        )


def extract_additional_comments(comments: Optional[str]) -> Optional[str]:
    """Read ``additionalComments`` out of a serialized comments payload.

    Raises:
        NotificationError: If the payload is missing, not JSON, or not an object
    """
    if comments is None:
        raise NotificationError("Response has no comments to summarize")

    try:
        parsed = json.loads(comments)
    except (TypeError, ValueError) as e:
        raise NotificationError(f"Comments are not valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise NotificationError("Comments must be a JSON object")

    return parsed.get("additionalComments")
