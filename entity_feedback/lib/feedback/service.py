"""FeedbackService: orchestrate entity rating and response workflows.

This module provides the service layer that coordinates storage, catalog
resolution and owner notifications for the entity feedback API.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set

from sqlalchemy.orm import sessionmaker

from entity_feedback import config
from entity_feedback.lib.catalog import (
    CatalogClient,
    find_owner_ref,
    normalize_entity_ref,
    stringify_entity_ref,
)
from entity_feedback.lib.exceptions import InputError, NotificationError
from entity_feedback.lib.feedback.database_handler import DatabaseHandler
from entity_feedback.lib.feedback.notification import FeedbackNotification
from entity_feedback.lib.feedback.notifications_notifier import NotificationsApiNotifier
from entity_feedback.lib.feedback.sns_notifier import SNSNotifier
from entity_feedback.schemas.feedback import EntityRatingsData, Rating, Response

logger = logging.getLogger(__name__)

SUMMARY_ENTITY_FIELDS = ["kind", "metadata.namespace", "metadata.name", "metadata.title"]
USER_ENTITY_FIELDS = ["kind", "metadata.namespace", "metadata.name"]


def rating_text(rating: Any) -> str:
    """Stored form of a rating value; JSON booleans keep their JSON spelling."""
    if isinstance(rating, bool):
        return "true" if rating else "false"
    return str(rating)


class Notifier(Protocol):
    """Anything that can deliver a FeedbackNotification."""

    async def send_feedback_notification(
        self, notification: FeedbackNotification, token: Optional[str] = None
    ) -> None:
        ...


@dataclass
class FeedbackOptions:
    """Long-lived collaborators shared by every FeedbackService.

    Built once at startup and kept on the application state.
    """

    session_factory: sessionmaker
    catalog: CatalogClient
    notifier: Optional[Notifier] = None


def create_notifier(http_client=None) -> Optional[Notifier]:
    """Pick the owner notifier from configuration.

    SNS when FEEDBACK_USE_SNS=true and a topic is configured, otherwise the
    notifications API when NOTIFICATIONS_BASE_URL is set, otherwise None
    (notifications disabled).
    """
    if config.use_sns_notifications():
        sns_topic_arn = config.get_sns_topic_arn()
        if sns_topic_arn:
            logger.info('Using SNS for feedback notifications: %s', sns_topic_arn)
            return SNSNotifier(topic_arn=sns_topic_arn, region=config.get_sns_region())
        logger.warning("SNS enabled but SNS_TOPIC_ARN not configured, falling back to notifications API")

    base_url = config.get_notifications_base_url()
    if base_url:
        logger.info('Using notifications API for feedback notifications: %s', base_url)
        return NotificationsApiNotifier(
            base_url=base_url,
            timeout_seconds=config.get_catalog_timeout(),
            http_client=http_client,
        )

    logger.info("No notifier configured, owner notifications are disabled")
    return None


class FeedbackService:
    """Serves rating and response operations for one request.

    Results that identify users or entities are filtered through the
    catalog using the caller's delegated token, so callers only see what
    the catalog lets them see.
    """

    def __init__(self, db: DatabaseHandler, catalog: CatalogClient, notifier: Optional[Notifier] = None):
        """Initialize FeedbackService.

        Args:
            db: Storage access for this request
            catalog: Catalog resolver
            notifier: Owner notifier, or None when notifications are disabled
        """
        self.db = db
        self.catalog = catalog
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    async def submit_rating(self, entity_ref: str, user_ref: str, rating: Any) -> None:
        """Record one rating.

        Raises:
            InputError: If ``rating`` is empty; nothing is written
        """
        if not rating:
            raise InputError.missing_fields(
                f"Can't save rating because there is not enough info: user={user_ref}, rating={rating}",
                ["rating"],
            )

        await asyncio.to_thread(
            self.db.record_rating, entity_ref=entity_ref, user_ref=user_ref, rating=rating_text(rating)
        )

    async def list_ratings_summary(self, token: Optional[str], owner_ref: Optional[str] = None) -> List[EntityRatingsData]:
        """Summarize ratings per entity visible to the caller.

        With ``owner_ref``, summarizes the entities that owner owns. Without
        it, summarizes every rated entity the caller can resolve. Records
        are returned in order of first appearance in the aggregate query.
        """
        if owner_ref:
            entities = await self.catalog.get_entities(
                entity_filter={"relations.ownedBy": owner_ref},
                fields=SUMMARY_ENTITY_FIELDS,
                token=token,
            )
            requested = {stringify_entity_ref(entity): entity for entity in entities}
        else:
            rated_refs = await asyncio.to_thread(self.db.get_all_rated_entities)
            if not rated_refs:
                return []
            items = await self.catalog.get_entities_by_refs(
                rated_refs, fields=SUMMARY_ENTITY_FIELDS, token=token
            )
            # Items line up with the requested refs; None marks a hidden or missing entity
            requested = {ref: entity for ref, entity in zip(rated_refs, items) if entity}

        if not requested:
            return []

        summary: Dict[str, EntityRatingsData] = {}
        aggregates = await asyncio.to_thread(self.db.get_ratings_aggregates, list(requested))
        for aggregate in aggregates:
            record = summary.get(aggregate.entity_ref)
            if record is None:
                metadata = requested[aggregate.entity_ref].get("metadata") or {}
                record = EntityRatingsData(
                    entity_ref=aggregate.entity_ref,
                    entity_title=metadata.get("title"),
                )
                summary[aggregate.entity_ref] = record
            record.ratings[aggregate.rating] = aggregate.count

        return list(summary.values())

    async def list_ratings_for_entity(self, token: Optional[str], entity_ref: str) -> List[Rating]:
        """Return the entity's ratings left by users visible to the caller."""
        ratings = await asyncio.to_thread(self.db.get_ratings, entity_ref)
        visible = await self._visible_user_refs(token, (r.user_ref for r in ratings))
        return [r for r in ratings if normalize_entity_ref(r.user_ref) in visible]

    async def get_rating_aggregate_for_entity(self, entity_ref: str) -> Dict[str, int]:
        """Count the entity's ratings per rating value.

        Counts are not filtered by rater visibility; they reveal no identities.
        """
        ratings = await asyncio.to_thread(self.db.get_ratings, entity_ref)
        return dict(Counter(r.rating for r in ratings))

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    async def submit_response(
        self,
        entity_ref: str,
        user_ref: str,
        response: Optional[str],
        comments: Optional[str],
        consent: Optional[bool],
    ) -> None:
        """Record one response. The owner notification is sent separately by notify_owner."""
        await asyncio.to_thread(
            self.db.record_response,
            entity_ref=entity_ref,
            user_ref=user_ref,
            response=response,
            comments=comments,
            consent=True if consent is None else consent,
        )

    async def list_responses_for_entity(self, token: Optional[str], entity_ref: str) -> List[Response]:
        """Return the entity's responses left by users visible to the caller."""
        responses = await asyncio.to_thread(self.db.get_responses, entity_ref)
        visible = await self._visible_user_refs(token, (r.user_ref for r in responses))
        return [r for r in responses if normalize_entity_ref(r.user_ref) in visible]

    async def notify_owner(self, entity_ref: str, comments: Optional[str], token: Optional[str]) -> bool:
        """Tell the entity's owner about a new response.

        Never raises: any failure is logged and reported as False.
        """
        if self.notifier is None:
            logger.debug('Notifications disabled, skipping owner notification for %s', entity_ref)
            return False

        try:
            entity = await self.catalog.get_entity_by_ref(entity_ref, token=token)
            owner_ref = find_owner_ref(entity)
            if not owner_ref:
                raise NotificationError(f"No owner found for {entity_ref}")

            notification = FeedbackNotification.for_response(entity_ref, owner_ref, comments)
            await self.notifier.send_feedback_notification(notification, token=token)
            return True
        except Exception as e:
            logger.error(
                'Failed to send notification for feedback: %s, entityRef: %s', str(e), entity_ref,
                exc_info=True,
            )
            return False

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    async def _visible_user_refs(self, token: Optional[str], user_refs: Iterable[str]) -> Set[str]:
        """Return the canonical refs of the users the caller can resolve."""
        distinct_refs = list(dict.fromkeys(user_refs))
        if not distinct_refs:
            return set()

        items = await self.catalog.get_entities_by_refs(
            distinct_refs, fields=USER_ENTITY_FIELDS, token=token
        )
        return {stringify_entity_ref(entity) for entity in items if entity}


def build_feedback_service(options: FeedbackOptions, db_session) -> FeedbackService:
    """Assemble a FeedbackService for one request from the shared options."""
    return FeedbackService(
        db=DatabaseHandler(db_session),
        catalog=options.catalog,
        notifier=options.notifier,
    )
