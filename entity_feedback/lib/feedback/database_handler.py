"""DatabaseHandler: storage access for entity ratings and responses.

All SQLAlchemy failures are re-raised as StorageError so the API layer maps
them to a 500 without knowing about the ORM.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from entity_feedback.lib.exceptions import StorageError
from entity_feedback.lib.feedback.models import EntityRating, EntityResponse
from entity_feedback.schemas.feedback import Rating, RatingAggregate, Response

logger = logging.getLogger(__name__)


class DatabaseHandler:
    """Reads and writes feedback rows through a SQLAlchemy session."""

    def __init__(self, db: Session):
        """Initialize DatabaseHandler with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def record_rating(self, entity_ref: str, user_ref: str, rating: str) -> None:
        """Insert one rating row."""
        row = EntityRating(entity_ref=entity_ref, user_ref=user_ref, rating=rating)
        self._insert(row, "rating")
        logger.info('Recorded rating for %s by %s', entity_ref, user_ref)

    def record_response(
        self,
        entity_ref: str,
        user_ref: str,
        response: Optional[str],
        comments: Optional[str],
        consent: bool,
    ) -> None:
        """Insert one response row."""
        row = EntityResponse(
            entity_ref=entity_ref,
            user_ref=user_ref,
            response=response,
            comments=comments,
            consent=consent,
        )
        self._insert(row, "response")
        logger.info('Recorded response for %s by %s', entity_ref, user_ref)

    def get_all_rated_entities(self) -> List[str]:
        """Return the distinct entity refs that have at least one rating."""
        stmt = select(EntityRating.entity_ref).distinct().order_by(EntityRating.entity_ref)
        try:
            return list(self.db.scalars(stmt))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list rated entities: {e}") from e

    def get_ratings_aggregates(self, entity_refs: Sequence[str]) -> List[RatingAggregate]:
        """Return (entity_ref, rating, count) for every rating value of the given entities.

        Rows come back grouped per entity, ordered by entity ref then rating.
        """
        if not entity_refs:
            return []

        stmt = (
            select(
                EntityRating.entity_ref,
                EntityRating.rating,
                func.count(EntityRating.id).label("count"),
            )
            .where(EntityRating.entity_ref.in_(list(entity_refs)))
            .group_by(EntityRating.entity_ref, EntityRating.rating)
            .order_by(EntityRating.entity_ref, EntityRating.rating)
        )
        try:
            result = self.db.execute(stmt).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to aggregate ratings: {e}") from e

        return [
            RatingAggregate(entity_ref=entity_ref, rating=rating, count=count)
            for entity_ref, rating, count in result
        ]

    def get_ratings(self, entity_ref: str) -> List[Rating]:
        """Return every rating row recorded for an entity, oldest first."""
        stmt = (
            select(EntityRating)
            .where(EntityRating.entity_ref == entity_ref)
            .order_by(EntityRating.timestamp, EntityRating.id)
        )
        try:
            rows = self.db.scalars(stmt).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load ratings for {entity_ref}: {e}") from e

        return [Rating.model_validate(row) for row in rows]

    def get_responses(self, entity_ref: str) -> List[Response]:
        """Return every response row recorded for an entity, oldest first."""
        stmt = (
            select(EntityResponse)
            .where(EntityResponse.entity_ref == entity_ref)
            .order_by(EntityResponse.timestamp, EntityResponse.id)
        )
        try:
            rows = self.db.scalars(stmt).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load responses for {entity_ref}: {e}") from e

        return [Response.model_validate(row) for row in rows]

    def _insert(self, row, kind: str) -> None:
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error('Failed to store %s for %s: %s', kind, row.entity_ref, str(e), exc_info=True)
            raise StorageError(f"Failed to store {kind}: {e}") from e
