"""SQLAlchemy models for the entity feedback tables.

Both tables are append-only: every submission is a new row, and rows are
never updated. Ratings and responses keep their full history.
"""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text

from entity_feedback.models.sql.database import Base


class EntityRating(Base):
    """A single rating a user gave an entity.

    Rating values are opaque strings chosen by the client (e.g. ``LIKE``,
    ``DISLIKE`` or ``1``..``5``); aggregation groups on the exact value.
    """

    __tablename__ = "entity_ratings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_ref = Column(String(255), nullable=False)
    user_ref = Column(String(255), nullable=False)
    rating = Column(String(255), nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_entity_ratings_entity_ref", "entity_ref"),
        Index("ix_entity_ratings_entity_ref_rating", "entity_ref", "rating"),
    )

    def __repr__(self):
        return f"<EntityRating(id={self.id}, entity_ref={self.entity_ref}, rating={self.rating})>"


class EntityResponse(Base):
    """A free-text feedback response a user left on an entity.

    ``comments`` holds the client's serialized JSON payload as-is; it is
    only parsed when building the owner notification.
    """

    __tablename__ = "entity_responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_ref = Column(String(255), nullable=False)
    user_ref = Column(String(255), nullable=False)
    response = Column(Text, nullable=True)
    comments = Column(Text, nullable=True)
    consent = Column(Boolean, nullable=False, default=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_entity_responses_entity_ref", "entity_ref"),
    )

    def __repr__(self):
        return f"<EntityResponse(id={self.id}, entity_ref={self.entity_ref}, user_ref={self.user_ref})>"
