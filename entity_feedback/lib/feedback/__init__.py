"""Entity feedback library.

This package contains the core business logic for recording and serving
entity ratings and responses.

Components:
    - models: SQLAlchemy models for the ratings and responses tables
    - database_handler: storage access layer over those tables
    - service: FeedbackService orchestration layer
    - notification: owner notification payload
    - notifications_notifier: notifications API delivery
    - sns_notifier: AWS SNS delivery
"""

__all__ = []
