"""SQL models module.

The feedback tables themselves are defined in
``entity_feedback.lib.feedback.models``.
"""

from .database import Base, SessionLocal, engine, init_db

__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "init_db",
]
