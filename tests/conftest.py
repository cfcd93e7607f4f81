"""
Pytest configuration and fixtures for backend tests.

The application database engine is created at import time, so DATABASE_URL
points at in-memory SQLite before anything from the package is imported.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_FORMAT", "simple")
os.environ.pop("NOTIFICATIONS_BASE_URL", None)
os.environ.pop("FEEDBACK_USE_SNS", None)

from typing import Any, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from entity_feedback.lib.catalog import normalize_entity_ref, parse_entity_ref  # noqa: E402
from entity_feedback.lib.exceptions import NotificationError, UpstreamResolutionError  # noqa: E402
from entity_feedback.lib.feedback.database_handler import DatabaseHandler  # noqa: E402
from entity_feedback.models.sql.database import Base, init_db  # noqa: E402


def build_entity(ref: str, title: Optional[str] = None, owner: Optional[str] = None) -> Dict[str, Any]:
    """Build a minimal catalog entity document for a ref."""
    parsed = parse_entity_ref(ref)
    metadata: Dict[str, Any] = {"name": parsed.name, "namespace": parsed.namespace}
    if title is not None:
        metadata["title"] = title
    entity: Dict[str, Any] = {"kind": parsed.kind, "metadata": metadata, "relations": []}
    if owner:
        entity["relations"].append({"type": "ownedBy", "targetRef": owner})
    return entity


class FakeCatalog:
    """In-memory catalog resolver.

    Only entities added with ``add`` are visible; everything else resolves
    to None, the way the catalog answers for refs the caller cannot see.
    """

    def __init__(self):
        self.entities: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self.error: Optional[Exception] = None

    def add(self, ref: str, title: Optional[str] = None, owner: Optional[str] = None) -> Dict[str, Any]:
        entity = build_entity(ref, title=title, owner=owner)
        self.entities[normalize_entity_ref(ref)] = entity
        return entity

    def _check(self):
        if self.error is not None:
            raise self.error

    async def get_entities(self, entity_filter, fields, token=None):
        self.calls.append(("get_entities", dict(entity_filter), token))
        self._check()
        owner = entity_filter.get("relations.ownedBy")
        return [
            entity for entity in self.entities.values()
            if any(
                rel["type"] == "ownedBy" and rel["targetRef"] == owner
                for rel in entity.get("relations", [])
            )
        ]

    async def get_entities_by_refs(self, entity_refs, fields, token=None):
        self.calls.append(("get_entities_by_refs", list(entity_refs), token))
        self._check()
        return [self.entities.get(normalize_entity_ref(ref)) for ref in entity_refs]

    async def get_entity_by_ref(self, entity_ref, token=None):
        self.calls.append(("get_entity_by_ref", entity_ref, token))
        self._check()
        return self.entities.get(normalize_entity_ref(entity_ref))

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeNotifier:
    """Records notifications; raises when ``fail`` is set."""

    def __init__(self):
        self.sent: List[tuple] = []
        self.fail = False

    async def send_feedback_notification(self, notification, token=None):
        if self.fail:
            raise NotificationError("notifications service unavailable")
        self.sent.append((notification, token))


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads, with the feedback tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def db_handler(db_session):
    return DatabaseHandler(db_session)


@pytest.fixture
def fake_catalog():
    return FakeCatalog()


@pytest.fixture
def fake_notifier():
    return FakeNotifier()


@pytest.fixture
def upstream_failure():
    """A catalog failure as the real client raises it."""
    return UpstreamResolutionError("Catalog request failed", upstream_status=503)
