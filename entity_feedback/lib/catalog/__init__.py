"""Catalog integration: entity references and the catalog API client."""

from entity_feedback.lib.catalog.client import RELATION_OWNED_BY, CatalogClient, find_owner_ref
from entity_feedback.lib.catalog.entity_ref import (
    CompoundEntityRef,
    normalize_entity_ref,
    parse_entity_ref,
    stringify_entity_ref,
)

__all__ = [
    "RELATION_OWNED_BY",
    "CatalogClient",
    "CompoundEntityRef",
    "find_owner_ref",
    "normalize_entity_ref",
    "parse_entity_ref",
    "stringify_entity_ref",
]
