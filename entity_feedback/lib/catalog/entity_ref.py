"""Parsing and formatting of catalog entity references.

An entity reference has the form ``kind:namespace/name``. The namespace is
optional and defaults to ``default``. References are compared in their
canonical, lower-cased form.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from entity_feedback.lib.exceptions import InputError

DEFAULT_NAMESPACE = "default"


@dataclass(frozen=True)
class CompoundEntityRef:
    """The three parts of an entity reference."""

    kind: str
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.namespace}/{self.name}".lower()


def parse_entity_ref(
    ref: str,
    default_kind: Optional[str] = None,
    default_namespace: str = DEFAULT_NAMESPACE,
) -> CompoundEntityRef:
    """Parse ``kind:namespace/name`` into its parts.

    Raises:
        InputError: If the reference is empty or has no kind/name
    """
    if not ref or not ref.strip():
        raise InputError("Entity reference must not be empty")

    ref = ref.strip()
    kind: Optional[str] = default_kind
    rest = ref
    if ":" in ref:
        kind, rest = ref.split(":", 1)

    namespace = default_namespace
    name = rest
    if "/" in rest:
        namespace, name = rest.split("/", 1)

    if not kind:
        raise InputError(f"Entity reference '{ref}' has no kind")
    if not namespace:
        raise InputError(f"Entity reference '{ref}' has an empty namespace")
    if not name:
        raise InputError(f"Entity reference '{ref}' has no name")

    return CompoundEntityRef(kind=kind, namespace=namespace, name=name)


def stringify_entity_ref(entity: Dict[str, Any]) -> str:
    """Build the canonical reference of a catalog entity document."""
    metadata = entity.get("metadata") or {}
    return str(
        CompoundEntityRef(
            kind=entity["kind"],
            namespace=metadata.get("namespace") or DEFAULT_NAMESPACE,
            name=metadata["name"],
        )
    )


def normalize_entity_ref(ref: str) -> str:
    """Return the canonical string form of a reference.

    References that do not parse are only lower-cased, so they can still be
    compared but never match a resolved entity.
    """
    try:
        return str(parse_entity_ref(ref))
    except InputError:
        return (ref or "").strip().lower()
