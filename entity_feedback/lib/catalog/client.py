"""CatalogClient: async client for the software catalog REST API.

Every call takes the caller's delegated token, so the catalog only returns
entities the caller is allowed to see. Transport failures and unexpected
HTTP statuses are raised as UpstreamResolutionError.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from entity_feedback.lib.catalog.entity_ref import parse_entity_ref
from entity_feedback.lib.exceptions import InputError, UpstreamResolutionError

logger = logging.getLogger(__name__)

Entity = Dict[str, Any]

RELATION_OWNED_BY = "ownedBy"


class CatalogClient:
    """Resolves entity references against the catalog."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize CatalogClient.

        Args:
            base_url: Catalog API base URL, e.g. http://backend:7007/api/catalog
            timeout_seconds: Per-request timeout
            http_client: Optional pre-built client (tests pass one with a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._owns_client = http_client is None

    async def get_entities(
        self,
        entity_filter: Dict[str, str],
        fields: Sequence[str],
        token: Optional[str] = None,
    ) -> List[Entity]:
        """List entities matching a filter, e.g. ``{"relations.ownedBy": ref}``.

        Raises:
            InputError: If a filter value contains ``,`` or ``=``, which the
                catalog's filter syntax cannot express
        """
        params = [("filter", encode_filter(entity_filter))]
        if fields:
            params.append(("fields", ",".join(fields)))

        response = await self._request("GET", "/entities", token=token, params=params)
        items = response.json()
        # Newer catalog versions wrap paginated results
        if isinstance(items, dict):
            items = items.get("items", [])
        return items

    async def get_entities_by_refs(
        self,
        entity_refs: Sequence[str],
        fields: Sequence[str],
        token: Optional[str] = None,
    ) -> List[Optional[Entity]]:
        """Resolve refs to entities.

        The result has one item per input ref, in input order; items the
        caller cannot see or that do not exist are ``None``.
        """
        if not entity_refs:
            return []

        body: Dict[str, Any] = {"entityRefs": list(entity_refs)}
        if fields:
            body["fields"] = list(fields)

        response = await self._request("POST", "/entities/by-refs", token=token, json=body)
        return response.json().get("items", [])

    async def get_entity_by_ref(self, entity_ref: str, token: Optional[str] = None) -> Optional[Entity]:
        """Fetch one entity with its relations, or None if it is not visible."""
        ref = parse_entity_ref(entity_ref)
        path = "/entities/by-name/{}/{}/{}".format(
            quote(ref.kind, safe=""),
            quote(ref.namespace, safe=""),
            quote(ref.name, safe=""),
        )

        response = await self._request("GET", path, token=token, allow_not_found=True)
        if response is None:
            return None
        return response.json()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        allow_not_found: bool = False,
        **kwargs,
    ) -> Optional[httpx.Response]:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamResolutionError(f"Catalog request timed out: {method} {path}") from e
        except httpx.HTTPError as e:
            raise UpstreamResolutionError(f"Catalog request failed: {method} {path}: {e}") from e

        if allow_not_found and response.status_code == 404:
            return None

        if response.status_code >= 400:
            logger.warning(
                'Catalog returned %s for %s %s', response.status_code, method, path
            )
            raise UpstreamResolutionError(
                f"Catalog request {method} {path} failed with status {response.status_code}",
                upstream_status=response.status_code,
            )

        return response


def encode_filter(entity_filter: Dict[str, str]) -> str:
    """Encode ``{key: value}`` as the catalog's ``key=value,key=value`` filter."""
    for key, value in entity_filter.items():
        if any(separator in value for separator in ",="):
            raise InputError(
                f"Filter value for {key} must not contain ',' or '=': {value}",
                details=[{"field": key, "message": "must not contain ',' or '='"}],
            )
    return ",".join(f"{key}={value}" for key, value in entity_filter.items())


def find_owner_ref(entity: Optional[Entity]) -> Optional[str]:
    """Return the target of the entity's first ownedBy relation, if any."""
    if not entity:
        return None
    for relation in entity.get("relations") or []:
        if relation.get("type") == RELATION_OWNED_BY and relation.get("targetRef"):
            return relation["targetRef"]
    return None
