"""Unit tests for CatalogClient using httpx.MockTransport."""

import json

import httpx
import pytest

from entity_feedback.lib.catalog import CatalogClient, find_owner_ref
from entity_feedback.lib.catalog.client import encode_filter
from entity_feedback.lib.exceptions import InputError, UpstreamResolutionError

BASE_URL = "http://backend:7007/api/catalog"


def make_client(handler, seen=None):
    def recording_handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
    return CatalogClient(base_url=BASE_URL, http_client=http_client)


class TestGetEntitiesByRefs:
    """Tests for get_entities_by_refs()."""

    @pytest.mark.asyncio
    async def test_posts_refs_and_returns_items_in_order(self):
        seen = []
        items = [{"kind": "User", "metadata": {"name": "alice"}}, None]
        client = make_client(lambda request: httpx.Response(200, json={"items": items}), seen)

        result = await client.get_entities_by_refs(
            ["user:default/alice", "user:default/hidden"],
            fields=["kind", "metadata.name"],
            token="caller-token",
        )

        assert result == items
        [request] = seen
        assert request.method == "POST"
        assert request.url.path == "/api/catalog/entities/by-refs"
        assert request.headers["Authorization"] == "Bearer caller-token"
        assert json.loads(request.content) == {
            "entityRefs": ["user:default/alice", "user:default/hidden"],
            "fields": ["kind", "metadata.name"],
        }

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_request(self):
        seen = []
        client = make_client(lambda request: httpx.Response(500), seen)

        assert await client.get_entities_by_refs([], fields=[]) == []
        assert seen == []

    @pytest.mark.asyncio
    async def test_server_error_raises_bad_gateway(self):
        client = make_client(lambda request: httpx.Response(503))

        with pytest.raises(UpstreamResolutionError) as exc_info:
            await client.get_entities_by_refs(["user:default/alice"], fields=[])

        assert exc_info.value.upstream_status == 503
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_forbidden_is_passed_through(self):
        client = make_client(lambda request: httpx.Response(403))

        with pytest.raises(UpstreamResolutionError) as exc_info:
            await client.get_entities_by_refs(["user:default/alice"], fields=[])

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_timeout_raises_upstream_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(UpstreamResolutionError):
            await make_client(handler).get_entities_by_refs(["user:default/alice"], fields=[])


class TestGetEntities:
    """Tests for get_entities()."""

    @pytest.mark.asyncio
    async def test_sends_filter_and_fields(self):
        seen = []
        client = make_client(lambda request: httpx.Response(200, json=[]), seen)

        await client.get_entities(
            {"relations.ownedBy": "group:default/team-a"},
            fields=["kind", "metadata.name"],
            token="t",
        )

        params = seen[0].url.params
        assert params["filter"] == "relations.ownedBy=group:default/team-a"
        assert params["fields"] == "kind,metadata.name"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("owner_ref", ["group:default/a,kind=user", "group:default/a=b"])
    async def test_filter_separators_in_value_rejected(self, owner_ref):
        seen = []
        client = make_client(lambda request: httpx.Response(200, json=[]), seen)

        with pytest.raises(InputError) as exc_info:
            await client.get_entities({"relations.ownedBy": owner_ref}, fields=[])

        assert exc_info.value.status_code == 400
        assert exc_info.value.details[0]["field"] == "relations.ownedBy"
        assert seen == []

    def test_encode_filter_joins_pairs(self):
        encoded = encode_filter({"kind": "component", "relations.ownedBy": "group:default/a"})

        assert encoded == "kind=component,relations.ownedBy=group:default/a"

    @pytest.mark.asyncio
    async def test_unwraps_paginated_response(self):
        entity = {"kind": "Component", "metadata": {"name": "foo"}}
        client = make_client(lambda request: httpx.Response(200, json={"items": [entity]}))

        assert await client.get_entities({"kind": "component"}, fields=[]) == [entity]


class TestGetEntityByRef:
    """Tests for get_entity_by_ref()."""

    @pytest.mark.asyncio
    async def test_fetches_by_name(self):
        seen = []
        entity = {"kind": "Component", "metadata": {"name": "foo"}, "relations": []}
        client = make_client(lambda request: httpx.Response(200, json=entity), seen)

        assert await client.get_entity_by_ref("component:default/foo") == entity
        assert seen[0].url.path == "/api/catalog/entities/by-name/component/default/foo"
        assert "Authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_not_found_returns_none(self):
        client = make_client(lambda request: httpx.Response(404))

        assert await client.get_entity_by_ref("component:default/missing") is None


class TestFindOwnerRef:
    """Tests for find_owner_ref()."""

    def test_returns_first_owned_by_target(self):
        entity = {
            "relations": [
                {"type": "dependsOn", "targetRef": "resource:default/db"},
                {"type": "ownedBy", "targetRef": "group:default/team-a"},
                {"type": "ownedBy", "targetRef": "group:default/team-b"},
            ]
        }

        assert find_owner_ref(entity) == "group:default/team-a"

    @pytest.mark.parametrize("entity", [None, {}, {"relations": []}, {"relations": None}])
    def test_no_owner(self, entity):
        assert find_owner_ref(entity) is None
