"""Tests for the httpx store client and its error mapping."""

from __future__ import annotations

import json

import httpx
import pytest

from interview_desk import database as db
from interview_desk.config import Config
from interview_desk.errors import ConfigurationError, ConnectivityError, QueryError
from interview_desk.store import Query, SupabaseStore


def make_store(cfg: Config, handler) -> SupabaseStore:
    return SupabaseStore(cfg, transport=httpx.MockTransport(handler))


def test_query_params():
    q = (
        Query("t", "a, b")
        .eq("flag", True)
        .in_("status", ["CV Processed", "For Interview"])
        .not_null("folder")
        .ilike_any(["first_name", "last_name"], "ann")
        .order("created_at", ascending=False)
        .limit(5)
    )
    assert q.params == [
        ("select", "a, b"),
        ("flag", "eq.true"),
        ("status", 'in.("CV Processed","For Interview")'),
        ("folder", "not.is.null"),
        ("or", '(first_name.ilike."*ann*",last_name.ilike."*ann*")'),
        ("order", "created_at.desc"),
        ("limit", "5"),
    ]


def test_search_term_with_separators_stays_one_pattern():
    q = Query("t").ilike_any(["first_name", "last_name"], 'Santos, "Al"')
    assert q.params[-1] == (
        "or",
        '(first_name.ilike."*Santos, \\"Al\\"*",last_name.ilike."*Santos, \\"Al\\"*")',
    )


def test_missing_credentials_is_configuration_error():
    with pytest.raises(ConfigurationError):
        SupabaseStore(Config())
    with pytest.raises(ConfigurationError):
        SupabaseStore(Config(supabase_url="demo.supabase.co", supabase_anon_key="k"))


async def test_select_sends_headers_and_filters(cfg):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json=[{"candidate_id": "c-1", "first_name": "Alice", "status": "CV Processed"}])

    store = make_store(cfg, handler)
    rows = await db.list_candidates(store, statuses=["CV Processed"])
    await store.aclose()

    request = seen["request"]
    assert request.url.path == f"/rest/v1/{db.CANDIDATES}"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["authorization"] == "Bearer anon-key"
    assert request.url.params["status"] == 'in.("CV Processed")'
    assert request.url.params["order"] == "created_at.desc"
    assert rows[0].full_name == "Alice"


async def test_signed_in_token_replaces_anon_key(cfg):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["authorization"]
        return httpx.Response(200, json=[])

    store = make_store(cfg, handler)
    store.access_token = "user-token"
    await db.list_position_codes(store)
    await store.aclose()

    assert seen["auth"] == "Bearer user-token"


async def test_update_asks_for_representation(cfg):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json=[{"candidate_id": "c-1", "vote": 7.5}])

    store = make_store(cfg, handler)
    rows = await store.update(db.CANDIDATES, "candidate_id", "c-1", {"vote": 7.5})
    await store.aclose()

    request = seen["request"]
    assert request.method == "PATCH"
    assert request.headers["prefer"] == "return=representation"
    assert request.url.params["candidate_id"] == "eq.c-1"
    assert json.loads(request.content) == {"vote": 7.5}
    assert rows == [{"candidate_id": "c-1", "vote": 7.5}]


async def test_backend_error_payload_becomes_query_error(cfg):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"code": "42703", "message": "column vote2 does not exist"})

    store = make_store(cfg, handler)
    with pytest.raises(QueryError) as exc:
        await db.list_candidates(store)
    await store.aclose()

    assert exc.value.message == "column vote2 does not exist"
    assert exc.value.status_code == 400
    assert exc.value.code == "42703"
    assert not exc.value.retryable


async def test_auth_error_description_is_used(cfg):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"})

    store = make_store(cfg, handler)
    with pytest.raises(QueryError, match="Invalid login credentials"):
        await store.auth("token", {"email": "a@b.c", "password": "x"}, params={"grant_type": "password"})
    await store.aclose()


async def test_timeout_is_retryable_connectivity_error(cfg):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    store = make_store(cfg, handler)
    with pytest.raises(ConnectivityError) as exc:
        await db.ping(store)
    await store.aclose()

    assert exc.value.retryable
    assert "timed out after 10s" in exc.value.message


async def test_network_failure_is_connectivity_error(cfg):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("name resolution failed", request=request)

    store = make_store(cfg, handler)
    with pytest.raises(ConnectivityError, match="Network connection failed"):
        await db.list_blocked_ranges(store)
    await store.aclose()


async def test_reset_builds_a_fresh_client(cfg):
    store = make_store(cfg, lambda request: httpx.Response(200, json=[]))
    first = store.client
    await store.reset()
    assert store.client is not first
    await store.aclose()


async def test_empty_id_list_skips_the_request(cfg):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    store = make_store(cfg, handler)
    assert await db.list_candidates(store, candidate_ids=[]) == []
    await store.aclose()


async def test_quick_search_matches_a_name_containing_a_comma(store):
    store.tables[db.CANDIDATES][1].update(last_name="Okafor, Jr.", answer_vids_folder_id="f-2")
    rows = await db.search_candidates(store, name="okafor, jr")
    assert [c.candidate_id for c in rows] == ["c-2"]
