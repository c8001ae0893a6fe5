"""
Tests for backend clients, their selection from settings, and Outcome.
"""
import asyncio
import json
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from app.core.errors import ContentBackendError, Outcome, SearchBackendError
from app.services.content_client import (
    CDN_HOSTS,
    PAGE_SIZE,
    ContentstackClient,
    InMemoryContentClient,
    UnconfiguredContentClient,
    build_content_client,
)
from app.services.search_client import (
    BATCH_SIZE,
    AlgoliaSearchClient,
    InMemorySearchClient,
    UnconfiguredSearchClient,
    build_search_client,
)

from conftest import make_job


def fake_settings(tmp_path=None, **overrides):
    values = dict(
        DEMO_MODE=False,
        search_configured=False,
        content_configured=False,
        ALGOLIA_APP_ID=None,
        ALGOLIA_SEARCH_KEY=None,
        ALGOLIA_ADMIN_KEY=None,
        ALGOLIA_INDEX_NAME="job",
        CONTENTSTACK_API_KEY=None,
        CONTENTSTACK_DELIVERY_TOKEN=None,
        CONTENTSTACK_ENVIRONMENT=None,
        CONTENTSTACK_REGION="us",
        UPSTREAM_TIMEOUT_SECONDS=10.0,
        demo_data_dir=lambda: tmp_path,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestOutcome:

    def test_ok(self):
        outcome = Outcome.ok(0)
        assert outcome.is_ok
        assert outcome.value_or(5) == 0

    def test_unavailable(self):
        outcome = Outcome.unavailable("timeout")
        assert not outcome.is_ok
        assert outcome.reason == "timeout"
        assert outcome.value_or(0) == 0

    def test_unavailable_needs_a_reason(self):
        assert not Outcome.unavailable("").is_ok


class TestBuildSearchClient:
    """Variant selection from settings."""

    def test_unconfigured(self):
        client = build_search_client(fake_settings())
        assert isinstance(client, UnconfiguredSearchClient)
        assert not client.configured
        assert not client.writable

    def test_algolia(self):
        client = build_search_client(fake_settings(
            search_configured=True, ALGOLIA_APP_ID="APP", ALGOLIA_SEARCH_KEY="search",
        ))
        assert isinstance(client, AlgoliaSearchClient)
        assert client.configured
        assert not client.writable
        assert client._read_url == "https://APP-dsn.algolia.net/1/indexes/job/query"

    def test_algolia_with_admin_key(self):
        client = build_search_client(fake_settings(
            search_configured=True, ALGOLIA_APP_ID="APP", ALGOLIA_SEARCH_KEY="search", ALGOLIA_ADMIN_KEY="admin",
        ))
        assert client.writable
        assert client._write_url == "https://APP.algolia.net/1/indexes/job/batch"

    def test_demo_mode(self, tmp_path):
        (tmp_path / "demo_jobs.json").write_text('[{"objectID": "a", "skillNames": ["Go"]}]')
        client = build_search_client(fake_settings(tmp_path, DEMO_MODE=True))

        assert isinstance(client, InMemorySearchClient)
        assert client.records[0]["objectID"] == "a"

    def test_demo_mode_missing_fixture(self, tmp_path):
        client = build_search_client(fake_settings(tmp_path, DEMO_MODE=True))
        assert isinstance(client, UnconfiguredSearchClient)


class TestBuildContentClient:

    def test_unconfigured(self):
        client = build_content_client(fake_settings())
        assert isinstance(client, UnconfiguredContentClient)
        assert not client.configured

    def test_contentstack_region(self):
        client = build_content_client(fake_settings(
            content_configured=True,
            CONTENTSTACK_API_KEY="key",
            CONTENTSTACK_DELIVERY_TOKEN="token",
            CONTENTSTACK_ENVIRONMENT="production",
            CONTENTSTACK_REGION="EU",
        ))
        assert isinstance(client, ContentstackClient)
        assert client.host == CDN_HOSTS["eu"]

    def test_unknown_region_uses_us(self):
        client = ContentstackClient("key", "token", "production", region="mars")
        assert client.host == CDN_HOSTS["us"]

    def test_demo_mode(self, tmp_path):
        (tmp_path / "demo_content.json").write_text('{"company": [{"uid": "c1"}]}')
        client = build_content_client(fake_settings(tmp_path, DEMO_MODE=True))
        assert isinstance(client, InMemoryContentClient)


class TestInMemorySearchClient:

    @pytest.fixture
    def client(self):
        return InMemorySearchClient([
            make_job("a", ["React", "TypeScript"]),
            make_job("b", ["Python"]),
            make_job("c", ["React"]),
        ])

    @pytest.mark.asyncio
    async def test_all_terms_required_by_default(self, client):
        page = (await client.search("react typescript")).value
        assert [h["objectID"] for h in page.hits] == ["a"]

    @pytest.mark.asyncio
    async def test_optional_words(self, client):
        assert (await client.count_matching(["react", "python"])).value == 3

    @pytest.mark.asyncio
    async def test_count_with_no_terms(self, client):
        assert (await client.count_matching(["", None])).value == 0

    @pytest.mark.asyncio
    async def test_projection(self, client):
        page = (await client.scan_skills()).value
        assert page.nb_hits == 3
        assert set(page.hits[0]) == {"objectID", "skillNames", "skills"}

    @pytest.mark.asyncio
    async def test_save_objects_upserts(self, client):
        await client.save_objects([{"objectID": "b", "title": "Renamed"}, {"objectID": "d"}])
        assert [r["objectID"] for r in client.records] == ["a", "b", "c", "d"]
        assert client.records[1]["title"] == "Renamed"


class TestInMemoryContentClient:

    @pytest.fixture
    def client(self):
        return InMemoryContentClient({
            "learning_resource": [
                {"uid": "r3", "technology": "docker", "order": 3},
                {"uid": "r1", "technology": "docker", "order": 1},
                {"uid": "rx", "technology": "react"},
                {"uid": "r2", "technology": "react", "order": 2},
            ],
            "company": [{"uid": "c1", "title": "Acme"}],
        })

    @pytest.mark.asyncio
    async def test_resources_in_cms_order(self, client):
        entries = (await client.get_learning_resources()).value
        assert [e["uid"] for e in entries] == ["r1", "r2", "r3", "rx"]

    @pytest.mark.asyncio
    async def test_resources_by_technology(self, client):
        entries = (await client.get_learning_resources(technology="docker", limit=1)).value
        assert [e["uid"] for e in entries] == ["r1"]

    @pytest.mark.asyncio
    async def test_company_lookup(self, client):
        assert (await client.get_company("c1")).value["title"] == "Acme"
        missing = await client.get_company("nope")
        assert missing.is_ok
        assert missing.value is None

    @pytest.mark.asyncio
    async def test_unknown_content_type(self, client):
        assert (await client.get_jobs()).value == []


class TestUnconfiguredClients:

    @pytest.mark.asyncio
    async def test_search_unavailable(self):
        client = UnconfiguredSearchClient()
        assert not (await client.scan_skills()).is_ok
        assert not (await client.count_matching(["react"])).is_ok
        assert not (await client.save_objects([{"objectID": "a"}])).is_ok

    @pytest.mark.asyncio
    async def test_content_unavailable(self):
        client = UnconfiguredContentClient()
        assert not (await client.get_learning_resources()).is_ok
        assert not (await client.get_company("c1")).is_ok


class FakeResponse:
    """Stands in for an aiohttp response context manager."""

    def __init__(self, status, body):
        self.status = status
        self.body = body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self):
        return self.body

    async def text(self):
        return str(self.body)


class FakeSession:
    """Records requests and answers each with the same canned response."""

    def __init__(self, response, calls):
        self.response = response
        self.calls = calls

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def post(self, url, headers=None, json=None):
        self.calls.append(("POST", url, headers, json))
        return self.response

    def get(self, url, headers=None, params=None):
        self.calls.append(("GET", url, headers, params))
        return self.response


@pytest.fixture
def fake_http(monkeypatch):
    """Patch aiohttp.ClientSession; returns (set_response, calls)."""
    calls = []
    state = {"response": FakeResponse(200, {})}
    monkeypatch.setattr(
        "aiohttp.ClientSession",
        lambda **kwargs: FakeSession(state["response"], calls),
    )

    def respond(status, body):
        state["response"] = FakeResponse(status, body)

    return respond, calls


class TestAlgoliaSearchClient:
    """Request payloads and failure handling of the Algolia REST client."""

    @pytest.fixture
    def client(self):
        return AlgoliaSearchClient("APP", "search-key", index_name="job", admin_key="admin-key")

    @pytest.mark.asyncio
    async def test_count_fetches_no_hits(self, client, monkeypatch):
        post = AsyncMock(return_value={"hits": [], "nbHits": 42})
        monkeypatch.setattr(client, "_post", post)

        result = await client.count_matching(["react", "", "docker"])

        assert result.value == 42
        url, api_key, payload = post.call_args.args
        assert url == client._read_url
        assert api_key == "search-key"
        assert payload == {
            "query": "react docker",
            "hitsPerPage": 0,
            "typoTolerance": True,
            "optionalWords": ["react", "docker"],
        }

    @pytest.mark.asyncio
    async def test_scan_projects_skill_fields(self, client, monkeypatch):
        post = AsyncMock(return_value={
            "hits": [{"objectID": "a", "skillNames": ["Go"]}],
            "nbHits": 3500,
            "nbPages": 4,
            "hitsPerPage": 1000,
        })
        monkeypatch.setattr(client, "_post", post)

        page = (await client.scan_skills(limit=5000)).value

        payload = post.call_args.args[2]
        assert payload["hitsPerPage"] == 1000
        assert payload["attributesToRetrieve"] == ["skillNames", "skills"]
        assert "optionalWords" not in payload
        assert page.nb_hits == 3500
        assert page.nb_pages == 4
        assert page.hits[0]["objectID"] == "a"

    @pytest.mark.asyncio
    async def test_skill_search_payload(self, client, monkeypatch):
        post = AsyncMock(return_value={"hits": []})
        monkeypatch.setattr(client, "_post", post)

        await client.search_by_skills(["React", "Go"], limit=6)

        payload = post.call_args.args[2]
        assert payload["query"] == "React Go"
        assert payload["optionalWords"] == ["React", "Go"]
        assert payload["hitsPerPage"] == 6
        assert payload["typoTolerance"] is True

    @pytest.mark.asyncio
    async def test_missing_nb_hits_counts_hits(self, client, monkeypatch):
        monkeypatch.setattr(client, "_post", AsyncMock(return_value={"hits": [{"objectID": "a"}]}))
        assert (await client.search("go")).value.nb_hits == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        SearchBackendError("Algolia returned 403: forbidden", status=403),
        asyncio.TimeoutError(),
    ])
    async def test_failures_are_unavailable(self, client, monkeypatch, error):
        monkeypatch.setattr(client, "_post", AsyncMock(side_effect=error))

        assert not (await client.search("react")).is_ok
        count = await client.count_matching(["react"])
        assert not count.is_ok
        assert count.reason

    @pytest.mark.asyncio
    async def test_non_200_response(self, client, fake_http):
        respond, calls = fake_http
        respond(500, {"message": "boom"})

        result = await client.search("react")

        assert not result.is_ok
        assert "500" in result.reason
        method, url, headers, payload = calls[0]
        assert (method, url) == ("POST", client._read_url)
        assert headers["X-Algolia-API-Key"] == "search-key"
        assert headers["X-Algolia-Application-Id"] == "APP"

    @pytest.mark.asyncio
    async def test_ok_response_through_session(self, client, fake_http):
        respond, calls = fake_http
        respond(200, {"hits": [], "nbHits": 7})

        assert (await client.count_matching(["go"])).value == 7
        assert calls[0][3]["hitsPerPage"] == 0

    @pytest.mark.asyncio
    async def test_save_objects_batches(self, client, monkeypatch):
        post = AsyncMock(side_effect=[{"taskID": 1}, {"taskID": 2}, {"taskID": 3}])
        monkeypatch.setattr(client, "_post", post)
        records = [{"objectID": f"job_{i}"} for i in range(2500)]

        result = await client.save_objects(records)

        assert result.value["taskIDs"] == [1, 2, 3]
        assert len(result.value["objectIDs"]) == 2500
        assert post.await_count == 3
        sizes = []
        for call in post.call_args_list:
            url, api_key, payload = call.args
            assert url == client._write_url
            assert api_key == "admin-key"
            assert {r["action"] for r in payload["requests"]} == {"updateObject"}
            sizes.append(len(payload["requests"]))
        assert sizes == [BATCH_SIZE, BATCH_SIZE, 500]
        assert post.call_args_list[2].args[2]["requests"][0]["body"] == {"objectID": "job_2000"}

    @pytest.mark.asyncio
    async def test_save_objects_needs_admin_key(self, monkeypatch):
        client = AlgoliaSearchClient("APP", "search-key")
        post = AsyncMock()
        monkeypatch.setattr(client, "_post", post)

        result = await client.save_objects([{"objectID": "a"}])

        assert not result.is_ok
        post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_objects_failure(self, client, monkeypatch):
        monkeypatch.setattr(client, "_post", AsyncMock(side_effect=SearchBackendError("HTTP 400", status=400)))
        assert not (await client.save_objects([{"objectID": "a"}])).is_ok


class TestContentstackClient:
    """Pagination and failure handling of the Contentstack Delivery client."""

    @pytest.fixture
    def client(self):
        return ContentstackClient("key", "token", "production")

    @pytest.mark.asyncio
    async def test_pages_until_count(self, client, monkeypatch):
        get = AsyncMock(side_effect=[
            {"entries": [{"uid": f"e{i}"} for i in range(100)], "count": 150},
            {"entries": [{"uid": f"e{i}"} for i in range(100, 150)], "count": 150},
        ])
        monkeypatch.setattr(client, "_get", get)

        entries = (await client.get_jobs()).value

        assert len(entries) == 150
        assert get.await_count == 2
        paths = [c.args[0] for c in get.call_args_list]
        assert paths == ["/content_types/job/entries"] * 2
        first, second = (c.args[1] for c in get.call_args_list)
        assert first == {"limit": PAGE_SIZE, "skip": 0, "include_count": "true"}
        assert second["skip"] == 100

    @pytest.mark.asyncio
    async def test_stops_on_empty_page(self, client, monkeypatch):
        get = AsyncMock(return_value={"entries": []})
        monkeypatch.setattr(client, "_get", get)

        assert (await client.get_jobs()).value == []
        assert get.await_count == 1

    @pytest.mark.asyncio
    async def test_learning_resource_query(self, client, monkeypatch):
        get = AsyncMock(return_value={"entries": [{"uid": "r1"}, {"uid": "r2"}], "count": 40})
        monkeypatch.setattr(client, "_get", get)

        entries = (await client.get_learning_resources(technology="docker", limit=2)).value

        assert [e["uid"] for e in entries] == ["r1", "r2"]
        assert get.await_count == 1
        path, params = get.call_args.args
        assert path == "/content_types/learning_resource/entries"
        assert params["limit"] == 2
        assert params["asc"] == "order"
        assert json.loads(params["query"]) == {"technology": "docker"}

    @pytest.mark.asyncio
    async def test_backend_error_is_unavailable(self, client, monkeypatch):
        monkeypatch.setattr(client, "_get", AsyncMock(side_effect=ContentBackendError("HTTP 401", status=401)))

        assert not (await client.get_learning_resources()).is_ok
        assert not (await client.get_company("c1")).is_ok

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self, client, monkeypatch):
        monkeypatch.setattr(client, "_get", AsyncMock(side_effect=asyncio.TimeoutError()))
        result = await client.get_jobs()
        assert not result.is_ok
        assert result.reason == "TimeoutError"

    @pytest.mark.asyncio
    async def test_get_entry(self, client, monkeypatch):
        get = AsyncMock(return_value={"entry": {"uid": "c1", "title": "Acme"}})
        monkeypatch.setattr(client, "_get", get)

        company = (await client.get_company("c1")).value

        assert company["title"] == "Acme"
        assert get.call_args.args == ("/content_types/company/entries/c1", {})

    @pytest.mark.asyncio
    async def test_missing_entry(self, client, fake_http):
        respond, calls = fake_http
        respond(404, {"error_message": "not found"})

        result = await client.get_company("nope")

        assert result.is_ok
        assert result.value is None
        method, url, headers, params = calls[0]
        assert url == "https://cdn.contentstack.io/v3/content_types/company/entries/nope"
        assert headers == {"api_key": "key", "access_token": "token"}
        assert params == {"environment": "production"}

    @pytest.mark.asyncio
    async def test_non_200_response(self, client, fake_http):
        respond, _ = fake_http
        respond(422, {"error_message": "bad query"})

        result = await client.get_jobs()

        assert not result.is_ok
        assert "422" in result.reason
