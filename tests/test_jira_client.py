import time
from types import SimpleNamespace

from kpi_app.core.jira_client import JiraAPI


class FakeResponse:
    status_code = 200

    def __init__(self, payload):
        self._payload = payload

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self):
        self.calls = 0

    def get(self, url, params=None):
        self.calls += 1
        return FakeResponse({"issues": [{"key": "PX-1"}], "isLast": True})


class DummyAPI(JiraAPI):
    def __init__(self, cache_ttl=300.0):
        self.server = "https://example.atlassian.net"
        self.client = SimpleNamespace(_session=FakeSession())
        self._cache = {}
        self._cache_ttl = cache_ttl


def test_search_uses_cache():
    api = DummyAPI()
    api.search_enhanced("project = PX")
    api.search_enhanced("project = PX")
    assert api.client._session.calls == 1


def test_expired_entries_are_dropped():
    api = DummyAPI(cache_ttl=60.0)
    api._cache["old-query"] = (time.time() - 120.0, [{"key": "PX-9"}])
    api._cache["fresh-query"] = (time.time(), [{"key": "PX-8"}])
    api.search_enhanced("project = PX")
    assert "old-query" not in api._cache
    assert "fresh-query" in api._cache
    assert len(api._cache) == 2


def test_expired_query_is_refetched():
    api = DummyAPI(cache_ttl=60.0)
    api.search_enhanced("project = PX")
    key = next(iter(api._cache))
    api._cache[key] = (time.time() - 120.0, [])
    assert api.search_enhanced("project = PX") == [{"key": "PX-1"}]
    assert api.client._session.calls == 2
