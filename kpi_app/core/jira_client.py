"""Jira API client wrapper (REST v3 enhanced search with token pagination)."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import Any

from jira import JIRA, JIRAError

from .config import SEARCH_CACHE_TTL

logger = logging.getLogger(__name__)

_STATUS_MESSAGES = {
    401: "Authentication failed. Please check your email and API token.",
    403: "Access denied. Please check your permissions for this project.",
    404: "Project not found. Please check your domain and project key.",
}


class JiraRequestError(RuntimeError):
    """Raised when the Jira search endpoint answers with an HTTP error."""

    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        message = _STATUS_MESSAGES.get(status_code) or f"Jira API error {status_code}: {detail[:200]}"
        super().__init__(message)


class JiraAPI:
    def __init__(self, server: str, email: str, token: str, cache_ttl: float = SEARCH_CACHE_TTL):
        self.server = server.rstrip("/")
        self.client = JIRA(
            basic_auth=(email, token), options={"server": self.server, "rest_api_version": "3"}
        )
        # {(hash): (timestamp, data)}
        self._cache: dict[str, tuple[float, list]] = {}
        self._cache_ttl = cache_ttl

    def clear_cache(self) -> None:
        """Reset the in-memory search cache."""
        cache = getattr(self, "_cache", None)
        if isinstance(cache, dict):
            cache.clear()

    def _drop_expired(self, now: float) -> None:
        stale = [k for k, (ts, _) in self._cache.items() if (now - ts) >= self._cache_ttl]
        for k in stale:
            del self._cache[k]
        if stale:
            logger.debug("Dropped %d expired search cache entries", len(stale))

    def _cache_key(self, jql: str, fields, expand, page_size: int, max_results) -> str:
        payload = {
            "jql": jql,
            "fields": fields,
            "expand": expand,
            "page_size": page_size,
            "max_results": max_results,
        }
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()

    def search_enhanced(
        self,
        jql: str,
        fields: list[str] | None = None,
        expand: list[str] | None = None,
        page_size: int = 100,
        max_results: int | None = None,
    ) -> list[dict[str, Any]]:
        """Run ``jql`` against ``/rest/api/3/search/jql``.

        Pages are followed through ``nextPageToken`` until the server reports
        the last page or ``max_results`` issues have been collected.
        """
        session = getattr(self.client, "_session", None)
        if session is None:
            raise RuntimeError("JIRA session unavailable")
        url = f"{self.server}/rest/api/3/search/jql"
        key = self._cache_key(jql, fields, expand, page_size, max_results)
        now = time.time()
        self._drop_expired(now)
        cached = self._cache.get(key)
        if cached and (now - cached[0]) < self._cache_ttl:
            logger.debug("Search cache hit (%d issues): %s", len(cached[1]), jql)
            return cached[1]
        if max_results is not None:
            page_size = max(1, min(page_size, max_results))
        params = {"jql": jql, "maxResults": page_size}
        if fields:
            params["fields"] = ",".join(fields)
        if expand:
            params["expand"] = ",".join(expand)
        out: list[dict[str, Any]] = []
        token = None
        while True:
            qp = dict(params)
            if token:
                qp["nextPageToken"] = token
            resp = session.get(url, params=qp)
            if resp.status_code >= 400:
                raise JiraRequestError(resp.status_code, resp.text)
            data = resp.json()
            out.extend(data.get("issues", []))
            if max_results is not None and len(out) >= max_results:
                out = out[:max_results]
                break
            token = data.get("nextPageToken")
            if not token or data.get("isLast") is True:
                break
        logger.info("Fetched %d issues for JQL: %s", len(out), jql)
        self._cache[key] = (now, out)
        return out

    def fetch_issues(
        self,
        jql: str,
        max_results: int = 100,
        fields: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Return at most ``max_results`` raw issues matching ``jql``."""
        return self.search_enhanced(jql, fields=fields, max_results=max_results)

    def fetch_issue_raw(self, issue_key: str) -> dict[str, Any]:
        try:
            issue = self.client.issue(issue_key)
        except JIRAError as exc:  # pragma: no cover - network error path
            raise RuntimeError(f"Failed to fetch issue {issue_key}: {exc}") from exc
        if hasattr(issue, "raw"):
            return issue.raw
        if isinstance(issue, dict):
            return issue
        raise RuntimeError(f"Unexpected issue payload type for {issue_key}: {type(issue)!r}")
