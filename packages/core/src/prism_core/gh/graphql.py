"""GitHub GraphQL search transport."""

from __future__ import annotations

import logging

import requests

from prism_core.collector.pagination import SearchPage
from prism_core.errors import TransportError

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"
USER_AGENT = "prism-pr-collector"
REQUEST_TIMEOUT = 60

PR_SEARCH_QUERY = """
query SearchPullRequests($searchQuery: String!, $first: Int!, $after: String) {
  search(query: $searchQuery, type: ISSUE, first: $first, after: $after) {
    issueCount
    pageInfo {
      hasNextPage
      endCursor
    }
    nodes {
      ... on PullRequest {
        number
        title
        url
        state
        createdAt
        mergedAt
        additions
        deletions
        changedFiles
        baseRefName
        headRefName
        labels(first: 20) {
          nodes { name }
        }
      }
    }
  }
}
"""


def run_graphql_query(session: requests.Session, query: str, variables: dict, token: str | None) -> dict:
    """POST one GraphQL query and return its ``data`` payload.

    Raises TransportError on network failure, a non-200 response, or a
    response carrying GraphQL ``errors``. No retries happen here.
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": USER_AGENT,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        resp = session.post(
            GRAPHQL_URL,
            json={"query": query, "variables": variables},
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        raise TransportError(f"GraphQL request failed: {e}") from e

    if resp.status_code != 200:
        try:
            message = resp.json().get("message")
        except ValueError:
            message = (resp.text or "")[:300]
        raise TransportError(f"GraphQL HTTP {resp.status_code}: {message}")

    try:
        payload = resp.json()
    except ValueError as e:
        raise TransportError(f"GraphQL response is not JSON: {e}") from e
    if payload.get("errors"):
        messages = ", ".join(str(err.get("message")) for err in payload["errors"] if isinstance(err, dict))
        raise TransportError(f"GraphQL error: {messages or payload['errors']}")
    return payload.get("data") or {}


class GraphQLSearch:
    """Callable page query for the Paginator, backed by GitHub's search API."""

    def __init__(self, token: str | None, session: requests.Session | None = None):
        self.token = token
        self.session = session or requests.Session()

    def __call__(self, predicate: str, page_size: int, cursor: str | None) -> SearchPage:
        logger.debug("search %r first=%d after=%s", predicate, page_size, cursor)
        data = run_graphql_query(
            self.session,
            PR_SEARCH_QUERY,
            {"searchQuery": predicate, "first": page_size, "after": cursor},
            self.token,
        )
        search = data.get("search")
        if search is None:
            raise TransportError(f"GraphQL response has no search result for {predicate!r}")
        page_info = search.get("pageInfo") or {}
        return SearchPage(
            nodes=[n for n in (search.get("nodes") or []) if n],
            has_next_page=bool(page_info.get("hasNextPage")),
            end_cursor=page_info.get("endCursor"),
            total_count=search.get("issueCount") or 0,
        )
