"""PR index collection across one or more repositories."""

from __future__ import annotations

import logging

from prism_core.collector.pagination import (
    DEFAULT_MAX_PAGES,
    DEFAULT_PAGE_SIZE,
    Paginator,
    ProgressCallback,
    QueryPage,
)
from prism_store.models import PrIndex

logger = logging.getLogger(__name__)


def build_search_query(owner: str, repo: str, author: str, state: str = "merged") -> str:
    return f"repo:{owner}/{repo} type:pr author:{author} is:{state}"


def node_to_index(owner: str, repo: str, node: dict) -> PrIndex:
    """Project one raw search node onto a PrIndex, tagged with its repository."""
    labels = (node.get("labels") or {}).get("nodes") or []
    return PrIndex(
        owner=owner,
        repo=repo,
        number=node["number"],
        title=node.get("title") or "",
        url=node.get("url") or "",
        state=node.get("state") or "",
        created_at=node.get("createdAt") or "",
        merged_at=node.get("mergedAt"),
        additions=node.get("additions") or 0,
        deletions=node.get("deletions") or 0,
        changed_files=node.get("changedFiles") or 0,
        base_ref_name=node.get("baseRefName") or "",
        head_ref_name=node.get("headRefName") or "",
        labels=[label["name"] for label in labels if label and label.get("name")],
    )


def collect_pr_index(
    query_page: QueryPage,
    repos: list[tuple[str, str]],
    author: str,
    state: str = "merged",
    max_pages: int = DEFAULT_MAX_PAGES,
    page_size: int = DEFAULT_PAGE_SIZE,
    on_progress: ProgressCallback | None = None,
) -> list[PrIndex]:
    """Return every PR by ``author`` in ``state`` across ``repos``.

    Repositories are walked sequentially with a shared paginator so progress
    is cumulative. Nothing is persisted here — the caller decides which of
    the returned entries to write. Any transport error propagates and the
    partial list is dropped.
    """
    paginator = Paginator(query_page, page_size=page_size, max_pages=max_pages, on_progress=on_progress)
    entries: list[PrIndex] = []
    for owner, repo in repos:
        predicate = build_search_query(owner, repo, author, state)
        before = len(entries)
        for node in paginator.walk(predicate):
            entries.append(node_to_index(owner, repo, node))
        logger.info("Found %d PR(s) in %s/%s", len(entries) - before, owner, repo)
    return entries
