"""Per-PR enrichment stages: details and diffs.

Both stages share one loop. For each index entry of the repository, in index
order: if the stage's artifact already exists the entry is skipped without a
network call, otherwise it is fetched and written immediately. Written
artifacts are the resume point — a run aborted halfway picks up where it
stopped on the next invocation.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from prism_core.errors import RecoverableFetchError
from prism_store.base import BaseStore
from prism_store.models import PrDetail, PrIdentity, PrIndex

logger = logging.getLogger(__name__)

T = TypeVar("T")

EnrichProgress = Callable[[int, int, int], Any]


def unique_entries(entries: list[PrIndex]) -> list[PrIndex]:
    """Drop repeated identities, keeping the first occurrence and index order."""
    seen: set[PrIdentity] = set()
    result = []
    for entry in entries:
        if entry.identity in seen:
            continue
        seen.add(entry.identity)
        result.append(entry)
    return result


def entries_for_repo(store: BaseStore, owner: str, repo: str) -> list[PrIndex]:
    return unique_entries([e for e in store.read_index() if (e.owner, e.repo) == (owner, repo)])


def collect_artifacts(
    entries: list[PrIndex],
    exists: Callable[[PrIdentity], bool],
    fetch: Callable[[PrIndex], T],
    write: Callable[[PrIndex, T], None],
    on_progress: EnrichProgress | None = None,
) -> list[T]:
    """Fetch and write the artifact of every entry that does not have one yet.

    Returns only the newly fetched artifacts. ``on_progress(processed, total,
    number)`` fires after every entry, skipped or not. A RecoverableFetchError
    skips that entry; any other exception stops the loop with earlier writes
    left in place.
    """
    total = len(entries)
    fetched: list[T] = []
    for processed, entry in enumerate(entries, 1):
        identity = entry.identity
        if exists(identity):
            logger.debug("Skipping %s: already collected", identity)
        else:
            try:
                artifact = fetch(entry)
            except RecoverableFetchError as e:
                logger.warning("Skipping %s: %s", identity, e)
            else:
                write(entry, artifact)
                fetched.append(artifact)
        if on_progress is not None:
            on_progress(processed, total, entry.number)
    return fetched


def collect_pr_details(
    store: BaseStore,
    fetch_detail: Callable[[str, str, int], PrDetail],
    owner: str,
    repo: str,
    on_progress: EnrichProgress | None = None,
) -> list[PrDetail]:
    """Collect detail documents for every indexed PR of ``owner/repo``."""
    return collect_artifacts(
        entries_for_repo(store, owner, repo),
        exists=store.detail_exists,
        fetch=lambda entry: fetch_detail(entry.owner, entry.repo, entry.number),
        write=lambda entry, detail: store.write_detail(detail),
        on_progress=on_progress,
    )


def collect_pr_diffs(
    store: BaseStore,
    fetch_diff: Callable[[str, str, int], str],
    owner: str,
    repo: str,
    on_progress: EnrichProgress | None = None,
) -> int:
    """Collect unified diffs for every indexed PR of ``owner/repo``; return how many were new."""
    diffs = collect_artifacts(
        entries_for_repo(store, owner, repo),
        exists=store.diff_exists,
        fetch=lambda entry: fetch_diff(entry.owner, entry.repo, entry.number),
        write=lambda entry, diff: store.write_diff(entry.identity, diff),
        on_progress=on_progress,
    )
    return len(diffs)
