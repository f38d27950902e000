"""Tests for the detail and diff collectors."""

import pytest

from prism_core.collector.enrich import collect_pr_details, collect_pr_diffs, unique_entries
from prism_core.errors import RecoverableFetchError, TransportError
from prism_store.file import FileStore
from prism_store.models import PrDetail, PrIndex


def _entry(number, owner="acme", repo="api"):
    return PrIndex(
        owner=owner,
        repo=repo,
        number=number,
        title=f"PR {number}",
        url="",
        state="MERGED",
        created_at="2024-01-01T00:00:00Z",
        merged_at=None,
        additions=1,
        deletions=1,
        changed_files=1,
        base_ref_name="main",
        head_ref_name="feat",
    )


def _detail(owner, repo, number, body="fetched"):
    return PrDetail(
        owner=owner, repo=repo, number=number, title=f"PR {number}", body=body, state="merged", author="octocat"
    )


@pytest.fixture
def store(tmp_path):
    s = FileStore(tmp_path / "data")
    yield s
    s.close()


class TestUniqueEntries:
    def test_keeps_first_occurrence_in_order(self):
        entries = [_entry(2), _entry(1), _entry(2), _entry(1, repo="web")]

        assert [(e.repo, e.number) for e in unique_entries(entries)] == [("api", 2), ("api", 1), ("web", 1)]


class TestCollectPrDetails:
    def test_skips_existing_artifacts(self, store):
        store.write_index([_entry(1), _entry(2), _entry(3)])
        store.write_detail(_detail("acme", "api", 2, body="original"))
        before = store.detail_path(_entry(2).identity).read_bytes()

        fetched_numbers = []

        def fetch(owner, repo, number):
            fetched_numbers.append(number)
            return _detail(owner, repo, number)

        progress = []
        details = collect_pr_details(store, fetch, "acme", "api", on_progress=lambda *a: progress.append(a))

        assert fetched_numbers == [1, 3]
        assert [d.number for d in details] == [1, 3]
        assert store.detail_path(_entry(2).identity).read_bytes() == before
        assert progress == [(1, 3, 1), (2, 3, 2), (3, 3, 3)]

    def test_second_run_fetches_nothing(self, store):
        store.write_index([_entry(1), _entry(2)])
        collect_pr_details(store, lambda o, r, n: _detail(o, r, n), "acme", "api")

        def fail(*args):
            raise AssertionError("should not fetch")

        assert collect_pr_details(store, fail, "acme", "api") == []

    def test_only_entries_of_requested_repository(self, store):
        store.write_index([_entry(1), _entry(1, repo="web"), _entry(2, owner="other")])
        calls = []

        collect_pr_details(store, lambda o, r, n: calls.append((o, r, n)) or _detail(o, r, n), "acme", "api")

        assert calls == [("acme", "api", 1)]

    def test_duplicate_index_entries_fetched_once(self, store):
        store.write_index([_entry(1), _entry(1)])
        calls = []
        progress = []

        collect_pr_details(
            store,
            lambda o, r, n: calls.append(n) or _detail(o, r, n),
            "acme",
            "api",
            on_progress=lambda *a: progress.append(a),
        )

        assert calls == [1]
        assert progress == [(1, 1, 1)]

    def test_recoverable_error_skips_entry(self, store):
        store.write_index([_entry(1), _entry(2), _entry(3)])

        def fetch(owner, repo, number):
            if number == 2:
                raise RecoverableFetchError("PR not found")
            return _detail(owner, repo, number)

        details = collect_pr_details(store, fetch, "acme", "api")

        assert [d.number for d in details] == [1, 3]
        assert not store.detail_exists(_entry(2).identity)

    def test_fatal_error_keeps_earlier_writes(self, store):
        store.write_index([_entry(1), _entry(2), _entry(3)])

        def fetch(owner, repo, number):
            if number == 2:
                raise TransportError("HTTP 502")
            return _detail(owner, repo, number)

        with pytest.raises(TransportError):
            collect_pr_details(store, fetch, "acme", "api")

        assert store.detail_exists(_entry(1).identity)
        assert not store.detail_exists(_entry(3).identity)

        # The next run resumes at the entry that failed.
        resumed = collect_pr_details(store, lambda o, r, n: _detail(o, r, n), "acme", "api")
        assert [d.number for d in resumed] == [2, 3]

    def test_empty_index(self, store):
        assert collect_pr_details(store, lambda *a: None, "acme", "api") == []


class TestCollectPrDiffs:
    def test_returns_count_of_new_diffs(self, store):
        store.write_index([_entry(1), _entry(2), _entry(3)])
        store.write_diff(_entry(2).identity, "existing")

        count = collect_pr_diffs(store, lambda o, r, n: f"diff --git a/{n} b/{n}\n", "acme", "api")

        assert count == 2
        assert store.read_diff(_entry(1).identity) == "diff --git a/1 b/1\n"
        assert store.read_diff(_entry(2).identity) == "existing"

    def test_empty_diff_still_counts_as_collected(self, store):
        store.write_index([_entry(1)])

        assert collect_pr_diffs(store, lambda *a: "", "acme", "api") == 1
        assert store.diff_exists(_entry(1).identity)
        assert collect_pr_diffs(store, lambda *a: "", "acme", "api") == 0
