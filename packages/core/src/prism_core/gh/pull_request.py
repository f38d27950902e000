"""Per-PR REST fetches: detail documents through PyGithub, raw diffs through requests."""

from __future__ import annotations

import logging
from datetime import datetime

import requests
from github import Github, GithubException

from prism_core.errors import RecoverableFetchError, TransportError
from prism_store.models import CommitRecord, FileRecord, PrDetail, ReviewRecord

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
REQUEST_TIMEOUT = 60

# A PR that was deleted or transferred: skip it, keep the stage running.
_RECOVERABLE_STATUSES = {404, 410}


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _login(user) -> str:
    return getattr(user, "login", None) or ""


def build_detail(owner: str, repo: str, pr) -> PrDetail:
    """Map a PyGithub PullRequest onto a PrDetail document."""
    commits = []
    for c in pr.get_commits():
        git_author = c.commit.author
        commits.append(
            CommitRecord(
                sha=c.sha,
                message=c.commit.message or "",
                author=(git_author.name if git_author else "") or _login(c.author),
                date=_iso(git_author.date) if git_author else None,
            )
        )
    files = [
        FileRecord(
            filename=f.filename,
            status=f.status,
            additions=f.additions or 0,
            deletions=f.deletions or 0,
            patch=f.patch,
        )
        for f in pr.get_files()
    ]
    reviews = [
        ReviewRecord(
            author=_login(r.user),
            state=r.state or "",
            body=r.body or "",
            submitted_at=_iso(r.submitted_at),
        )
        for r in pr.get_reviews()
    ]
    return PrDetail(
        owner=owner,
        repo=repo,
        number=pr.number,
        title=pr.title or "",
        body=pr.body or "",
        state="merged" if pr.merged else pr.state,
        author=_login(pr.user),
        created_at=_iso(pr.created_at),
        merged_at=_iso(pr.merged_at),
        commits=commits,
        files=files,
        reviews=reviews,
    )


class PullRequestFetcher:
    """Fetches one PR at a time; the enrichment stages call it per index entry."""

    def __init__(self, token: str | None, session: requests.Session | None = None):
        self.token = token
        self._gh = Github(token) if token else Github()
        self._session = session or requests.Session()
        self._repos: dict[str, object] = {}

    def _get_repo(self, owner: str, repo: str):
        full_name = f"{owner}/{repo}"
        if full_name not in self._repos:
            self._repos[full_name] = self._gh.get_repo(full_name)
        return self._repos[full_name]

    def fetch_detail(self, owner: str, repo: str, number: int) -> PrDetail:
        try:
            pr = self._get_repo(owner, repo).get_pull(number)
            return build_detail(owner, repo, pr)
        except GithubException as e:
            if e.status in _RECOVERABLE_STATUSES:
                raise RecoverableFetchError(f"PR {owner}/{repo}#{number} not found (HTTP {e.status})") from e
            raise TransportError(f"Fetching PR {owner}/{repo}#{number} failed: HTTP {e.status}") from e

    def fetch_diff(self, owner: str, repo: str, number: int) -> str:
        url = f"{API_URL}/repos/{owner}/{repo}/pulls/{number}"
        headers = {"Accept": DIFF_MEDIA_TYPE}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            resp = self._session.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise TransportError(f"Fetching diff for {owner}/{repo}#{number} failed: {e}") from e

        if resp.status_code in _RECOVERABLE_STATUSES:
            raise RecoverableFetchError(f"Diff for {owner}/{repo}#{number} not found (HTTP {resp.status_code})")
        if resp.status_code != 200:
            raise TransportError(f"Fetching diff for {owner}/{repo}#{number} failed: HTTP {resp.status_code}")
        return resp.content.decode("utf-8", errors="replace")
