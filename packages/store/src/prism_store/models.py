"""Collected pull-request data models.

Decoupled from prism_core so the store layer can be used independently:
collectors build these records, the store only serializes them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import NamedTuple


class PrIdentity(NamedTuple):
    """(owner, repo, number) — names one pull request across every stage."""

    owner: str
    repo: str
    number: int

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


@dataclass(frozen=True)
class PrIndex:
    """One search result, projected into the stable index format.

    Written as a single JSON line in pr_index.jsonl. Never mutated after
    creation — re-running collection replaces the whole index instead.
    """

    owner: str
    repo: str
    number: int
    title: str
    url: str
    state: str  # "OPEN" | "CLOSED" | "MERGED"
    created_at: str
    merged_at: str | None
    additions: int
    deletions: int
    changed_files: int
    base_ref_name: str
    head_ref_name: str
    labels: list[str] = field(default_factory=list)

    @property
    def identity(self) -> PrIdentity:
        return PrIdentity(self.owner, self.repo, self.number)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> PrIndex:
        return cls(
            owner=d["owner"],
            repo=d["repo"],
            number=int(d["number"]),
            title=d.get("title", ""),
            url=d.get("url", ""),
            state=d.get("state", ""),
            created_at=d.get("created_at", ""),
            merged_at=d.get("merged_at"),
            additions=d.get("additions", 0),
            deletions=d.get("deletions", 0),
            changed_files=d.get("changed_files", 0),
            base_ref_name=d.get("base_ref_name", ""),
            head_ref_name=d.get("head_ref_name", ""),
            labels=list(d.get("labels", [])),
        )


@dataclass
class CommitRecord:
    sha: str
    message: str
    author: str
    date: str | None = None


@dataclass
class FileRecord:
    filename: str
    status: str
    additions: int = 0
    deletions: int = 0
    patch: str | None = None


@dataclass
class ReviewRecord:
    author: str
    state: str  # "APPROVED" | "CHANGES_REQUESTED" | "COMMENTED" | ...
    body: str = ""
    submitted_at: str | None = None


@dataclass
class PrDetail:
    """Enriched pull-request document — the fields a search result lacks.

    The presence of its file on disk is the "already collected" marker for
    the detail stage; the collector never overwrites an existing document.
    """

    owner: str
    repo: str
    number: int
    title: str
    body: str
    state: str
    author: str
    created_at: str | None = None
    merged_at: str | None = None
    commits: list[CommitRecord] = field(default_factory=list)
    files: list[FileRecord] = field(default_factory=list)
    reviews: list[ReviewRecord] = field(default_factory=list)

    @property
    def identity(self) -> PrIdentity:
        return PrIdentity(self.owner, self.repo, self.number)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> PrDetail:
        return cls(
            owner=d["owner"],
            repo=d["repo"],
            number=int(d["number"]),
            title=d.get("title", ""),
            body=d.get("body") or "",
            state=d.get("state", ""),
            author=d.get("author", ""),
            created_at=d.get("created_at"),
            merged_at=d.get("merged_at"),
            commits=[CommitRecord(**c) for c in d.get("commits", [])],
            files=[FileRecord(**f) for f in d.get("files", [])],
            reviews=[ReviewRecord(**r) for r in d.get("reviews", [])],
        )


@dataclass
class FactCardEntry:
    """A persisted fact card paired with the identity it was generated for."""

    identity: PrIdentity
    card: dict
