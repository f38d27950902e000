"""FileStore — the local directory layout every stage reads and writes.

Layout under ``data_dir``:

  pr_index.jsonl                             one PrIndex per line
  {owner}/{repo}/pr_detail/{number}.json     PrDetail document
  {owner}/{repo}/pr_diff/{number}.diff       raw unified diff
  {owner}/{repo}/fact_cards/{number}.json    generated fact card
  narratives/{star|care}.json                generated narratives

Paths are a pure function of the identity, so the same PR maps to the same
file across runs without any extra bookkeeping. There is no locking: one
invocation at a time per data directory.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from prism_store.base import NARRATIVE_TYPES, BaseStore
from prism_store.errors import CorruptArtifactError
from prism_store.models import PrDetail, PrIdentity, PrIndex

logger = logging.getLogger(__name__)

_INDEX_FILENAME = "pr_index.jsonl"


class FileStore(BaseStore):
    """Stores every artifact as a UTF-8 file under a single data directory."""

    def __init__(self, data_dir: str | Path = "data"):
        self.data_dir = Path(data_dir)
        self._index_handle = None

    # --- paths --------------------------------------------------------- #

    @property
    def index_path(self) -> Path:
        return self.data_dir / _INDEX_FILENAME

    def detail_path(self, identity: PrIdentity) -> Path:
        return self._repo_dir(identity) / "pr_detail" / f"{identity.number}.json"

    def diff_path(self, identity: PrIdentity) -> Path:
        return self._repo_dir(identity) / "pr_diff" / f"{identity.number}.diff"

    def fact_card_path(self, identity: PrIdentity) -> Path:
        return self._repo_dir(identity) / "fact_cards" / f"{identity.number}.json"

    def narrative_path(self, narrative_type: str) -> Path:
        if narrative_type not in NARRATIVE_TYPES:
            raise ValueError(f"Unknown narrative type: {narrative_type!r}. Choose one of {NARRATIVE_TYPES}.")
        return self.data_dir / "narratives" / f"{narrative_type}.json"

    def _repo_dir(self, identity: PrIdentity) -> Path:
        return self.data_dir / identity.owner / identity.repo

    # --- index --------------------------------------------------------- #

    def append_index(self, entry: PrIndex) -> None:
        if self._index_handle is None:
            self.index_path.parent.mkdir(parents=True, exist_ok=True)
            self._index_handle = open(self.index_path, "a", encoding="utf-8")
        self._index_handle.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
        self._index_handle.flush()

    def write_index(self, entries: list[PrIndex]) -> None:
        # An open append handle would keep writing to the replaced file.
        self._close_index_handle()
        lines = "".join(json.dumps(e.to_dict(), ensure_ascii=False) + "\n" for e in entries)
        _atomic_write(self.index_path, lines)
        logger.debug("Wrote %d index entries to %s", len(entries), self.index_path)

    def read_index(self) -> list[PrIndex]:
        path = self.index_path
        if not path.is_file():
            return []
        text = _read_text(path)
        entries = []
        # Records end in "\n" only; titles may contain U+0085 or U+2028.
        for lineno, line in enumerate(text.split("\n"), 1):
            if not line.strip():
                continue
            try:
                entries.append(PrIndex.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                raise CorruptArtifactError(path, f"line {lineno}: {e}") from e
        return entries

    # --- detail -------------------------------------------------------- #

    def detail_exists(self, identity: PrIdentity) -> bool:
        return self.detail_path(identity).is_file()

    def read_detail(self, identity: PrIdentity) -> PrDetail | None:
        path = self.detail_path(identity)
        data = _read_json(path)
        if data is None:
            return None
        try:
            return PrDetail.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptArtifactError(path, f"not a PR detail document: {e}") from e

    def write_detail(self, detail: PrDetail) -> None:
        _atomic_write(self.detail_path(detail.identity), json.dumps(detail.to_dict(), indent=2, ensure_ascii=False))

    # --- diff ---------------------------------------------------------- #

    def diff_exists(self, identity: PrIdentity) -> bool:
        return self.diff_path(identity).is_file()

    def read_diff(self, identity: PrIdentity) -> str | None:
        path = self.diff_path(identity)
        if not path.is_file():
            return None
        return _read_text(path)

    def write_diff(self, identity: PrIdentity, diff: str) -> None:
        _atomic_write(self.diff_path(identity), diff)

    # --- fact cards ---------------------------------------------------- #

    def fact_card_exists(self, identity: PrIdentity) -> bool:
        return self.fact_card_path(identity).is_file()

    def read_fact_card(self, identity: PrIdentity) -> dict | None:
        return _read_json_object(self.fact_card_path(identity))

    def write_fact_card(self, identity: PrIdentity, card: dict) -> None:
        _atomic_write(self.fact_card_path(identity), json.dumps(card, indent=2, ensure_ascii=False))

    # --- narratives ---------------------------------------------------- #

    def narrative_exists(self, narrative_type: str) -> bool:
        return self.narrative_path(narrative_type).is_file()

    def read_narrative(self, narrative_type: str) -> dict | None:
        return _read_json_object(self.narrative_path(narrative_type))

    def write_narrative(self, narrative_type: str, data: dict) -> None:
        _atomic_write(self.narrative_path(narrative_type), json.dumps(data, indent=2, ensure_ascii=False))

    # --- lifecycle ----------------------------------------------------- #

    def close(self) -> None:
        self._close_index_handle()

    def _close_index_handle(self) -> None:
        if self._index_handle is not None:
            self._index_handle.close()
            self._index_handle = None


def _atomic_write(path: Path, text: str) -> None:
    """Write text via a sibling temp file so readers never see half a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    with open(tmp_path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    os.replace(tmp_path, path)


def _read_text(path: Path) -> str:
    try:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise CorruptArtifactError(path, f"invalid UTF-8: {e}") from e


def _read_json(path: Path) -> Any:
    """Parse a whole-document JSON artifact, or return None if it is missing."""
    if not path.is_file():
        return None
    text = _read_text(path)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptArtifactError(path, str(e)) from e


def _read_json_object(path: Path) -> dict | None:
    data = _read_json(path)
    if data is not None and not isinstance(data, dict):
        raise CorruptArtifactError(path, f"expected a JSON object, got {type(data).__name__}")
    return data
