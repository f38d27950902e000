"""Abstract store interface.

Every collector and generation stage talks to BaseStore, never to a concrete
backend. The contract per entity class is the same: ``*_exists`` is a pure
existence check, ``read_*`` returns None when nothing was written and raises
CorruptArtifactError when something unreadable was, and ``write_*``
overwrites unconditionally — callers check ``*_exists`` first.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from prism_store.models import FactCardEntry

if TYPE_CHECKING:
    from prism_store.models import PrDetail, PrIdentity, PrIndex

NARRATIVE_TYPES = ("star", "care")


class BaseStore(ABC):
    """Pluggable persistence layer for collected and generated PR artifacts."""

    # ------------------------------------------------------------------ #
    # Index                                                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def append_index(self, entry: PrIndex) -> None:
        """Append one entry to the index collection."""

    @abstractmethod
    def write_index(self, entries: list[PrIndex]) -> None:
        """Replace the whole index collection."""

    @abstractmethod
    def read_index(self) -> list[PrIndex]:
        """Return every index entry in stored order.

        Returns an empty list if nothing has been collected yet.
        """

    # ------------------------------------------------------------------ #
    # Per-PR artifacts                                                     #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def detail_exists(self, identity: PrIdentity) -> bool: ...

    @abstractmethod
    def read_detail(self, identity: PrIdentity) -> PrDetail | None: ...

    @abstractmethod
    def write_detail(self, detail: PrDetail) -> None: ...

    @abstractmethod
    def diff_exists(self, identity: PrIdentity) -> bool: ...

    @abstractmethod
    def read_diff(self, identity: PrIdentity) -> str | None: ...

    @abstractmethod
    def write_diff(self, identity: PrIdentity, diff: str) -> None: ...

    @abstractmethod
    def fact_card_exists(self, identity: PrIdentity) -> bool: ...

    @abstractmethod
    def read_fact_card(self, identity: PrIdentity) -> dict | None: ...

    @abstractmethod
    def write_fact_card(self, identity: PrIdentity, card: dict) -> None: ...

    # ------------------------------------------------------------------ #
    # Narratives                                                           #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def narrative_exists(self, narrative_type: str) -> bool: ...

    @abstractmethod
    def read_narrative(self, narrative_type: str) -> dict | None: ...

    @abstractmethod
    def write_narrative(self, narrative_type: str, data: dict) -> None: ...

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def read_all_fact_cards(self) -> list[FactCardEntry]:
        """Return every persisted fact card, enumerated through the index.

        Duplicate identities in the index collapse to their first occurrence.
        Identities without a card are skipped, and cards for identities that
        are not in the index are never returned.
        """
        seen: set[PrIdentity] = set()
        results: list[FactCardEntry] = []
        for entry in self.read_index():
            identity = entry.identity
            if identity in seen:
                continue
            seen.add(identity)
            card = self.read_fact_card(identity)
            if card is None:
                continue
            results.append(FactCardEntry(identity=identity, card=card))
        return results

    def close(self) -> None:
        """Release any resources held by the store (open file handles).

        Default is a no-op so callers can always call close() safely.
        """

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
