from __future__ import annotations


class StoreError(Exception):
    """Base class for store failures."""


class CorruptArtifactError(StoreError):
    """An artifact exists on disk but cannot be parsed.

    Never reported as "not found" — a truncated file left by an interrupted
    write must surface here rather than be re-fetched over.
    """

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Corrupt artifact {self.path}: {reason}")
