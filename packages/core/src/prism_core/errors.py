from __future__ import annotations


class PrismError(Exception):
    """Base class for pipeline failures surfaced to the CLI."""


class TransportError(PrismError):
    """A GitHub GraphQL or REST call failed; aborts the running stage."""


class RecoverableFetchError(PrismError):
    """A single PR could not be fetched but the stage may continue without it."""


class ProviderError(PrismError):
    """The LLM provider failed after retries or returned unusable output."""


class SelectionCancelled(PrismError):
    """The user selected nothing — a clean, intentional stop."""
