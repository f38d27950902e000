"""Fact card generation — one LLM call per collected PR.

Runs on the same skip-if-exists loop as the collectors, over every PR in the
index, so an interrupted run resumes at the first PR without a card.
"""

from __future__ import annotations

import logging

from prism_core.collector.enrich import EnrichProgress, collect_artifacts, unique_entries
from prism_core.errors import ProviderError, RecoverableFetchError
from prism_core.providers.base import BaseProvider
from prism_store.base import BaseStore
from prism_store.models import PrDetail, PrIndex

logger = logging.getLogger(__name__)

MAX_DIFF_CHARS = 20_000
MAX_BODY_CHARS = 5_000

_SYSTEM_PROMPT = """You are an engineering analyst. From the pull request data you are given, \
extract only facts that the data supports. Do not speculate about motivation or impact \
that is not stated or directly visible in the changes."""


def build_fact_prompt(entry: PrIndex, detail: PrDetail, diff: str, lang: str | None = None) -> str:
    body = detail.body[:MAX_BODY_CHARS]
    if len(diff) > MAX_DIFF_CHARS:
        diff = diff[:MAX_DIFF_CHARS] + "\n... [diff truncated]"
    commits = "\n".join(f"- {c.message.splitlines()[0] if c.message else ''}" for c in detail.commits)
    files = "\n".join(f"- {f.filename} ({f.status}, +{f.additions}/-{f.deletions})" for f in detail.files)
    reviews = "\n".join(f"- {r.author}: {r.state}" for r in detail.reviews if r.state)
    language = lang or "English"
    return f"""## Pull Request {entry.owner}/{entry.repo}#{entry.number}
Title: {detail.title}
State: {detail.state}
Branch: {entry.head_ref_name} → {entry.base_ref_name}
Labels: {", ".join(entry.labels) or "none"}
Size: +{entry.additions}/-{entry.deletions} across {entry.changed_files} file(s)

## Description
{body or "(empty)"}

## Commits
{commits or "(none)"}

## Files
{files or "(none)"}

## Reviews
{reviews or "(none)"}

## Diff
{diff or "(not collected)"}

### Output Format:
Respond with **only** a JSON object, written in {language}:

{{
  "summary": "<one sentence: what changed>",
  "problem": "<the problem addressed, if stated>",
  "changes": ["<concrete change>", ...],
  "technologies": ["<language, framework or tool touched>", ...],
  "impact": "<stated or measurable effect, or null>",
  "evidence": ["<file, commit or review that supports the facts above>", ...]
}}"""


def generate_fact_cards(
    store: BaseStore,
    provider: BaseProvider,
    on_progress: EnrichProgress | None = None,
    lang: str | None = None,
) -> list[dict]:
    """Generate and persist a fact card for every indexed PR that lacks one.

    PRs whose detail has not been collected are skipped with a warning.
    Returns the newly generated cards.
    """

    def generate(entry: PrIndex) -> dict:
        identity = entry.identity
        detail = store.read_detail(identity)
        if detail is None:
            raise RecoverableFetchError(f"no detail collected for {identity}; run collect-detail first")
        diff = store.read_diff(identity) or ""
        card = provider.complete_json(_SYSTEM_PROMPT, build_fact_prompt(entry, detail, diff, lang))
        if not isinstance(card, dict):
            raise ProviderError(f"Expected a JSON object for {identity}, got {type(card).__name__}")
        return card

    return collect_artifacts(
        unique_entries(store.read_index()),
        exists=store.fact_card_exists,
        fetch=generate,
        write=lambda entry, card: store.write_fact_card(entry.identity, card),
        on_progress=on_progress,
    )
