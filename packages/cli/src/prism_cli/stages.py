"""Pipeline stages as run by the CLI.

Each stage shows a rich status line, reports its result, and converts any
failure into a click.ClickException so the process exits non-zero. The
single-stage commands and `run-all` share these functions.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

import click
from rich.console import Console

from prism_cli.selection import select_prs
from prism_core.collector.enrich import collect_pr_details, collect_pr_diffs
from prism_core.collector.index import collect_pr_index
from prism_core.errors import SelectionCancelled
from prism_core.generation.facts import generate_fact_cards
from prism_core.generation.narratives import generate_narratives
from prism_core.gh.graphql import GraphQLSearch
from prism_core.gh.pull_request import PullRequestFetcher

console = Console()
logger = logging.getLogger(__name__)


@contextmanager
def stage(label: str):
    """Run a block as one named stage; failures become a ClickException."""
    status = console.status(f"{label}...")
    status.start()
    try:
        yield status
    except (click.ClickException, SelectionCancelled):
        raise
    except Exception as e:
        logger.debug("%s failed", label, exc_info=True)
        raise click.ClickException(f"{label} failed: {e}") from e
    finally:
        status.stop()


def _require_token(obj: dict) -> str:
    token = obj.get("token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    return token


def repos_in_index(store) -> list[tuple[str, str]]:
    """Distinct (owner, repo) pairs in index order."""
    seen: dict[tuple[str, str], None] = {}
    for entry in store.read_index():
        seen.setdefault((entry.owner, entry.repo), None)
    return list(seen)


def _target_repos(obj: dict, repos: list[tuple[str, str]] | None) -> list[tuple[str, str]]:
    if repos:
        return repos
    with stage("Reading PR index"):
        repos = repos_in_index(obj["store"])
    if not repos:
        console.print("[yellow]The PR index is empty. Run collect-index first.[/yellow]")
    return repos


def run_collect_index(
    obj: dict,
    repos: list[tuple[str, str]],
    author: str,
    state: str,
    max_pages: int,
    auto_confirm: bool,
    label: str = "Collecting PR index",
) -> list:
    """Collect, let the user pick, then write the index. Returns the saved entries."""
    config = obj["config"]
    store = obj["store"]
    search = GraphQLSearch(_require_token(obj))

    with stage(label) as status:
        entries = collect_pr_index(
            search,
            repos,
            author,
            state=state,
            max_pages=max_pages,
            page_size=config.get("page_size", 50),
            on_progress=lambda count, total: status.update(f"{label}... {count}/{total}"),
        )
    console.print(f"[green]{label}: collected {len(entries)} PRs[/green]")

    selected = select_prs(entries, auto_confirm=auto_confirm)
    with stage("Saving PR index"):
        store.write_index(selected)
    console.print(f"[green]Saved {len(selected)}/{len(entries)} PRs → pr_index.jsonl[/green]")
    return selected


def run_collect_details(obj: dict, repos: list[tuple[str, str]] | None, label: str = "Collecting PR details") -> int:
    store = obj["store"]
    fetcher = PullRequestFetcher(obj.get("token"))
    repos = _target_repos(obj, repos)
    total_new = 0
    for owner, repo in repos:
        with stage(label) as status:
            details = collect_pr_details(
                store,
                fetcher.fetch_detail,
                owner,
                repo,
                on_progress=lambda current, total, number: status.update(
                    f"{label}... {current}/{total} ({owner}/{repo}#{number})"
                ),
            )
        total_new += len(details)
        console.print(f"[green]{label}: {len(details)} new for {owner}/{repo} → pr_detail/[/green]")
    return total_new


def run_collect_diffs(obj: dict, repos: list[tuple[str, str]] | None, label: str = "Collecting PR diffs") -> int:
    store = obj["store"]
    fetcher = PullRequestFetcher(obj.get("token"))
    repos = _target_repos(obj, repos)
    total_new = 0
    for owner, repo in repos:
        with stage(label) as status:
            count = collect_pr_diffs(
                store,
                fetcher.fetch_diff,
                owner,
                repo,
                on_progress=lambda current, total, number: status.update(
                    f"{label}... {current}/{total} ({owner}/{repo}#{number})"
                ),
            )
        total_new += count
        console.print(f"[green]{label}: {count} new for {owner}/{repo} → pr_diff/[/green]")
    return total_new


def run_generate_facts(obj: dict, provider, lang: str | None, label: str = "Generating fact cards") -> list[dict]:
    with stage(label) as status:
        cards = generate_fact_cards(
            obj["store"],
            provider,
            on_progress=lambda current, total, number: status.update(f"{label}... {current}/{total} (PR #{number})"),
            lang=lang,
        )
    console.print(f"[green]{label}: {len(cards)} new → fact_cards/[/green]")
    return cards


def run_generate_narratives(obj: dict, provider, lang: str | None, label: str = "Generating narratives") -> dict:
    with stage(label) as status:
        results = generate_narratives(
            obj["store"],
            provider,
            on_progress=lambda step, current, total: status.update(f"{label} [{step}]... {current}/{total}"),
            lang=lang,
        )
    counts = " + ".join(f"{len(data['narratives'])} {kind.upper()}" for kind, data in results.items())
    console.print(f"[green]{label}: {counts} → narratives/[/green]")
    return results
