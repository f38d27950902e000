"""collect-* commands — fill the local store from GitHub."""

from __future__ import annotations

import click
from rich.console import Console

from prism_cli.stages import run_collect_details, run_collect_diffs, run_collect_index
from prism_core.config import parse_repo
from prism_core.errors import SelectionCancelled

console = Console()


def parse_repos(ctx, param, value) -> list[tuple[str, str]]:
    """click callback: turn repeated ``owner/name`` options into tuples."""
    try:
        return [parse_repo(v) for v in value or ()]
    except ValueError as e:
        raise click.BadParameter(str(e))


def resolve_repos(obj: dict, repos: list[tuple[str, str]]) -> list[tuple[str, str]]:
    """Fall back to the `repos` list in .prism.yml when --repo was not given."""
    if repos:
        return repos
    try:
        return [parse_repo(r) for r in obj["config"].get("repos") or []]
    except ValueError as e:
        raise click.UsageError(f"Invalid entry in config 'repos': {e}")


@click.command("collect-index")
@click.option(
    "--repo",
    "repos",
    multiple=True,
    callback=parse_repos,
    help="GitHub repository (owner/name). Repeat for several repositories.",
)
@click.option("--author", required=True, help="PR author username.")
@click.option("--state", default=None, help="PR state filter (merged, open, closed). Overrides config file.")
@click.option("--max-pages", type=click.IntRange(min=1), default=None, help="Page ceiling per repository.")
@click.option("--yes", "-y", is_flag=True, help="Keep every collected PR without prompting.")
@click.pass_context
def collect_index_cmd(ctx, repos, author: str, state: str | None, max_pages: int | None, yes: bool):
    """Collect the PR index (metadata) via the GitHub search API.

    Writes data/pr_index.jsonl, replacing any previous index.
    """
    config = ctx.obj["config"]
    repos = resolve_repos(ctx.obj, repos)
    if not repos:
        raise click.UsageError("No repositories given. Pass --repo owner/name or set 'repos' in .prism.yml.")

    try:
        run_collect_index(
            ctx.obj,
            repos,
            author,
            state=state or config["state"],
            max_pages=max_pages or config["max_pages"],
            auto_confirm=yes,
        )
    except SelectionCancelled:
        console.print("[yellow]No PRs selected. Nothing saved.[/yellow]")


@click.command("collect-detail")
@click.option(
    "--repo",
    "repos",
    multiple=True,
    callback=parse_repos,
    help="Limit to these repositories (owner/name). Defaults to every repository in the index.",
)
@click.pass_context
def collect_detail_cmd(ctx, repos):
    """Collect detailed PR data (body, commits, files, reviews).

    PRs whose detail document already exists are skipped.
    """
    run_collect_details(ctx.obj, list(repos))


@click.command("collect-diff")
@click.option(
    "--repo",
    "repos",
    multiple=True,
    callback=parse_repos,
    help="Limit to these repositories (owner/name). Defaults to every repository in the index.",
)
@click.pass_context
def collect_diff_cmd(ctx, repos):
    """Collect PR diffs via the REST API.

    PRs whose diff already exists are skipped.
    """
    run_collect_diffs(ctx.obj, list(repos))
