"""run-all command — every stage in order, stopping at the first failure."""

from __future__ import annotations

import click
from rich.console import Console

from prism_cli.commands.collect import parse_repos, resolve_repos
from prism_cli.stages import (
    run_collect_details,
    run_collect_diffs,
    run_collect_index,
    run_generate_facts,
    run_generate_narratives,
)
from prism_core.errors import SelectionCancelled

console = Console()

_TOTAL_STEPS = 5


@click.command("run-all")
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
@click.option("--lang", default=None, help="Output language for generated text. Overrides config file.")
@click.option("--yes", "-y", is_flag=True, help="Keep every collected PR without prompting.")
@click.pass_context
def run_all_cmd(ctx, repos, author: str, state: str | None, max_pages: int | None, lang: str | None, yes: bool):
    """Run the full pipeline: index → details → diffs → fact cards → narratives.

    Each stage skips work already on disk, so re-running after a failure
    resumes where the previous run stopped.
    """
    from prism_cli.cli import build_provider

    config = ctx.obj["config"]
    repos = resolve_repos(ctx.obj, repos)
    if not repos:
        raise click.UsageError("No repositories given. Pass --repo owner/name or set 'repos' in .prism.yml.")
    lang = lang or config.get("lang")
    # Fail on missing LLM credentials before any GitHub work is done.
    provider = build_provider(config)

    def step(n: int, text: str) -> str:
        return f"Step {n}/{_TOTAL_STEPS}: {text}"

    console.print("\n[bold]prism — full pipeline[/bold]\n")
    try:
        run_collect_index(
            ctx.obj,
            repos,
            author,
            state=state or config["state"],
            max_pages=max_pages or config["max_pages"],
            auto_confirm=yes,
            label=step(1, "Collecting PR index"),
        )
    except SelectionCancelled:
        console.print("[yellow]No PRs selected. Stopping.[/yellow]")
        return

    run_collect_details(ctx.obj, repos, label=step(2, "Collecting PR details"))
    run_collect_diffs(ctx.obj, repos, label=step(3, "Collecting PR diffs"))
    run_generate_facts(ctx.obj, provider, lang, label=step(4, "Generating fact cards"))
    run_generate_narratives(ctx.obj, provider, lang, label=step(5, "Generating narratives"))

    data_dir = ctx.obj["store"].data_dir
    console.print(f"\n[bold green]Pipeline complete! Check the {data_dir}/ directory.[/bold green]\n")
