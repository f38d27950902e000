"""status command — how far each repository has progressed through the pipeline."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prism_core.collector.enrich import unique_entries
from prism_store.base import NARRATIVE_TYPES

console = Console()


@click.command("status")
@click.pass_context
def status_cmd(ctx):
    """Show per-repository counts of collected and generated artifacts."""
    store = ctx.obj["store"]
    try:
        entries = unique_entries(store.read_index())
    except Exception as e:
        raise click.ClickException(f"Could not read the PR index: {e}") from e

    if not entries:
        console.print("[yellow]No PRs collected yet. Run collect-index first.[/yellow]")
        return

    counts: dict[str, dict[str, int]] = {}
    for entry in entries:
        row = counts.setdefault(f"{entry.owner}/{entry.repo}", {"prs": 0, "detail": 0, "diff": 0, "facts": 0})
        row["prs"] += 1
        identity = entry.identity
        row["detail"] += store.detail_exists(identity)
        row["diff"] += store.diff_exists(identity)
        row["facts"] += store.fact_card_exists(identity)

    table = Table(title="Collection status", show_header=True, header_style="bold cyan")
    table.add_column("Repository", style="bold")
    table.add_column("PRs", justify="right")
    table.add_column("Details", justify="right")
    table.add_column("Diffs", justify="right")
    table.add_column("Fact cards", justify="right")

    for repo, row in counts.items():

        def cell(n: int) -> str:
            style = "green" if n == row["prs"] else "yellow"
            return f"[{style}]{n}[/{style}]"

        table.add_row(repo, str(row["prs"]), cell(row["detail"]), cell(row["diff"]), cell(row["facts"]))

    console.print(table)

    written = [t.upper() for t in NARRATIVE_TYPES if store.narrative_exists(t)]
    console.print(f"Narratives: {', '.join(written) if written else 'none'}")
