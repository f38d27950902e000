"""Interactive choice of which collected PRs go into the index."""

from __future__ import annotations

import click
from rich.console import Console

from prism_core.errors import SelectionCancelled
from prism_store.models import PrIndex

console = Console()


def parse_selection(answer: str, entries: list[PrIndex]) -> list[PrIndex]:
    """Keep the entries whose PR number appears in a comma/space separated answer.

    Unknown numbers are ignored; the original order of ``entries`` is kept.
    """
    wanted: set[int] = set()
    for token in answer.replace(",", " ").split():
        token = token.lstrip("#")
        if token.isdigit():
            wanted.add(int(token))
    return [e for e in entries if e.number in wanted]


def select_prs(entries: list[PrIndex], auto_confirm: bool = False) -> list[PrIndex]:
    """Ask whether to keep every entry, otherwise prompt for PR numbers.

    Raises SelectionCancelled when nothing is selected.
    """
    if auto_confirm or not entries:
        return entries

    if click.confirm(f"Use all {len(entries)} PRs?", default=True):
        return entries

    for e in entries:
        console.print(f"  [bold]#{e.number}[/bold]  {e.owner}/{e.repo}  {e.title}")
    answer = click.prompt("\nEnter the PR numbers to keep (comma separated)", default="", show_default=False)
    selected = parse_selection(answer, entries)
    if not selected:
        raise SelectionCancelled("No PRs selected.")
    return selected
