"""generate-* commands — LLM stages over the collected data."""

from __future__ import annotations

import click

from prism_cli.stages import run_generate_facts, run_generate_narratives

_LANG_HELP = "Output language (e.g. English, Korean, Japanese). Overrides config file."


@click.command("generate-facts")
@click.option("--lang", default=None, help=_LANG_HELP)
@click.pass_context
def generate_facts_cmd(ctx, lang: str | None):
    """Generate a fact card per collected PR using the configured LLM.

    PRs that already have a fact card are skipped.
    """
    from prism_cli.cli import build_provider

    provider = build_provider(ctx.obj["config"])
    run_generate_facts(ctx.obj, provider, lang or ctx.obj["config"].get("lang"))


@click.command("generate-narratives")
@click.option("--lang", default=None, help=_LANG_HELP)
@click.pass_context
def generate_narratives_cmd(ctx, lang: str | None):
    """Generate STAR and CARE narratives from every fact card."""
    from prism_cli.cli import build_provider

    provider = build_provider(ctx.obj["config"])
    run_generate_narratives(ctx.obj, provider, lang or ctx.obj["config"].get("lang"))
