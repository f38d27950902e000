"""CLI entry point for prism.

Commands:
  collect-index        — search PRs by author across repositories, write the index
  collect-detail       — fetch body/commits/files/reviews for every indexed PR
  collect-diff         — fetch the unified diff for every indexed PR
  generate-facts       — one LLM fact card per PR
  generate-narratives  — STAR/CARE narratives from the fact cards
  run-all              — all of the above, in order
  status               — per-repository progress through the pipeline
"""

from __future__ import annotations

import logging

import click
from rich.console import Console

from prism_cli.commands.collect import collect_detail_cmd, collect_diff_cmd, collect_index_cmd
from prism_cli.commands.generate import generate_facts_cmd, generate_narratives_cmd
from prism_cli.commands.run_all import run_all_cmd
from prism_cli.commands.status import status_cmd

console = Console()


def build_provider(config: dict):
    """Instantiate the configured LLM provider from .prism.yml settings.

      provider: anthropic → AnthropicProvider (requires ANTHROPIC_API_KEY)
      provider: openai    → OpenAIProvider    (requires OPENAI_API_KEY)

    ``model`` overrides the provider's default model when set.
    """
    provider = config.get("provider", "anthropic")
    model = config.get("model")

    if provider == "anthropic":
        if not config.get("anthropic_api_key"):
            raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set.")
        from prism_core.providers.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=config["anthropic_api_key"], model=model)

    if provider == "openai":
        if not config.get("openai_api_key"):
            raise click.UsageError("OPENAI_API_KEY environment variable is not set.")
        from prism_core.providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=config["openai_api_key"], model=model)

    raise click.UsageError(f"Unknown provider: {provider!r}. Choose 'anthropic' or 'openai'.")


def _build_store(config: dict):
    from prism_store.file import FileStore

    return FileStore(config["data_dir"])


@click.group()
@click.version_option(package_name="prism", prog_name="prism")
@click.option(
    "--config",
    "config_path",
    default=".prism.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRISM_CONFIG",
)
@click.option("--data-dir", default=None, help="Directory for collected data. Overrides config file.")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, data_dir: str | None, verbose: bool):
    """GitHub PR data collector and STAR/CARE narrative generator."""
    from prism_cli.auth import resolve_github_token
    from prism_core.config import load_config

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path, cli_overrides={"data_dir": data_dir})
    except (OSError, ValueError) as e:
        raise click.UsageError(f"Could not load {config_path}: {e}")

    store = _build_store(config)
    ctx.obj["config"] = config
    ctx.obj["store"] = store
    ctx.obj["token"] = resolve_github_token(config)
    ctx.call_on_close(store.close)


main.add_command(collect_index_cmd)
main.add_command(collect_detail_cmd)
main.add_command(collect_diff_cmd)
main.add_command(generate_facts_cmd)
main.add_command(generate_narratives_cmd)
main.add_command(run_all_cmd)
main.add_command(status_cmd)
