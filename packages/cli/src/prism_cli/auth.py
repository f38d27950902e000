"""GitHub token resolution with gh CLI fallback.

Resolution order (stops at first success):
  1. ``github_token`` already in the loaded config (from GITHUB_TOKEN)
  2. `gh auth token` (GitHub CLI session — works after `gh auth login`)
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)


def _token_from_gh_cli() -> str | None:
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("gh CLI unavailable; no fallback token.")
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def resolve_github_token(config: dict | None = None) -> str | None:
    """Return a GitHub token or None if no source is available. Never raises."""
    token = (config or {}).get("github_token")
    if token:
        return token
    token = _token_from_gh_cli()
    if token:
        logger.debug("Resolved GitHub token via gh CLI session.")
    return token
