import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "data_dir": "data",
    "provider": "anthropic",  # "anthropic" | "openai"
    "model": None,  # None = provider default
    "state": "merged",  # search qualifier: is:<state>
    "max_pages": 20,
    "page_size": 50,
    "lang": None,  # output language for generated text; None = English
    "repos": [],  # default owner/name list for collect-index
}


def load_config(config_path: str = ".prism.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prism.yml in the current directory
      3. CLI argument overrides
    Credentials and PRISM_DATA_DIR always come from the environment.
    """
    config = {**DEFAULT_CONFIG, "repos": list(DEFAULT_CONFIG["repos"])}

    path = Path(config_path)
    if path.exists():
        with open(path, encoding="utf-8") as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_path} must contain a mapping, got {type(file_config).__name__}")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    data_dir = os.environ.get("PRISM_DATA_DIR")
    if data_dir:
        config["data_dir"] = data_dir

    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    return config


def parse_repo(slug: str) -> tuple[str, str]:
    """Split ``owner/name`` into a tuple, rejecting anything else."""
    owner, sep, name = slug.strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ValueError(f"Repository must be in owner/name format, got {slug!r}")
    return owner, name
