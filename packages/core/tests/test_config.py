"""Tests for configuration loading."""

import pytest

from prism_core.config import load_config, parse_repo


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("GITHUB_TOKEN", "ANTHROPIC_API_KEY", "OPENAI_API_KEY", "PRISM_DATA_DIR"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["data_dir"] == "data"
    assert config["provider"] == "anthropic"
    assert config["model"] is None
    assert config["state"] == "merged"
    assert config["max_pages"] == 20
    assert config["repos"] == []


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".prism.yml"
    cfg.write_text("provider: openai\nmax_pages: 5\nrepos:\n  - acme/api\n  - acme/web\n")
    config = load_config(config_path=str(cfg))
    assert config["provider"] == "openai"
    assert config["max_pages"] == 5
    assert config["repos"] == ["acme/api", "acme/web"]


def test_empty_config_file(tmp_path):
    cfg = tmp_path / ".prism.yml"
    cfg.write_text("")
    assert load_config(config_path=str(cfg))["provider"] == "anthropic"


def test_non_mapping_config_file_raises(tmp_path):
    cfg = tmp_path / ".prism.yml"
    cfg.write_text("- just\n- a list\n")
    with pytest.raises(ValueError, match="mapping"):
        load_config(config_path=str(cfg))


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".prism.yml"
    cfg.write_text("data_dir: from-file\n")
    config = load_config(config_path=str(cfg), cli_overrides={"data_dir": "from-cli"})
    assert config["data_dir"] == "from-cli"


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".prism.yml"
    cfg.write_text("data_dir: from-file\n")
    config = load_config(config_path=str(cfg), cli_overrides={"data_dir": None})
    assert config["data_dir"] == "from-file"


def test_data_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("PRISM_DATA_DIR", "/srv/prism")
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"), cli_overrides={"data_dir": "cli"})
    assert config["data_dir"] == "/srv/prism"


def test_defaults_not_shared_between_calls(tmp_path):
    first = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    first["repos"].append("acme/api")
    assert load_config(config_path=str(tmp_path / "nonexistent.yml"))["repos"] == []


def test_env_vars_loaded(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "gh-token")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    monkeypatch.setenv("OPENAI_API_KEY", "oai-key")
    config = load_config(config_path="nonexistent.yml")
    assert config["github_token"] == "gh-token"
    assert config["anthropic_api_key"] == "ant-key"
    assert config["openai_api_key"] == "oai-key"


def test_missing_env_vars_are_none():
    config = load_config(config_path="nonexistent.yml")
    assert config["github_token"] is None
    assert config["anthropic_api_key"] is None


class TestParseRepo:
    def test_valid(self):
        assert parse_repo("acme/api") == ("acme", "api")

    def test_strips_whitespace(self):
        assert parse_repo("  acme/api ") == ("acme", "api")

    @pytest.mark.parametrize("slug", ["acme", "/api", "acme/", "acme/api/extra", ""])
    def test_invalid(self, slug):
        with pytest.raises(ValueError, match="owner/name"):
            parse_repo(slug)
