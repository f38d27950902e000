"""Tests for LLM provider implementations.

Shared behaviour (_parse, _call_with_retry) lives in BaseProvider and is
tested once via a lightweight stub. Provider-specific tests cover only what
differs between implementations: the SDK client setup and _call_api.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from prism_core.errors import ProviderError
from prism_core.providers.anthropic import AnthropicProvider
from prism_core.providers.base import BaseProvider
from prism_core.providers.openai import OpenAIProvider

VALID_JSON = json.dumps({"summary": "Adds caching", "changes": ["cache layer"]})


class _StubProvider(BaseProvider):
    MODEL = "stub-1"

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        return VALID_JSON


# ---------------------------------------------------------------------------
# Shared behaviour, tested once through the stub
# ---------------------------------------------------------------------------


class TestBaseProviderParse:
    def test_parses_valid_json(self):
        assert _StubProvider()._parse(VALID_JSON)["summary"] == "Adds caching"

    def test_strips_markdown_code_fences(self):
        raw = f"```json\n{VALID_JSON}\n```"
        assert _StubProvider()._parse(raw)["changes"] == ["cache layer"]

    def test_preserves_code_blocks_inside_values(self):
        payload = json.dumps({"summary": "Use this:\n```python\nfoo()\n```"})
        result = _StubProvider()._parse(f"```json\n{payload}\n```")
        assert "```python" in result["summary"]

    def test_invalid_json_raises(self):
        with pytest.raises(ProviderError, match="invalid JSON"):
            _StubProvider()._parse("not json at all")

    def test_empty_response_raises(self):
        with pytest.raises(ProviderError):
            _StubProvider()._parse(None)


class TestBaseProviderModel:
    def test_default_model(self):
        assert _StubProvider().model == "stub-1"

    def test_model_override(self):
        assert _StubProvider(model="stub-2").model == "stub-2"


class TestBaseProviderRetry:
    def test_raises_after_max_retries(self):
        calls = []

        class _AlwaysFail(BaseProvider):
            def _call_api(self, system_prompt: str, user_prompt: str) -> str:
                calls.append(1)
                raise RuntimeError("network error")

        with patch("prism_core.providers.base.time.sleep") as sleep:
            with pytest.raises(ProviderError, match="after 3 attempts"):
                _AlwaysFail().complete_json("sys", "user")
        assert len(calls) == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1, 2]

    def test_retries_on_transient_failure(self):
        call_count = 0

        class _FailOnceThenSucceed(BaseProvider):
            def _call_api(self, system_prompt: str, user_prompt: str) -> str:
                nonlocal call_count
                call_count += 1
                if call_count == 1:
                    raise RuntimeError("transient")
                return VALID_JSON

        with patch("prism_core.providers.base.time.sleep"):
            result = _FailOnceThenSucceed().complete_json("sys", "user")
        assert result["summary"] == "Adds caching"
        assert call_count == 2


# ---------------------------------------------------------------------------
# Provider-specific: what differs between Anthropic and OpenAI
# ---------------------------------------------------------------------------


class TestAnthropicProvider:
    def test_raises_import_error_without_sdk(self):
        with patch.dict("sys.modules", {"anthropic": None}):
            with pytest.raises(ImportError, match="prism\\[anthropic\\]"):
                AnthropicProvider(api_key="key")

    def test_model_is_claude(self):
        assert "claude" in AnthropicProvider.MODEL

    def test_temperature_is_set(self):
        assert AnthropicProvider.TEMPERATURE == 0.3

    def test_call_api_joins_text_blocks(self):
        pytest.importorskip("anthropic")
        from anthropic.types import TextBlock

        provider = AnthropicProvider(api_key="key")
        provider.client = MagicMock()
        provider.client.messages.create.return_value.content = [
            TextBlock(type="text", text='{"a": '),
            TextBlock(type="text", text="1}"),
        ]

        assert provider.complete_json("sys", "user") == {"a": 1}
        kwargs = provider.client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["max_tokens"] == AnthropicProvider.MAX_TOKENS


class TestOpenAIProvider:
    def test_raises_import_error_without_sdk(self):
        import prism_core.providers.openai as openai_mod

        with patch.object(openai_mod, "_OpenAI", None):
            with pytest.raises(ImportError, match="prism\\[openai\\]"):
                OpenAIProvider(api_key="key")

    def test_model_is_gpt(self):
        assert "gpt" in OpenAIProvider.MODEL

    def test_temperature_is_set(self):
        assert OpenAIProvider.TEMPERATURE == 0.2

    def test_call_api_requests_json_object(self):
        import prism_core.providers.openai as openai_mod

        with patch.object(openai_mod, "_OpenAI", MagicMock()):
            provider = OpenAIProvider(api_key="key", model="gpt-4o-mini")
        provider.client.chat.completions.create.return_value.choices = [MagicMock()]
        provider.client.chat.completions.create.return_value.choices[0].message.content = VALID_JSON

        assert provider.complete_json("sys", "user")["summary"] == "Adds caching"
        kwargs = provider.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"] == {"type": "json_object"}
