"""Tests for model id helpers and provider construction."""

import pytest
from pydantic import SecretStr

from bubble.llm.gemini import GeminiProvider
from bubble.llm.models import friendly_model_name, is_native_model, supports_thinking
from bubble.llm.openrouter import OpenRouterProvider
from bubble.llm.registry import ProviderFactory


class TestIsNativeModel:
    @pytest.mark.parametrize(
        "model_id",
        ["gemini-2.5-flash", "gemini-3-pro-preview", "veo-3", "google/gemma-3-27b-it", ""],
    )
    def test_native(self, model_id):
        assert is_native_model(model_id)

    @pytest.mark.parametrize(
        "model_id",
        ["openai/gpt-4o-mini", "anthropic/claude-sonnet-4", "meta-llama/llama-3-70b"],
    )
    def test_aggregated(self, model_id):
        assert not is_native_model(model_id)


class TestSupportsThinking:
    def test_thinking_models(self):
        assert supports_thinking("gemini-2.5-pro")
        assert supports_thinking("gemini-3-pro-preview")

    def test_older_and_foreign_models(self):
        assert not supports_thinking("gemini-2.0-flash")
        assert not supports_thinking("openai/o3")
        assert not supports_thinking(None)

    def test_custom_markers(self):
        assert supports_thinking("gemini-2.0-flash-thinking", ("thinking",))


class TestFriendlyModelName:
    def test_strips_vendor_and_title_cases(self):
        assert friendly_model_name("openai/gpt-4o-mini") == "Gpt 4o Mini"

    def test_native_id(self):
        assert friendly_model_name("gemini-2.5-flash") == "Gemini 2.5 Flash"

    def test_underscores(self):
        assert friendly_model_name("nano_banana") == "Nano Banana"


class TestProviderFactory:
    def test_native(self):
        provider = ProviderFactory().native(SecretStr("AIza-test"))
        assert isinstance(provider, GeminiProvider)

    def test_aggregator(self):
        provider = ProviderFactory().aggregator("sk-or-test")
        assert isinstance(provider, OpenRouterProvider)

    def test_aggregator_requires_key(self):
        with pytest.raises(ValueError, match="requires an API key"):
            ProviderFactory().aggregator("")
