"""
Unit tests for pricing calculations.

Tests catalogue parsing, cost accuracy, display name fallbacks and fetch
error handling.
"""

import httpx
import pytest

from opencode_wrapped.core.pricing import (
    ModelPricing,
    PricingResolver,
    PricingTable,
    calculate_message_cost,
    format_model_id_as_name,
    format_provider_id_as_name,
    parse_pricing_document,
)
from opencode_wrapped.core.token_counter import TokenUsage

CATALOGUE = {
    "anthropic": {
        "name": "Anthropic",
        "models": {
            "claude-sonnet-4": {
                "name": "Claude Sonnet 4",
                "cost": {"input": 3, "output": 15, "cache_read": 0.3, "cache_write": 3.75},
            },
            "claude-free": {"name": "Claude Free"},
            "broken": "not an object",
        },
    },
    "openai": {
        "name": "OpenAI",
        "models": {
            "gpt-4o": {"name": "GPT-4o", "cost": {"input": 2.5, "output": 10}},
        },
    },
    "bad-provider": ["unexpected"],
}


class TestTokenUsage:
    """Test TokenUsage dataclass."""

    def test_total_tokens_calculation(self):
        """Verify total_tokens is input plus output."""
        usage = TokenUsage(input=100, output=50, reasoning=7, cache_read=1000)
        assert usage.total_tokens == 150

    def test_zero_tokens(self):
        """Verify zero token handling."""
        assert TokenUsage().total_tokens == 0


class TestParsePricingDocument:
    """Test parsing of the models.dev document."""

    def test_models_and_providers(self):
        """Valid entries are indexed by id."""
        table = parse_pricing_document(CATALOGUE)

        assert set(table.models) == {"claude-sonnet-4", "claude-free", "gpt-4o"}
        assert table.providers == {"anthropic": "Anthropic", "openai": "OpenAI"}
        assert table.models["gpt-4o"].provider == "openai"

    def test_cost_rates(self):
        """Rates are read per million tokens, cache rates optional."""
        table = parse_pricing_document(CATALOGUE)

        sonnet = table.get_pricing("claude-sonnet-4")
        assert sonnet == ModelPricing(input=3.0, output=15.0, cache_read=0.3, cache_write=3.75)
        gpt = table.get_pricing("gpt-4o")
        assert gpt.cache_read is None
        assert gpt.cache_write is None

    def test_model_without_cost(self):
        """A model without a cost block has no pricing."""
        table = parse_pricing_document(CATALOGUE)
        assert table.get_pricing("claude-free") is None
        assert table.models["claude-free"].name == "Claude Free"

    def test_unknown_model(self):
        """Unknown models have no pricing."""
        assert parse_pricing_document(CATALOGUE).get_pricing("unknown-model") is None

    def test_non_finite_rates_ignored(self):
        """NaN or Infinity rates leave the model unpriced or the cache rate unset."""
        table = parse_pricing_document({
            "p": {
                "name": "P",
                "models": {
                    "nan-model": {"name": "Nan", "cost": {"input": float("nan"), "output": 1}},
                    "inf-cache": {"name": "Inf", "cost": {"input": 1, "output": 2, "cache_read": float("inf")}},
                },
            },
        })

        assert table.get_pricing("nan-model") is None
        assert table.get_pricing("inf-cache").cache_read is None

    def test_non_object_document(self):
        """Anything other than an object gives an empty table."""
        assert parse_pricing_document([1, 2, 3]) == PricingTable()


class TestCalculateMessageCost:
    """Test cost calculation accuracy."""

    def test_input_and_output(self):
        """Verify per-million arithmetic."""
        cost = calculate_message_cost(TokenUsage(input=100, output=50), ModelPricing(input=3, output=15))
        assert cost == pytest.approx(100 * 3 / 1e6 + 50 * 15 / 1e6)

    def test_cache_without_rates_is_free(self):
        """Cache tokens are ignored when the model has no cache rate."""
        tokens = TokenUsage(input=0, output=0, cache_read=5_000_000, cache_write=5_000_000)
        assert calculate_message_cost(tokens, ModelPricing(input=3, output=15)) == 0

    def test_cache_with_rates(self):
        """Cache tokens use their own rates."""
        tokens = TokenUsage(cache_read=2_000_000, cache_write=1_000_000)
        pricing = ModelPricing(input=3, output=15, cache_read=0.5, cache_write=4)
        assert calculate_message_cost(tokens, pricing) == pytest.approx(5.0)

    def test_reasoning_tokens_not_charged(self):
        """Reasoning tokens carry no separate charge."""
        tokens = TokenUsage(reasoning=1_000_000)
        assert calculate_message_cost(tokens, ModelPricing(input=3, output=15)) == 0


class TestDisplayNames:
    """Test id-to-name fallbacks."""

    def test_model_id_formatting(self):
        assert format_model_id_as_name("claude-sonnet-4") == "Claude Sonnet 4"
        assert format_model_id_as_name("gpt_4o-mini") == "Gpt 4o Mini"

    def test_provider_id_formatting(self):
        assert format_provider_id_as_name("openrouter") == "Openrouter"


class TestPricingResolver:
    """Test fetching and memoizing the catalogue."""

    def _client(self, handler):
        return httpx.Client(transport=httpx.MockTransport(handler))

    def test_fetches_once(self):
        """The catalogue is requested once and reused."""
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(200, json=CATALOGUE)

        resolver = PricingResolver(url="https://models.test/api.json", client=self._client(handler))

        assert resolver.get_display_name("gpt-4o") == "GPT-4o"
        assert resolver.get_model_provider("gpt-4o") == "openai"
        assert resolver.get_provider_display_name("anthropic") == "Anthropic"
        assert resolver.get_price_entry("claude-sonnet-4").output == 15.0
        assert len(calls) == 1

    def test_http_error_falls_back(self):
        """A failed request leaves an empty table."""
        resolver = PricingResolver(client=self._client(lambda request: httpx.Response(500)))

        assert resolver.get_price_entry("gpt-4o") is None
        assert resolver.get_display_name("gpt-4o") == "Gpt 4o"
        assert resolver.get_model_provider("gpt-4o") == "unknown"
        assert resolver.get_provider_display_name("openai") == "Openai"

    def test_invalid_json_falls_back(self):
        """An undecodable body leaves an empty table."""
        resolver = PricingResolver(client=self._client(lambda request: httpx.Response(200, content=b"<html>")))
        assert resolver.table == PricingTable()

    def test_connection_error_falls_back(self):
        """Transport errors are not raised to the caller."""
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        resolver = PricingResolver(client=self._client(handler))
        assert resolver.table.models == {}

    def test_prebuilt_table_skips_fetch(self):
        """A supplied table is used as is."""
        table = parse_pricing_document(CATALOGUE)

        def handler(request):
            raise AssertionError("should not fetch")

        resolver = PricingResolver(client=self._client(handler), table=table)
        assert resolver.get_display_name("claude-sonnet-4") == "Claude Sonnet 4"
