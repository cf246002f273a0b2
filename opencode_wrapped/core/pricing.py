"""
Pricing calculations and rate management.

Model prices and display names come from the models.dev catalogue, fetched
once per resolver and kept in memory for the rest of the run.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from .token_counter import TokenUsage

MODELS_DEV_URL = "https://models.dev/api.json"
DEFAULT_TIMEOUT = 5.0
MILLION = 1_000_000
UNKNOWN_PROVIDER = "unknown"


@dataclass(frozen=True)
class ModelPricing:
    """Cost per million tokens for a specific model."""
    input: float
    output: float
    cache_read: Optional[float] = None
    cache_write: Optional[float] = None


@dataclass(frozen=True)
class ModelInfo:
    """Catalogue entry for a model."""
    id: str
    name: str
    provider: str
    pricing: Optional[ModelPricing] = None


@dataclass(frozen=True)
class PricingTable:
    """Models and providers known to the catalogue."""
    models: Dict[str, ModelInfo] = field(default_factory=dict)
    providers: Dict[str, str] = field(default_factory=dict)

    def get_pricing(self, model: str) -> Optional[ModelPricing]:
        """Get pricing for a specific model.

        Args:
            model: Model identifier

        Returns:
            ModelPricing for the model, or None when the cost is unknown
        """
        info = self.models.get(model)
        return info.pricing if info else None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _parse_cost(cost: Any) -> Optional[ModelPricing]:
    if not isinstance(cost, dict):
        return None
    if not (_is_number(cost.get("input")) and _is_number(cost.get("output"))):
        return None

    cache_read = cost.get("cache_read")
    cache_write = cost.get("cache_write")
    return ModelPricing(
        input=float(cost["input"]),
        output=float(cost["output"]),
        cache_read=float(cache_read) if _is_number(cache_read) else None,
        cache_write=float(cache_write) if _is_number(cache_write) else None,
    )


def parse_pricing_document(data: Any) -> PricingTable:
    """Build a PricingTable from the models.dev JSON document.

    The document maps provider id to ``{name, models: {model id -> {name, cost}}}``.
    Entries with an unexpected shape are ignored. When several providers
    list the same model id, the last one wins.

    Args:
        data: Decoded JSON document

    Returns:
        PricingTable (empty if ``data`` is not an object)
    """
    models: Dict[str, ModelInfo] = {}
    providers: Dict[str, str] = {}

    if not isinstance(data, dict):
        return PricingTable()

    for provider_id, provider_data in data.items():
        if not isinstance(provider_data, dict):
            continue

        name = provider_data.get("name")
        if isinstance(name, str) and name:
            providers[provider_id] = name

        provider_models = provider_data.get("models")
        if not isinstance(provider_models, dict):
            continue

        for model_id, model_data in provider_models.items():
            if not isinstance(model_data, dict):
                continue
            model_name = model_data.get("name")
            if not isinstance(model_name, str) or not model_name:
                continue
            models[model_id] = ModelInfo(
                id=model_id,
                name=model_name,
                provider=provider_id,
                pricing=_parse_cost(model_data.get("cost")),
            )

    return PricingTable(models=models, providers=providers)


def format_model_id_as_name(model_id: str) -> str:
    """Turn ``claude-sonnet-4`` into ``Claude Sonnet 4``."""
    parts = re.split(r"[-_]", model_id)
    return " ".join(part if part[:1].isdigit() else part[:1].upper() + part[1:] for part in parts)


def format_provider_id_as_name(provider_id: str) -> str:
    return provider_id[:1].upper() + provider_id[1:]


class PricingResolver:
    """Lazy, memoized access to the model catalogue.

    The catalogue is fetched on first use. Network and decoding failures
    leave the resolver with an empty table, so estimated costs fall to zero
    and display names use the formatted ids.
    """

    def __init__(
        self,
        url: str = MODELS_DEV_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
        table: Optional[PricingTable] = None,
    ):
        """Initialize the resolver.

        Args:
            url: Catalogue URL
            timeout: Request timeout in seconds
            client: Optional httpx client (a short-lived one is created otherwise)
            table: Pre-built table; when given, nothing is fetched
        """
        self.url = url
        self.timeout = timeout
        self._client = client
        self._table = table

    @property
    def table(self) -> PricingTable:
        if self._table is None:
            self._table = self._fetch()
        return self._table

    def _fetch(self) -> PricingTable:
        try:
            if self._client is not None:
                response = self._client.get(self.url, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                    response = client.get(self.url)
            response.raise_for_status()
            table = parse_pricing_document(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to fetch models.dev data, using fallbacks: {}", e)
            return PricingTable()

        logger.debug("Loaded {} models from {}", len(table.models), self.url)
        return table

    def get_price_entry(self, model_id: str) -> Optional[ModelPricing]:
        return self.table.get_pricing(model_id)

    def get_display_name(self, model_id: str) -> str:
        info = self.table.models.get(model_id)
        if info:
            return info.name
        return format_model_id_as_name(model_id)

    def get_model_provider(self, model_id: str) -> str:
        info = self.table.models.get(model_id)
        return info.provider if info else UNKNOWN_PROVIDER

    def get_provider_display_name(self, provider_id: str) -> str:
        name = self.table.providers.get(provider_id)
        if name:
            return name
        return format_provider_id_as_name(provider_id)


def calculate_message_cost(tokens: TokenUsage, pricing: ModelPricing) -> float:
    """Estimate the cost of one message from per-million rates.

    Cache reads and writes are only charged when the model has a rate for
    them.

    Args:
        tokens: Token breakdown of the message
        pricing: Rates for the message's model

    Returns:
        Cost in dollars (unrounded)
    """
    cost = tokens.input * pricing.input / MILLION
    cost += tokens.output * pricing.output / MILLION

    if pricing.cache_read is not None:
        cost += tokens.cache_read * pricing.cache_read / MILLION
    if pricing.cache_write is not None:
        cost += tokens.cache_write * pricing.cache_write / MILLION

    return cost
