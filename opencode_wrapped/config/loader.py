"""
Configuration management and loading.

Handles application settings read from a YAML file and environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from opencode_wrapped.core.pricing import DEFAULT_TIMEOUT, MODELS_DEV_URL
from opencode_wrapped.core.stats import FIRST_PARTY_PROVIDER
from opencode_wrapped.storage.repository import DEFAULT_MAX_WORKERS, default_storage_path

CONFIG_ENV_VAR = "OPENCODE_WRAPPED_CONFIG"


def default_config_path() -> Path:
    """``$XDG_CONFIG_HOME/opencode-wrapped/config.yaml`` (``~/.config`` by default)."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "opencode-wrapped" / "config.yaml"


@dataclass(frozen=True)
class WrappedConfig:
    """Settings for a wrapped run."""
    storage_path: Path
    output_dir: Path
    pricing_url: str = MODELS_DEV_URL
    pricing_timeout: float = DEFAULT_TIMEOUT
    first_party_provider: str = FIRST_PARTY_PROVIDER
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self):
        """Validate numeric limits and identifiers."""
        if self.pricing_timeout <= 0:
            raise ValueError("pricing_timeout must be > 0")
        if self.max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        if not self.first_party_provider:
            raise ValueError("first_party_provider cannot be empty")
        if not self.pricing_url:
            raise ValueError("pricing_url cannot be empty")


def default_config() -> WrappedConfig:
    return WrappedConfig(storage_path=default_storage_path(), output_dir=Path.home())


ALLOWED_KEYS = {
    'storage_path',
    'output_dir',
    'pricing_url',
    'pricing_timeout',
    'first_party_provider',
    'max_workers',
}


def load_config(path: Optional[str] = None) -> WrappedConfig:
    """Load and validate configuration from a YAML file.

    Lookup order: ``path``, then ``$OPENCODE_WRAPPED_CONFIG``, then the
    default location. Only an explicitly named file has to exist; without
    one the defaults are returned.

    Args:
        path: Optional path to a YAML configuration file

    Returns:
        Validated WrappedConfig object

    Raises:
        FileNotFoundError: If an explicitly named config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    explicit = path or os.environ.get(CONFIG_ENV_VAR)
    config_path = Path(explicit).expanduser() if explicit else default_config_path()

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return default_config()

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {config_path}: {e}")

    if not raw_config:
        return default_config()

    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    return parse_config(raw_config)


def parse_config(raw_config: Dict[str, Any]) -> WrappedConfig:
    """Validate a decoded configuration mapping.

    Args:
        raw_config: Mapping read from YAML

    Returns:
        Validated WrappedConfig

    Raises:
        ValueError: If keys are unknown or values have the wrong type
    """
    unknown_keys = set(raw_config.keys()) - ALLOWED_KEYS
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    defaults = default_config()

    storage_path = _parse_path(raw_config, 'storage_path', defaults.storage_path)
    output_dir = _parse_path(raw_config, 'output_dir', defaults.output_dir)

    pricing_url = raw_config.get('pricing_url', defaults.pricing_url)
    if not isinstance(pricing_url, str):
        raise ValueError("'pricing_url' must be a string")

    pricing_timeout = raw_config.get('pricing_timeout', defaults.pricing_timeout)
    if not isinstance(pricing_timeout, (int, float)) or isinstance(pricing_timeout, bool):
        raise ValueError("'pricing_timeout' must be a number")

    provider = raw_config.get('first_party_provider', defaults.first_party_provider)
    if not isinstance(provider, str):
        raise ValueError("'first_party_provider' must be a string")

    max_workers = raw_config.get('max_workers', defaults.max_workers)
    if not isinstance(max_workers, int) or isinstance(max_workers, bool):
        raise ValueError("'max_workers' must be an integer")

    return WrappedConfig(
        storage_path=storage_path,
        output_dir=output_dir,
        pricing_url=pricing_url,
        pricing_timeout=float(pricing_timeout),
        first_party_provider=provider,
        max_workers=max_workers,
    )


def _parse_path(data: Dict[str, Any], key: str, default: Path) -> Path:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str) or not value:
        raise ValueError(f"'{key}' must be a non-empty string")
    return Path(value).expanduser()
