"""YAML configuration loader with environment variable overrides.

Configuration is layered, later layers winning:

  1. ``config/config.yaml`` -- static defaults checked into the repo
  2. ``.env`` file          -- local developer overrides
  3. Environment variables  -- set at deploy time

``load_config`` reads the YAML file and deep-merges the values resolved by
:class:`~nova.config.settings.Settings` on top.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from nova.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict[str, Any]:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    s = settings or Settings()
    env_overrides = {
        "app": {
            "host": s.app_host,
            "port": s.app_port,
            "env": s.app_env,
        },
        "market_data": {
            "primary_provider": s.primary_provider,
            "fallback_provider": s.fallback_provider,
            "timeout": s.provider_timeout,
        },
        "cache": {
            "capacity": s.cache_capacity,
            "default_ttl": s.cache_default_ttl,
            "prune_interval": s.cache_prune_interval,
            "ttl": {
                "price": s.price_ttl,
                "market_data": s.market_data_ttl,
                "historical": s.historical_ttl,
            },
        },
        "logging": {
            "level": s.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
