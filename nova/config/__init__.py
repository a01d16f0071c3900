"""Configuration package: environment settings and the YAML loader."""

from nova.config.loader import load_config
from nova.config.settings import Settings

__all__ = ["Settings", "load_config"]
