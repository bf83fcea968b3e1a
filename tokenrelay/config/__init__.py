"""Configuration package exports."""

from .core import build_credential_store, load_config
from .loader import ConfigLoader
from .model import ApiConfig, create_base_url

__all__ = [
    "ApiConfig",
    "ConfigLoader",
    "build_credential_store",
    "create_base_url",
    "load_config",
]
