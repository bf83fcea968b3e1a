"""Configuration loading utilities."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from pydantic import ValidationError

from ..constants import DEFAULT_CONF_FILE
from ..errors.internal import ConfigError
from .model import ApiConfig

# Environment variables that override file values
_ENV_OVERRIDES = {
    "TOKENRELAY_BASE_API_URL": "base_api_url",
    "TOKENRELAY_MODE": "mode",
    "TOKENRELAY_API_PATH": "api_path",
    "TOKENRELAY_CREDENTIAL_FILE": "credential_file",
}


class ConfigLoader:
    """Handles loading the client configuration from a file and the environment."""

    def resolve_path(self, path: str | os.PathLike[str] | None = None) -> str:
        if path is not None:
            return str(path)
        return os.environ.get("TOKENRELAY_CONF_FILE", DEFAULT_CONF_FILE)

    def load_raw(self, path: str) -> dict[str, Any]:
        """Load the raw configuration mapping from ``path``.

        Args:
            path: Path to the JSON configuration file.

        Returns:
            The decoded mapping, or an empty dict when the file does not exist.

        Raises:
            ConfigError: If the file cannot be read or is not a JSON object.
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logging.debug(f"📁 No configuration file at {path}, using defaults")
            return {}
        except (OSError, ValueError) as e:
            raise ConfigError(
                f"Configuration load error: {type(e).__name__}: {e}", data={"path": path}
            ) from e
        if not isinstance(data, dict):
            raise ConfigError("Configuration file must contain a JSON object", data={"path": path})
        return data

    def apply_env_overrides(self, raw: dict[str, Any]) -> dict[str, Any]:
        merged = dict(raw)
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                merged[field_name] = value
        return merged

    def load(self, path: str | os.PathLike[str] | None = None) -> ApiConfig:
        """Load and validate the configuration.

        Raises:
            ConfigError: If the file is unreadable or values fail validation.
        """
        resolved = self.resolve_path(path)
        raw = self.apply_env_overrides(self.load_raw(resolved))
        try:
            config = ApiConfig.from_dict(raw)
        except ValidationError as e:
            raise ConfigError(
                f"Invalid configuration in {resolved}: {e.error_count()} error(s)",
                data={"path": resolved, "errors": e.errors(include_url=False)},
            ) from e
        logging.debug(f"✅ Configuration loaded mode={config.mode} path={resolved}")
        return config
