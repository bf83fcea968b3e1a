"""
Configuration constants for the tokenrelay client

This module contains the tunable defaults used throughout the package.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Backend location defaults
DEFAULT_BASE_API_URL = os.getenv("TOKENRELAY_DEFAULT_BASE_API_URL", "http://localhost:4000")
DEFAULT_API_PATH = "/api/v1"
DEFAULT_REFRESH_PATH = "/auth/refresh-token"
DEV_PORT = _get_env_int("DEV_PORT", 4000)  # Local backend port used in development mode

# Timeouts (seconds)
REQUEST_TIMEOUT_SECONDS = _get_env_float("TOKENRELAY_REQUEST_TIMEOUT_SECONDS", 30.0)
RENEWAL_TIMEOUT_SECONDS = _get_env_float("TOKENRELAY_RENEWAL_TIMEOUT_SECONDS", 30.0)

# Credential names (storage keys and the refresh cookie the backend expects)
ACCESS_TOKEN_KEY = "access-token"
REFRESH_TOKEN_KEY = "refresh-token"
REFRESH_COOKIE_NAME = "refresh_token"

# Authorization failure detection
AUTH_FAILURE_STATUSES = (401,)
DEFAULT_AUTH_SCHEME = "Bearer"

# Number of trailing characters of a token shown in logs
TOKEN_LOG_SUFFIX_CHARS = _get_env_int("TOKEN_LOG_SUFFIX_CHARS", 4)

# Config file location
DEFAULT_CONF_FILE = "tokenrelay.conf"
