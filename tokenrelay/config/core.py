"""Procedural configuration API."""

from __future__ import annotations

import logging
import os

from ..auth_token.store import (
    CredentialKind,
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
    TieredCredentialStore,
)
from .loader import ConfigLoader
from .model import ApiConfig


def load_config(path: str | os.PathLike[str] | None = None) -> ApiConfig:
    """Load the client configuration.

    Args:
        path: Optional config file path; defaults to ``TOKENRELAY_CONF_FILE``
            or ``tokenrelay.conf``.

    Returns:
        Validated ApiConfig.

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    return ConfigLoader().load(path)


def build_credential_store(config: ApiConfig) -> CredentialStore:
    """Build the credential store described by ``config``.

    Each credential kind is routed to a session-scoped (memory) or durable
    (file) backend according to its persistence setting. Durable persistence
    without ``credential_file`` falls back to memory.
    """
    session = MemoryCredentialStore()
    durable: CredentialStore
    if config.credential_file:
        durable = FileCredentialStore(config.credential_file)
    else:
        if "durable" in (config.access_persistence, config.refresh_persistence):
            logging.warning(
                "⚠️ Durable credential persistence requested without credential_file; "
                "credentials will not survive restart"
            )
        durable = session
    routes = {
        CredentialKind.ACCESS: durable if config.access_persistence == "durable" else session,
        CredentialKind.REFRESH: durable if config.refresh_persistence == "durable" else session,
    }
    return TieredCredentialStore(routes)
