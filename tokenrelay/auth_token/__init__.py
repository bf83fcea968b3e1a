"""Credential storage, renewal and single-flight coordination."""

from .coordinator import CoordinatorState, Renewer, SingleFlightCoordinator
from .hook_manager import HookManager
from .renewal import RenewalExecutor, RenewalResult
from .store import (
    CredentialKind,
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
    TieredCredentialStore,
)

__all__ = [
    "CoordinatorState",
    "CredentialKind",
    "CredentialStore",
    "FileCredentialStore",
    "HookManager",
    "MemoryCredentialStore",
    "RenewalExecutor",
    "RenewalResult",
    "Renewer",
    "SingleFlightCoordinator",
    "TieredCredentialStore",
]
