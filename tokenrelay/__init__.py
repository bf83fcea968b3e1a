"""Authenticated HTTP client with single-flight credential renewal."""

from .api import BaseApiService, Request, RequestPipeline, Response
from .auth_token import (
    CoordinatorState,
    CredentialKind,
    MemoryCredentialStore,
    RenewalExecutor,
    SingleFlightCoordinator,
)
from .client import AuthenticatedClient
from .config import ApiConfig, load_config
from .errors import (
    AuthenticationExpired,
    OtherHttpError,
    RenewalRejected,
    RenewalUnreachable,
    TransportFailure,
)

__all__ = [
    "ApiConfig",
    "AuthenticatedClient",
    "AuthenticationExpired",
    "BaseApiService",
    "CoordinatorState",
    "CredentialKind",
    "MemoryCredentialStore",
    "OtherHttpError",
    "RenewalExecutor",
    "RenewalRejected",
    "RenewalUnreachable",
    "Request",
    "RequestPipeline",
    "Response",
    "SingleFlightCoordinator",
    "TransportFailure",
    "load_config",
]
