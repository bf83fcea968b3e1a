"""Authenticated API client.

Owns one credential store, one single-flight coordinator and one request
pipeline per configuration. Nothing here is process-global: two clients
never share renewal state.
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from .api.pipeline import Request, RequestPipeline, Response, Transport
from .api.service import BaseApiService
from .api.transport import AiohttpTransport
from .auth_token.coordinator import Renewer, SingleFlightCoordinator
from .auth_token.hook_manager import HookManager
from .auth_token.renewal import RenewalExecutor
from .auth_token.store import CredentialKind, CredentialStore
from .config import ApiConfig, build_credential_store, create_base_url
from .logging_config import register_auth_scheme
from .utils import mask_token


class AuthenticatedClient:
    """Client issuing authenticated requests with transparent credential renewal.

    Usage::

        async with AuthenticatedClient(config) as client:
            client.login(access_token, refresh_token)
            response = await client.request("GET", "/users/me")
    """

    def __init__(
        self,
        config: ApiConfig | None = None,
        *,
        store: CredentialStore | None = None,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        executor: Renewer | None = None,
        hooks: HookManager | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration; defaults to ``ApiConfig()``.
            store: Credential store; built from ``config`` when omitted.
            session: aiohttp session to borrow; one is created (and owned)
                on first use when needed and omitted.
            transport: Transport override (tests, custom stacks).
            executor: Renewal executor override.
            hooks: Hook manager shared with the coordinator.
        """
        self.config = config or ApiConfig()
        self.base_url = create_base_url(self.config)
        register_auth_scheme(self.config.auth_scheme)
        self.store = store if store is not None else build_credential_store(self.config)
        self.hooks = hooks or HookManager()
        self._session = session
        self._owns_session = False
        self._transport = transport
        self._executor = executor
        self._pipeline: RequestPipeline | None = None
        self.api = BaseApiService(self)

    # ---- lifecycle ----
    async def __aenter__(self) -> AuthenticatedClient:
        self._ensure_pipeline()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel any in-flight renewal and close an owned session."""
        if self._pipeline is not None:
            await self._pipeline.coordinator.aclose()
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            logging.debug("Closed owned HTTP session")

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
            logging.debug("Created new HTTP session")
        return self._session

    def _ensure_pipeline(self) -> RequestPipeline:
        if self._pipeline is not None:
            return self._pipeline
        transport = self._transport or AiohttpTransport(
            self._ensure_session(),
            self.base_url,
            timeout=self.config.request_timeout,
            default_headers=self.config.default_headers,
        )
        executor = self._executor or RenewalExecutor(
            self._ensure_session(),
            self.base_url,
            refresh_path=self.config.refresh_path,
            refresh_cookie=self.config.refresh_cookie,
            refresh_header=self.config.refresh_header,
            timeout=self.config.renewal_timeout,
        )
        coordinator = SingleFlightCoordinator(executor, self.store, self.hooks)
        self._pipeline = RequestPipeline(
            transport,
            self.store,
            coordinator,
            auth_scheme=self.config.auth_scheme,
            auth_failure_statuses=self.config.auth_failure_statuses,
        )
        return self._pipeline

    @property
    def pipeline(self) -> RequestPipeline:
        return self._ensure_pipeline()

    @property
    def coordinator(self) -> SingleFlightCoordinator:
        return self._ensure_pipeline().coordinator

    # ---- credentials ----
    def login(self, access_token: str, refresh_token: str | None = None) -> None:
        """Store the credentials obtained at login."""
        self.store.set(CredentialKind.ACCESS, access_token)
        if refresh_token:
            self.store.set(CredentialKind.REFRESH, refresh_token)
        logging.info(f"🔐 Logged in access={mask_token(access_token)}")

    def logout(self) -> None:
        self.store.clear_all()
        logging.info("🚪 Logged out, credentials cleared")

    @property
    def is_authenticated(self) -> bool:
        return self.store.get(CredentialKind.ACCESS) is not None

    # ---- requests ----
    async def send(self, request: Request) -> Response:
        """Send a request through the authenticated pipeline.

        Raises:
            AuthenticationExpired: Credential renewal failed.
            TransportFailure: The request could not be completed.
        """
        return await self._ensure_pipeline().send(request)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
        data: bytes | str | None = None,
    ) -> Response:
        return await self.send(
            Request(
                method.upper(),
                path,
                headers=dict(headers or {}),
                params=params,
                json_body=json,
                data=data,
            )
        )
