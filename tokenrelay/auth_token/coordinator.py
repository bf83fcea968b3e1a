"""Single-flight coordination of credential renewal.

Any number of requests may fail authorization at the same time. The first
one starts a renewal; everyone arriving while it runs joins it. When the
renewal finishes, the coordinator goes back to IDLE, empties its queue and
releases every waiter with the same outcome, all in one step.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from enum import Enum
from typing import Protocol

from ..errors.handling import log_error
from ..errors.internal import AuthenticationExpired, RenewalError, RenewalRejected
from ..utils import mask_token
from .hook_manager import HookManager
from .renewal import RenewalResult
from .store import CredentialKind, CredentialStore


class CoordinatorState(Enum):
    """Renewal state of a coordinator.

    Attributes:
        IDLE: No renewal in flight; the next authorization failure starts one.
        RENEWING: A renewal is in flight; authorization failures join it.
    """

    IDLE = "idle"
    RENEWING = "renewing"


class Renewer(Protocol):
    async def renew(self, refresh_token: str) -> RenewalResult: ...


class SingleFlightCoordinator:
    """Serializes concurrent renewal attempts into one and fans out the result.

    One instance belongs to one client; its state and waiter queue are not
    shared with any other client.
    """

    def __init__(
        self,
        executor: Renewer,
        store: CredentialStore,
        hooks: HookManager | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            executor: Performs the actual renewal call.
            store: Credential store read for the refresh credential and
                written with the renewal result.
            hooks: Optional hook manager notified after each renewal.
        """
        self._executor = executor
        self._store = store
        self.hooks = hooks or HookManager()
        self._state = CoordinatorState.IDLE
        self._waiters: deque[asyncio.Future[str]] = deque()
        self._renewal_task: asyncio.Task[None] | None = None
        self.renewal_count = 0

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def pending_waiters(self) -> int:
        return len(self._waiters)

    async def obtain_fresh_credential(self, stale: str | None = None) -> str:
        """Return an access credential newer than the one that failed.

        Starts a renewal when none is in flight, otherwise joins the running
        one. Suspends until that renewal resolves.

        Args:
            stale: The access credential the failing request carried. When
                the coordinator is idle and the store already holds a
                different credential, that one is returned without renewing.

        Returns:
            The fresh access credential.

        Raises:
            AuthenticationExpired: If the renewal failed (the store has been
                cleared) or the credentials changed while it ran.
        """
        if self._state is CoordinatorState.IDLE and stale is not None:
            current = self._store.get(CredentialKind.ACCESS)
            if current and current != stale:
                logging.debug(
                    f"♻️ Credential already renewed, reusing access={mask_token(current)}"
                )
                return current

        waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        if self._state is CoordinatorState.IDLE:
            self._start_renewal()
        else:
            logging.debug(f"⏳ Joining in-flight renewal waiters={len(self._waiters)}")
        try:
            return await waiter
        finally:
            # A cancelled caller leaves the queue; the renewal keeps running.
            if waiter.cancelled():
                try:
                    self._waiters.remove(waiter)
                except ValueError:
                    pass

    def _start_renewal(self) -> None:
        self._state = CoordinatorState.RENEWING
        self.renewal_count += 1
        logging.info(f"🔄 Access credential rejected, starting renewal #{self.renewal_count}")
        # Detached from any caller so caller cancellation cannot abort it.
        self._renewal_task = asyncio.create_task(
            self._run_renewal(), name="credential-renewal"
        )

    async def _run_renewal(self) -> None:
        result: RenewalResult | None = None
        error: AuthenticationExpired | None = None
        cancelled = False
        keep_store = False
        try:
            refresh_token = self._store.get(CredentialKind.REFRESH)
            if not refresh_token:
                raise RenewalRejected("No refresh credential available")
            renewed = await self._executor.renew(refresh_token)
            if self._store.get(CredentialKind.REFRESH) != refresh_token:
                # Logged out (or in again) while the call was in flight
                logging.info("🚪 Credentials changed during renewal, discarding renewed credential")
                error = AuthenticationExpired(
                    "Credentials changed during renewal; re-authentication required",
                    data={"reason": "credentials_changed"},
                )
                keep_store = True
            else:
                self._store.set(CredentialKind.ACCESS, renewed.access_token)
                if renewed.refresh_token:
                    self._store.set(CredentialKind.REFRESH, renewed.refresh_token)
                result = renewed
        except RenewalError as e:
            log_error("Credential renewal failed", e, level=logging.WARNING)
            error = AuthenticationExpired(
                "Credential renewal failed; re-authentication required",
                data={"reason": type(e).__name__},
            )
            error.__cause__ = e
        except asyncio.CancelledError:
            cancelled = True
            raise
        except Exception as e:  # noqa: BLE001
            log_error("Unexpected credential renewal error", e)
            error = AuthenticationExpired(
                "Credential renewal failed unexpectedly; re-authentication required",
                data={"reason": type(e).__name__},
            )
            error.__cause__ = e
        finally:
            self._finish(result, error, cancelled, keep_store=keep_store)

    def _finish(
        self,
        result: RenewalResult | None,
        error: AuthenticationExpired | None,
        cancelled: bool,
        *,
        keep_store: bool = False,
    ) -> None:
        """Return to IDLE and resolve every queued waiter exactly once."""
        waiters = list(self._waiters)
        self._waiters.clear()
        self._state = CoordinatorState.IDLE
        self._renewal_task = None

        if cancelled:
            logging.debug(f"🛑 Renewal cancelled waiters={len(waiters)}")
            for waiter in waiters:
                waiter.cancel()
            return

        if error is None and result is not None:
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_result(result.access_token)
            logging.debug(f"✅ Renewal released waiters={len(waiters)}")
            self.hooks.fire_renewed(result.access_token)
            return

        assert error is not None
        try:
            if not keep_store:
                self._store.clear_all()
                logging.warning(
                    f"🚪 Credentials cleared after failed renewal waiters={len(waiters)}"
                )
        except Exception as e:  # noqa: BLE001
            log_error("Failed to clear credentials after renewal failure", e)
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_exception(error)
        self.hooks.fire_expired(error)

    async def aclose(self) -> None:
        """Cancel an in-flight renewal; its waiters are cancelled too."""
        task = self._renewal_task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        # A task cancelled before its first step never reaches _run_renewal's finally.
        if self._waiters or self._state is CoordinatorState.RENEWING:
            self._finish(None, None, cancelled=True)
