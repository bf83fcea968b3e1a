"""Hook management for credential renewals and expiries."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from ..errors.internal import AuthenticationExpired

RenewedHook = Callable[[str], Coroutine[Any, Any, None]]
ExpiredHook = Callable[[AuthenticationExpired], Coroutine[Any, Any, None]]


class HookManager:
    """Manages registration and firing of renewal and expiry hooks.

    Hooks let the surrounding application react to credential changes (for
    example persisting elsewhere, or routing to a login screen) without the
    request pipeline knowing about it.
    """

    def __init__(self) -> None:
        self._renewed_hooks: list[RenewedHook] = []
        self._expired_hooks: list[ExpiredHook] = []
        # Retained background tasks to prevent premature GC.
        self._hook_tasks: set[asyncio.Task[Any]] = set()

    def register_renewed_hook(self, hook: RenewedHook) -> None:
        """Register a coroutine hook invoked with the new access credential.

        Hooks are additive and fire-and-forget.
        """
        self._renewed_hooks.append(hook)

    def register_expired_hook(self, hook: ExpiredHook) -> None:
        """Register a coroutine hook invoked after a failed renewal.

        The hook receives the ``AuthenticationExpired`` error; its
        ``__cause__`` tells rejected and unreachable renewals apart.
        """
        self._expired_hooks.append(hook)

    def fire_renewed(self, access_token: str) -> None:
        for hook in list(self._renewed_hooks):
            self._schedule(hook(access_token), category="renewed_hook")

    def fire_expired(self, error: AuthenticationExpired) -> None:
        for hook in list(self._expired_hooks):
            self._schedule(hook(error), category="expired_hook")

    @property
    def pending_tasks(self) -> int:
        return len(self._hook_tasks)

    async def drain(self) -> None:
        """Wait for all scheduled hook tasks to finish."""
        while self._hook_tasks:
            await asyncio.gather(*list(self._hook_tasks), return_exceptions=True)

    def _schedule(self, coro: Coroutine[Any, Any, Any], *, category: str) -> None:
        """Create and retain a background task with exception logging."""
        task: asyncio.Task[Any] = asyncio.create_task(coro)
        self._hook_tasks.add(task)

        def _cb(t: asyncio.Task[Any]) -> None:
            self._hook_tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc:
                logging.warning(
                    f"⚠️ Credential hook failed category={category} error={str(exc)} type={type(exc).__name__}"
                )

        task.add_done_callback(_cb)
