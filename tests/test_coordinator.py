"""
Unit tests for SingleFlightCoordinator.
"""

from __future__ import annotations

import asyncio

import pytest

from tests.fixtures.fakes import FakeExecutor, settle
from tokenrelay.auth_token.coordinator import CoordinatorState, SingleFlightCoordinator
from tokenrelay.auth_token.hook_manager import HookManager
from tokenrelay.auth_token.store import CredentialKind, MemoryCredentialStore
from tokenrelay.errors.internal import (
    AuthenticationExpired,
    RenewalRejected,
    RenewalUnreachable,
)


class TestSingleFlightCoordinator:
    """Test class for SingleFlightCoordinator functionality."""

    def setup_method(self):
        self.gate = asyncio.Event()
        self.store = MemoryCredentialStore(
            {CredentialKind.ACCESS: "A1", CredentialKind.REFRESH: "R1"}
        )
        self.executor = FakeExecutor("A2", gate=self.gate)
        self.coordinator = SingleFlightCoordinator(self.executor, self.store)

    @pytest.mark.asyncio
    async def test_starts_idle(self):
        assert self.coordinator.state is CoordinatorState.IDLE
        assert self.coordinator.pending_waiters == 0
        assert self.coordinator.renewal_count == 0

    @pytest.mark.asyncio
    async def test_joiners_share_single_renewal(self):
        tasks = [asyncio.create_task(self.coordinator.obtain_fresh_credential()) for _ in range(5)]
        await settle()

        assert self.coordinator.state is CoordinatorState.RENEWING
        assert self.coordinator.pending_waiters == 5
        assert self.executor.calls == ["R1"]

        self.gate.set()
        results = await asyncio.gather(*tasks)

        assert results == ["A2"] * 5
        assert self.executor.calls == ["R1"]
        assert self.coordinator.state is CoordinatorState.IDLE
        assert self.coordinator.pending_waiters == 0
        assert self.store.get(CredentialKind.ACCESS) == "A2"

    @pytest.mark.asyncio
    async def test_failure_releases_every_waiter_and_clears_store(self):
        self.executor.error = RenewalUnreachable("timeout")
        tasks = [asyncio.create_task(self.coordinator.obtain_fresh_credential()) for _ in range(3)]
        await settle()
        self.gate.set()

        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, AuthenticationExpired) for r in results)
        assert all(isinstance(r.__cause__, RenewalUnreachable) for r in results)
        assert self.store.get(CredentialKind.ACCESS) is None
        assert self.store.get(CredentialKind.REFRESH) is None
        assert self.coordinator.state is CoordinatorState.IDLE
        assert self.coordinator.pending_waiters == 0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_leaves_queue_without_affecting_others(self):
        first = asyncio.create_task(self.coordinator.obtain_fresh_credential())
        second = asyncio.create_task(self.coordinator.obtain_fresh_credential())
        third = asyncio.create_task(self.coordinator.obtain_fresh_credential())
        await settle()

        second.cancel()
        await settle()
        assert self.coordinator.pending_waiters == 2
        assert self.coordinator.state is CoordinatorState.RENEWING

        self.gate.set()
        assert await first == "A2"
        assert await third == "A2"
        assert second.cancelled()
        assert self.executor.calls == ["R1"]

    @pytest.mark.asyncio
    async def test_cancelling_triggering_caller_keeps_renewal_running(self):
        trigger = asyncio.create_task(self.coordinator.obtain_fresh_credential())
        await settle()
        joiner = asyncio.create_task(self.coordinator.obtain_fresh_credential())
        await settle()

        trigger.cancel()
        await settle()
        self.gate.set()

        assert await joiner == "A2"
        assert trigger.cancelled()
        assert self.store.get(CredentialKind.ACCESS) == "A2"

    @pytest.mark.asyncio
    async def test_missing_refresh_credential_fails_without_calling_backend(self):
        self.store.clear(CredentialKind.REFRESH)

        with pytest.raises(AuthenticationExpired) as exc_info:
            await self.coordinator.obtain_fresh_credential()

        assert isinstance(exc_info.value.__cause__, RenewalRejected)
        assert self.executor.calls == []
        assert self.store.get(CredentialKind.ACCESS) is None

    @pytest.mark.asyncio
    async def test_unexpected_executor_error_still_releases_waiters(self):
        self.executor.error = KeyError("boom")
        self.gate.set()

        with pytest.raises(AuthenticationExpired) as exc_info:
            await self.coordinator.obtain_fresh_credential()

        assert isinstance(exc_info.value.__cause__, KeyError)
        assert self.coordinator.state is CoordinatorState.IDLE

    @pytest.mark.asyncio
    async def test_logout_during_renewal_discards_renewed_credential(self):
        task = asyncio.create_task(self.coordinator.obtain_fresh_credential())
        await settle()
        self.store.clear_all()
        self.gate.set()

        with pytest.raises(AuthenticationExpired):
            await task

        assert self.store.get(CredentialKind.ACCESS) is None
        assert self.store.get(CredentialKind.REFRESH) is None
        assert self.coordinator.state is CoordinatorState.IDLE

    @pytest.mark.asyncio
    async def test_relogin_during_renewal_keeps_new_credentials(self):
        task = asyncio.create_task(self.coordinator.obtain_fresh_credential())
        await settle()
        self.store.set(CredentialKind.ACCESS, "A9")
        self.store.set(CredentialKind.REFRESH, "R9")
        self.gate.set()

        with pytest.raises(AuthenticationExpired):
            await task

        assert self.store.get(CredentialKind.ACCESS) == "A9"
        assert self.store.get(CredentialKind.REFRESH) == "R9"

    @pytest.mark.asyncio
    async def test_store_error_while_clearing_still_releases_waiters(self):
        class BrokenClearStore(MemoryCredentialStore):
            def clear_all(self) -> None:
                raise RuntimeError("backend gone")

        store = BrokenClearStore({CredentialKind.ACCESS: "A1", CredentialKind.REFRESH: "R1"})
        coordinator = SingleFlightCoordinator(FakeExecutor(error=RenewalRejected("revoked")), store)

        results = await asyncio.wait_for(
            asyncio.gather(
                *(coordinator.obtain_fresh_credential() for _ in range(3)),
                return_exceptions=True,
            ),
            timeout=1,
        )

        assert all(isinstance(r, AuthenticationExpired) for r in results)
        assert coordinator.state is CoordinatorState.IDLE
        assert coordinator.pending_waiters == 0

    @pytest.mark.asyncio
    async def test_rotated_refresh_credential_is_stored(self):
        self.executor.refresh_token = "R2"
        self.gate.set()

        assert await self.coordinator.obtain_fresh_credential() == "A2"
        assert self.store.get(CredentialKind.REFRESH) == "R2"

    @pytest.mark.asyncio
    async def test_refresh_credential_kept_when_not_rotated(self):
        self.gate.set()

        await self.coordinator.obtain_fresh_credential()

        assert self.store.get(CredentialKind.REFRESH) == "R1"

    @pytest.mark.asyncio
    async def test_stale_credential_short_circuits_when_idle(self):
        self.store.set(CredentialKind.ACCESS, "A7")

        assert await self.coordinator.obtain_fresh_credential(stale="A1") == "A7"
        assert self.executor.calls == []
        assert self.coordinator.renewal_count == 0

    @pytest.mark.asyncio
    async def test_matching_stale_credential_renews(self):
        self.gate.set()

        assert await self.coordinator.obtain_fresh_credential(stale="A1") == "A2"
        assert self.executor.calls == ["R1"]

    @pytest.mark.asyncio
    async def test_stale_credential_joins_when_renewing(self):
        first = asyncio.create_task(self.coordinator.obtain_fresh_credential(stale="A1"))
        await settle()
        # Store changes mid-flight are irrelevant while a renewal is running
        self.store.set(CredentialKind.ACCESS, "A5")
        second = asyncio.create_task(self.coordinator.obtain_fresh_credential(stale="A1"))
        await settle()
        self.gate.set()

        assert await first == "A2"
        assert await second == "A2"
        assert self.executor.calls == ["R1"]

    @pytest.mark.asyncio
    async def test_consecutive_cycles_each_renew_once(self):
        self.gate.set()
        await self.coordinator.obtain_fresh_credential()
        self.executor.access_token = "A3"
        await self.coordinator.obtain_fresh_credential()

        assert self.coordinator.renewal_count == 2
        assert self.store.get(CredentialKind.ACCESS) == "A3"

    @pytest.mark.asyncio
    async def test_aclose_cancels_inflight_renewal_and_waiters(self):
        waiter = asyncio.create_task(self.coordinator.obtain_fresh_credential())
        await settle()

        await self.coordinator.aclose()
        await settle()

        assert waiter.cancelled()
        assert self.coordinator.state is CoordinatorState.IDLE
        assert self.coordinator.pending_waiters == 0
        # Shutdown is not a logout
        assert self.store.get(CredentialKind.REFRESH) == "R1"

    @pytest.mark.asyncio
    async def test_aclose_when_idle_is_noop(self):
        await self.coordinator.aclose()
        assert self.coordinator.state is CoordinatorState.IDLE


@pytest.mark.asyncio
async def test_hooks_fire_on_renewal_and_expiry():
    renewed: list[str] = []
    expired: list[AuthenticationExpired] = []

    async def on_renewed(token: str) -> None:
        renewed.append(token)

    async def on_expired(error: AuthenticationExpired) -> None:
        expired.append(error)

    hooks = HookManager()
    hooks.register_renewed_hook(on_renewed)
    hooks.register_expired_hook(on_expired)
    store = MemoryCredentialStore({CredentialKind.REFRESH: "R1"})
    executor = FakeExecutor("A2")
    coordinator = SingleFlightCoordinator(executor, store, hooks)

    await coordinator.obtain_fresh_credential()
    await hooks.drain()
    assert renewed == ["A2"]

    store.set(CredentialKind.REFRESH, "R1")
    executor.error = RenewalRejected("revoked")
    with pytest.raises(AuthenticationExpired):
        await coordinator.obtain_fresh_credential()
    await hooks.drain()

    assert len(expired) == 1
    assert isinstance(expired[0].__cause__, RenewalRejected)


@pytest.mark.asyncio
async def test_coordinators_do_not_share_state():
    gate = asyncio.Event()
    store_a = MemoryCredentialStore({CredentialKind.REFRESH: "Ra"})
    store_b = MemoryCredentialStore({CredentialKind.REFRESH: "Rb"})
    exec_a = FakeExecutor("Aa", gate=gate)
    exec_b = FakeExecutor("Ab", gate=gate)
    coord_a = SingleFlightCoordinator(exec_a, store_a)
    coord_b = SingleFlightCoordinator(exec_b, store_b)

    task_a = asyncio.create_task(coord_a.obtain_fresh_credential())
    task_b = asyncio.create_task(coord_b.obtain_fresh_credential())
    await settle()
    gate.set()

    assert await task_a == "Aa"
    assert await task_b == "Ab"
    assert exec_a.calls == ["Ra"]
    assert exec_b.calls == ["Rb"]
