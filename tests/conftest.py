import pytest

from tests.fixtures.fakes import FakeExecutor, FakeTransport
from tests.fixtures.token_fixtures import ACCESS_TOKEN, REFRESH_TOKEN, RENEWED_ACCESS_TOKEN
from tokenrelay.api.pipeline import RequestPipeline
from tokenrelay.auth_token.coordinator import SingleFlightCoordinator
from tokenrelay.auth_token.store import CredentialKind, MemoryCredentialStore


@pytest.fixture
def store() -> MemoryCredentialStore:
    """Store pre-loaded with the login credentials A1 / R1."""
    return MemoryCredentialStore(
        {CredentialKind.ACCESS: ACCESS_TOKEN, CredentialKind.REFRESH: REFRESH_TOKEN}
    )


@pytest.fixture
def transport() -> FakeTransport:
    """Transport accepting only the renewed credential."""
    return FakeTransport(accepted={RENEWED_ACCESS_TOKEN})


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor(RENEWED_ACCESS_TOKEN)


@pytest.fixture
def coordinator(executor, store) -> SingleFlightCoordinator:
    return SingleFlightCoordinator(executor, store)


@pytest.fixture
def pipeline(transport, store, coordinator) -> RequestPipeline:
    return RequestPipeline(transport, store, coordinator)
