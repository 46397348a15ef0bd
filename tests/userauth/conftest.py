"""Shared fixtures: a recording fake identity provider and a fixed clock."""

from datetime import UTC, datetime, timedelta

import pytest

from userauth.tokens.models import Account, AuthConfiguration, AuthenticationResult
from userauth.tokens.policy import ExpirationPolicy
from userauth.tokens.provider import UserTokenProvider
from userauth.tokens.providers.base import IdentityProviderClient

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)
DEVICE_CODE_MESSAGE = "To sign in, open https://microsoft.com/devicelogin and enter ABCD-1234"


def make_result(
    token: str = "token_1",
    expires_in: timedelta = timedelta(hours=1),
    username: str | None = "alice@contoso.com",
    tenant_id: str = "tenant-1",
    environment: str | None = None,
) -> AuthenticationResult:
    account = None
    if username is not None:
        account = Account(
            username=username,
            home_account_id=f"oid-{username}.{tenant_id}",
            environment=environment,
        )
    return AuthenticationResult(
        access_token=token,
        expires_on=NOW + expires_in,
        tenant_id=tenant_id,
        account=account,
    )


class FakeIdentityClient(IdentityProviderClient):
    """Identity provider that records calls and returns canned results."""

    def __init__(self):
        self.accounts: list[Account] = []
        self.silent_results: list[AuthenticationResult | None] = []
        self.device_code_message = DEVICE_CODE_MESSAGE
        self.device_code_result = make_result("device_token")
        self.password_result = make_result("password_token")
        self.error: Exception | None = None
        self.calls: list[tuple] = []

    def get_accounts(self) -> list[Account]:
        self.calls.append(("get_accounts",))
        return list(self.accounts)

    def acquire_token_silent(self, scopes, account):
        self.calls.append(("silent", tuple(scopes), account))
        if self.error:
            raise self.error
        if self.silent_results:
            return self.silent_results.pop(0)
        return None

    def acquire_token_by_device_code(self, scopes, on_challenge):
        self.calls.append(("device_code", tuple(scopes)))
        if self.error:
            raise self.error
        on_challenge(self.device_code_message)
        return self.device_code_result

    def acquire_token_by_username_password(self, scopes, username, password):
        self.calls.append(("username_password", tuple(scopes), username, password))
        if self.error:
            raise self.error
        return self.password_result

    @property
    def flows(self) -> list[str]:
        return [call[0] for call in self.calls if call[0] != "get_accounts"]


@pytest.fixture
def config():
    return AuthConfiguration(ad_domain="contoso.onmicrosoft.com")


@pytest.fixture
def fake_client():
    return FakeIdentityClient()


@pytest.fixture
def clock():
    """Mutable clock: set clock.now to move time."""

    class Clock:
        now = NOW

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def provider(fake_client, clock):
    provider = UserTokenProvider(
        client_factory=lambda config: fake_client,
        expiration_policy=ExpirationPolicy(clock=clock),
    )
    yield provider
    provider.close()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def result_factory():
    """Build AuthenticationResults relative to the fixed test time."""
    return make_result
