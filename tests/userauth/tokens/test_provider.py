"""Tests for UserTokenProvider - flow selection, acquisition and error mapping."""

import threading
from unittest.mock import MagicMock

import pytest

from userauth.errors.classifiers import (
    MULTIPLE_TOKENS_MESSAGE,
    ORGANIZATION_ID_MESSAGE,
    USER_INTERACTION_REQUIRED_MESSAGE,
)
from userauth.errors.exceptions import (
    AuthenticationCanceledError,
    AuthenticationFailedError,
    AuthenticationFailedWithoutPopupError,
    InvalidConfigurationError,
    InvalidCredentialKindError,
    NotSupportedError,
    ProviderError,
    ProviderErrorCode,
)
from userauth.logging.context import get_log_context
from userauth.tokens.models import Account
from userauth.tokens.provider import UserTokenProvider, select_flow
from userauth.tokens.token import RenewableAccessToken
from userauth.types import AccountType, AcquisitionFlow


class TestSelectFlow:
    """Tests for the pure flow selection function."""

    @pytest.mark.parametrize(
        "user_id,password",
        [(None, None), ("", None), ("alice@contoso.com", None), ("alice@contoso.com", "pw")],
    )
    def test_silent_without_prompt(self, user_id, password):
        """No prompt callback always selects silent flow."""
        assert select_flow(None, user_id, password) is AcquisitionFlow.SILENT

    def test_silent_when_renewing_even_with_prompt(self):
        """Renewal forces silent flow regardless of credentials."""
        assert select_flow(print, "alice@contoso.com", "pw", renew=True) is AcquisitionFlow.SILENT

    @pytest.mark.parametrize(
        "user_id,password",
        [(None, None), ("", "pw"), ("alice@contoso.com", None), (None, "pw")],
    )
    def test_device_code_when_credentials_incomplete(self, user_id, password):
        assert select_flow(print, user_id, password) is AcquisitionFlow.DEVICE_CODE

    def test_username_password_when_all_present(self):
        assert select_flow(print, "alice@contoso.com", "pw") is AcquisitionFlow.USERNAME_PASSWORD

    def test_empty_password_is_still_a_password(self):
        """Only an absent secret selects device code."""
        assert select_flow(print, "alice@contoso.com", "") is AcquisitionFlow.USERNAME_PASSWORD


class TestGetAccessTokenFlows:
    """Tests for flow dispatch through get_access_token."""

    def test_silent_flow_never_prompts(self, provider, fake_client, config, result_factory):
        fake_client.accounts = [Account("alice@contoso.com", "hid")]
        fake_client.silent_results = [result_factory("silent_token")]

        token = provider.get_access_token(config, user_id="alice@contoso.com")

        assert isinstance(token, RenewableAccessToken)
        assert token.access_token == "silent_token"
        assert fake_client.flows == ["silent"]

    def test_silent_flow_matches_account_by_username(self, provider, fake_client, config, result_factory):
        bob = Account("bob@contoso.com", "hid-bob")
        alice = Account("alice@contoso.com", "hid-alice")
        fake_client.accounts = [bob, alice]
        fake_client.silent_results = [result_factory()]

        provider.get_access_token(config, user_id="alice@contoso.com")

        silent_call = [c for c in fake_client.calls if c[0] == "silent"][0]
        assert silent_call[2] == alice

    def test_silent_flow_uses_first_match(self, provider, fake_client, config, result_factory):
        first = Account("alice@contoso.com", "hid-1")
        second = Account("alice@contoso.com", "hid-2")
        fake_client.accounts = [first, second]
        fake_client.silent_results = [result_factory()]

        provider.get_access_token(config, user_id="alice@contoso.com")

        assert fake_client.calls[-1][2] == first

    def test_silent_flow_falls_back_to_null_account(self, provider, fake_client, config, result_factory):
        """No cached match still attempts silent acquisition with account=None."""
        fake_client.accounts = [Account("bob@contoso.com", "hid-bob")]
        fake_client.silent_results = [result_factory()]

        token = provider.get_access_token(
            config, user_id="user@tenant", password="secret"
        )

        assert fake_client.calls[-1] == ("silent", tuple(config.scopes), None)
        assert token.access_token == "token_1"

    def test_silent_flow_without_result_requires_interaction(self, provider, fake_client, config):
        with pytest.raises(AuthenticationFailedWithoutPopupError) as exc_info:
            provider.get_access_token(config, user_id="alice@contoso.com")

        assert exc_info.value.message == USER_INTERACTION_REQUIRED_MESSAGE

    def test_device_code_flow_invokes_prompt_once(self, provider, fake_client, config):
        prompt = MagicMock()

        token = provider.get_access_token(config, prompt_action=prompt)

        prompt.assert_called_once_with(fake_client.device_code_message)
        assert token.access_token == "device_token"
        assert fake_client.flows == ["device_code"]

    def test_device_code_flow_when_password_missing(self, provider, fake_client, config):
        prompt = MagicMock()

        provider.get_access_token(config, prompt_action=prompt, user_id="alice@contoso.com")

        assert fake_client.flows == ["device_code"]
        assert prompt.call_count == 1

    def test_username_password_flow(self, provider, fake_client, config):
        prompt = MagicMock()

        token = provider.get_access_token(
            config, prompt_action=prompt, user_id="alice@contoso.com", password="pw"
        )

        assert token.access_token == "password_token"
        assert fake_client.calls == [
            ("username_password", tuple(config.scopes), "alice@contoso.com", "pw")
        ]
        prompt.assert_not_called()

    def test_scopes_use_user_impersonation(self, provider, fake_client, config):
        provider.get_access_token(config, prompt_action=MagicMock())

        assert fake_client.calls[0][1] == ("https://management.core.windows.net/user_impersonation",)

    def test_provider_calls_run_on_worker_thread(self, provider, fake_client, config):
        seen = []
        original = fake_client.acquire_token_by_device_code

        def recording(scopes, on_challenge):
            seen.append(threading.current_thread().name)
            return original(scopes, on_challenge)

        fake_client.acquire_token_by_device_code = recording
        provider.get_access_token(config, prompt_action=MagicMock())

        assert seen[0].startswith("userauth-acquire")
        assert seen[0] != threading.current_thread().name

    def test_log_context_set_for_provider_calls(self, provider, fake_client, config):
        seen = []
        original = fake_client.acquire_token_by_device_code

        def recording(scopes, on_challenge):
            seen.append(get_log_context())
            return original(scopes, on_challenge)

        fake_client.acquire_token_by_device_code = recording
        provider.get_access_token(config, prompt_action=MagicMock())

        assert seen[0]["operation"] == "acquire"
        assert seen[0]["flow"] == "device_code"
        assert seen[0]["client_id"] == config.client_id

    def test_client_built_once_per_configuration(self, config, fake_client):
        factory = MagicMock(return_value=fake_client)
        with UserTokenProvider(client_factory=factory) as provider:
            provider.get_access_token(config, prompt_action=MagicMock())
            with pytest.raises(AuthenticationFailedWithoutPopupError):
                provider.get_access_token(config)

        factory.assert_called_once_with(config)


class TestGetAccessTokenValidation:
    """Tests for credential kind validation and unsupported operations."""

    @pytest.mark.parametrize(
        "credential_type",
        [AccountType.SERVICE_PRINCIPAL, AccountType.ACCESS_TOKEN, "ManagedService", "user"],
    )
    def test_rejects_non_user_credential_kind(self, provider, fake_client, config, credential_type):
        with pytest.raises(InvalidCredentialKindError, match="must be 'User'"):
            provider.get_access_token(config, credential_type=credential_type)

        assert fake_client.calls == []

    def test_accepts_user_string(self, provider, fake_client, config):
        token = provider.get_access_token(config, prompt_action=MagicMock(), credential_type="User")
        assert token.access_token == "device_token"

    def test_invalid_credential_kind_is_value_error(self, provider, config):
        with pytest.raises(ValueError):
            provider.get_access_token(config, credential_type="ServicePrincipal")

    def test_certificate_not_supported(self, provider, config):
        with pytest.raises(NotSupportedError):
            provider.get_access_token_with_certificate(config, "principal", "thumbprint", "User")


class TestErrorMapping:
    """One case per provider error code, applied to every flow."""

    @pytest.fixture(params=["silent", "device_code", "username_password"])
    def acquire(self, request, provider, config):
        def run():
            if request.param == "silent":
                return provider.get_access_token(config, user_id="alice@contoso.com")
            if request.param == "device_code":
                return provider.get_access_token(config, prompt_action=MagicMock())
            return provider.get_access_token(
                config, prompt_action=MagicMock(), user_id="alice@contoso.com", password="pw"
            )

        return run

    def test_cancellation(self, acquire, fake_client):
        fake_client.error = ProviderError(ProviderErrorCode.AUTHENTICATION_CANCELED, "User canceled")

        with pytest.raises(AuthenticationCanceledError) as exc_info:
            acquire()

        assert exc_info.value.message == "User canceled"

    def test_ui_required(self, acquire, fake_client):
        fake_client.error = ProviderError(ProviderErrorCode.UI_REQUIRED, "ui")

        with pytest.raises(AuthenticationFailedWithoutPopupError) as exc_info:
            acquire()

        assert exc_info.value.message == USER_INTERACTION_REQUIRED_MESSAGE

    def test_multiple_matches(self, acquire, fake_client):
        fake_client.error = ProviderError(ProviderErrorCode.MULTIPLE_TOKENS_MATCHED, "many")

        with pytest.raises(AuthenticationFailedWithoutPopupError) as exc_info:
            acquire()

        assert exc_info.value.message == MULTIPLE_TOKENS_MESSAGE

    @pytest.mark.parametrize(
        "code",
        [
            ProviderErrorCode.MISSING_FEDERATION_METADATA_URL,
            ProviderErrorCode.FEDERATED_SERVICE_RETURNED_ERROR,
        ],
    )
    def test_federation_errors(self, acquire, fake_client, code):
        fake_client.error = ProviderError(code, "federation")

        with pytest.raises(AuthenticationFailedError) as exc_info:
            acquire()

        assert type(exc_info.value) is AuthenticationFailedError
        assert exc_info.value.message == ORGANIZATION_ID_MESSAGE

    def test_unrecognized_provider_error(self, acquire, fake_client):
        fake_client.error = ProviderError(
            "invalid_grant", "AADSTS50126: bad password", cause=OSError("inner")
        )

        with pytest.raises(AuthenticationFailedError) as exc_info:
            acquire()

        assert type(exc_info.value) is AuthenticationFailedError
        assert exc_info.value.message == "AADSTS50126: bad password: inner"

    def test_unexpected_exception_is_wrapped(self, acquire, fake_client):
        fake_client.error = RuntimeError("socket closed")

        with pytest.raises(AuthenticationFailedError) as exc_info:
            acquire()

        assert exc_info.value.message == "socket closed"
        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_auth_error_passes_through(self, acquire, fake_client):
        original = AuthenticationCanceledError("already classified")
        fake_client.error = original

        with pytest.raises(AuthenticationCanceledError) as exc_info:
            acquire()

        assert exc_info.value is original


class TestClientFactory:
    def test_factory_receives_configuration(self, config, fake_client):
        factory = MagicMock(return_value=fake_client)

        with UserTokenProvider(client_factory=factory) as provider:
            provider.get_access_token(config, prompt_action=MagicMock())

        factory.assert_called_once_with(config)

    def test_factory_configuration_error_surfaces(self, config):
        def factory(config):
            raise InvalidConfigurationError("client_id is required")

        with UserTokenProvider(client_factory=factory) as provider:
            with pytest.raises(InvalidConfigurationError, match="client_id"):
                provider.get_access_token(config, prompt_action=MagicMock())

    def test_external_executor_not_shut_down(self, config, fake_client):
        executor = MagicMock()
        provider = UserTokenProvider(client_factory=lambda c: fake_client, executor=executor)

        provider.close()

        executor.shutdown.assert_not_called()
