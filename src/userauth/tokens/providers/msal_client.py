"""Identity-provider client backed by MSAL's public client application."""

import logging
from collections.abc import Callable

from userauth.errors.exceptions import (
    InvalidConfigurationError,
    ProviderError,
    ProviderErrorCode,
)
from userauth.tokens.models import Account, AuthConfiguration, AuthenticationResult
from userauth.tokens.providers.base import IdentityProviderClient

try:
    import msal

    MSAL_AVAILABLE = True
except ImportError:
    msal = None
    MSAL_AVAILABLE = False

logger = logging.getLogger(__name__)

# Tenant that issues tokens for personal Microsoft accounts
CONSUMERS_TENANT_ID = "9188040d-6c67-4c5b-b112-36a304b66dad"

# MSAL / OAuth2 error strings -> provider error codes
MSAL_ERROR_CODES = {
    "authorization_declined": ProviderErrorCode.AUTHENTICATION_CANCELED,
    "access_denied": ProviderErrorCode.AUTHENTICATION_CANCELED,
    "authentication_canceled": ProviderErrorCode.AUTHENTICATION_CANCELED,
    "interaction_required": ProviderErrorCode.UI_REQUIRED,
    "login_required": ProviderErrorCode.UI_REQUIRED,
    "consent_required": ProviderErrorCode.UI_REQUIRED,
    "invalid_grant": ProviderErrorCode.UI_REQUIRED,
    "authentication_ui_failed": ProviderErrorCode.UI_REQUIRED,
    "multiple_matching_tokens_detected": ProviderErrorCode.MULTIPLE_TOKENS_MATCHED,
    "missing_federation_metadata_url": ProviderErrorCode.MISSING_FEDERATION_METADATA_URL,
    "federated_service_returned_error": ProviderErrorCode.FEDERATED_SERVICE_RETURNED_ERROR,
}


def provider_error_from_response(response: dict) -> ProviderError:
    """Build a ProviderError from an MSAL error response dict."""
    error = response.get("error") or ProviderErrorCode.UNKNOWN
    description = response.get("error_description") or error
    return ProviderError(MSAL_ERROR_CODES.get(error, error), description)


def account_from_msal(raw: dict) -> Account:
    """Convert an MSAL account dict to an Account."""
    environment = None
    if raw.get("realm") == CONSUMERS_TENANT_ID:
        environment = raw.get("environment")
    return Account(
        username=raw.get("username", ""),
        home_account_id=raw.get("home_account_id"),
        environment=environment,
    )


class MsalIdentityClient(IdentityProviderClient):
    """
    IdentityProviderClient on top of msal.PublicClientApplication.

    MSAL reports most failures as error dicts rather than exceptions; those
    are converted to ProviderError using MSAL_ERROR_CODES. One instance is
    bound to one AuthConfiguration and shares its token cache.
    """

    def __init__(self, config: AuthConfiguration):
        """
        Initialize MSAL client.

        Args:
            config: Authentication configuration

        Raises:
            InvalidConfigurationError: If msal is not installed or client_id is empty
        """
        if not MSAL_AVAILABLE:
            raise InvalidConfigurationError(
                "msal library not installed. Install with: pip install msal"
            )

        if not config.client_id:
            raise InvalidConfigurationError("client_id is required")

        self.config = config
        self._app = msal.PublicClientApplication(
            client_id=config.client_id,
            authority=config.authority,
            token_cache=config.token_cache,
            validate_authority=config.validate_authority,
        )

        logger.debug(
            "Initialized MSAL public client",
            extra={"authority": config.authority, "client_id": config.client_id},
        )

    def _raw_accounts(self) -> list[dict]:
        return self._app.get_accounts() or []

    def _find_raw_account(self, account: Account) -> dict | None:
        for raw in self._raw_accounts():
            if account.home_account_id and raw.get("home_account_id") == account.home_account_id:
                return raw
            if not account.home_account_id and raw.get("username") == account.username:
                return raw
        return None

    def _to_result(self, response: dict, account: Account | None = None) -> AuthenticationResult:
        if "access_token" not in response:
            raise provider_error_from_response(response)

        if account is None:
            claims = response.get("id_token_claims") or {}
            username = claims.get("preferred_username") or claims.get("upn")
            if username:
                matches = [
                    account_from_msal(raw)
                    for raw in self._raw_accounts()
                    if raw.get("username") == username
                ]
                if matches:
                    account = matches[0]

        return AuthenticationResult.from_msal_response(response, account=account)

    def get_accounts(self) -> list[Account]:
        return [account_from_msal(raw) for raw in self._raw_accounts()]

    def acquire_token_silent(
        self,
        scopes: list[str],
        account: Account | None,
    ) -> AuthenticationResult | None:
        raw_account = self._find_raw_account(account) if account else None
        response = self._app.acquire_token_silent_with_error(scopes, account=raw_account)
        if response is None:
            return None
        return self._to_result(response, account)

    def acquire_token_by_device_code(
        self,
        scopes: list[str],
        on_challenge: Callable[[str], None],
    ) -> AuthenticationResult:
        flow = self._app.initiate_device_flow(scopes=scopes)
        if "user_code" not in flow:
            raise provider_error_from_response(flow)

        on_challenge(flow.get("message"))

        # Polls until the user completes sign-in or the code expires
        response = self._app.acquire_token_by_device_flow(flow)
        return self._to_result(response)

    def acquire_token_by_username_password(
        self,
        scopes: list[str],
        username: str,
        password: str,
    ) -> AuthenticationResult:
        response = self._app.acquire_token_by_username_password(
            username, password, scopes=scopes
        )
        return self._to_result(response)


__all__ = [
    "MsalIdentityClient",
    "MSAL_ERROR_CODES",
    "CONSUMERS_TENANT_ID",
    "account_from_msal",
    "provider_error_from_response",
]
