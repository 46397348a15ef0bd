"""Renewable access token handle."""

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from azure.core.credentials import AccessToken

from userauth.errors.exceptions import AuthError, AuthenticationFailedError
from userauth.tokens.models import AuthConfiguration, AuthenticationResult
from userauth.types import LoginType

if TYPE_CHECKING:
    from userauth.tokens.provider import UserTokenProvider

logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"


class RenewableAccessToken:
    """
    Access token that renews itself silently before use.

    Every authorize_request / get_token call first asks the provider to
    renew the held result if it is near expiry, so a stale token is never
    handed out no matter how long the handle is kept. Accessors always read
    the current result.

    A failed renewal leaves the previous result in place and puts the handle
    in a terminal failed state: later uses raise AuthenticationFailedError and
    the caller has to sign in again for a new handle.

    Also usable as an Azure SDK TokenCredential through get_token().
    """

    def __init__(
        self,
        auth_result: AuthenticationResult,
        token_provider: "UserTokenProvider",
        configuration: AuthConfiguration,
    ):
        self._auth_result = auth_result
        self._token_provider = token_provider
        self.configuration = configuration
        self._lock = threading.Lock()
        self._failure: AuthError | None = None

    @property
    def auth_result(self) -> AuthenticationResult:
        return self._auth_result

    def _replace_result(self, auth_result: AuthenticationResult) -> None:
        self._auth_result = auth_result

    @property
    def is_failed(self) -> bool:
        return self._failure is not None

    def _ensure_fresh(self) -> None:
        with self._lock:
            if self._failure is not None:
                raise AuthenticationFailedError(
                    "Token renewal failed earlier; sign in again to obtain a new token",
                    cause=self._failure,
                )
            try:
                self._token_provider.renew(self)
            except AuthError as e:
                self._failure = e
                raise

    def authorize_request(self, auth_token_setter: Callable[[str, str], Any]) -> None:
        """
        Renew if needed, then pass the scheme and token to the setter.

        Args:
            auth_token_setter: Called as setter("Bearer", access_token)

        Raises:
            AuthError: If renewal fails
        """
        self._ensure_fresh()
        auth_token_setter(BEARER_SCHEME, self._auth_result.access_token)

    def authorization_header(self) -> dict[str, str]:
        """Renew if needed and return an Authorization header dict."""
        headers: dict[str, str] = {}
        self.authorize_request(
            lambda scheme, token: headers.update({"Authorization": f"{scheme} {token}"})
        )
        return headers

    def get_token(self, *scopes: str, **kwargs: Any) -> AccessToken:
        """
        TokenCredential protocol.

        The handle is bound to its configuration's resource, so scopes are
        not used to select a token.
        """
        self._ensure_fresh()
        result = self._auth_result
        return AccessToken(result.access_token, int(result.expires_on.timestamp()))

    @property
    def access_token(self) -> str:
        return self._auth_result.access_token

    @property
    def user_id(self) -> str | None:
        account = self._auth_result.account
        return account.username if account else None

    @property
    def tenant_id(self) -> str | None:
        return self._auth_result.tenant_id

    @property
    def login_type(self) -> LoginType:
        account = self._auth_result.account
        if account is not None and account.environment is not None:
            return LoginType.LIVE_ID
        return LoginType.ORG_ID

    @property
    def expires_on(self) -> datetime:
        return self._auth_result.expires_on

    def __repr__(self) -> str:
        return (
            f"RenewableAccessToken(tenant_id={self.tenant_id!r}, "
            f"expires_on={self.expires_on.isoformat()}, failed={self.is_failed})"
        )


__all__ = ["RenewableAccessToken", "BEARER_SCHEME"]
