"""
User credential acquisition and token renewal.

Acquires Azure AD user tokens through the silent, device code or
username/password flow and hands them out as renewable handles that
refresh silently before use.

Example:
    >>> from userauth import AuthConfiguration, UserTokenProvider
    >>> with UserTokenProvider() as provider:
    ...     token = provider.get_access_token(AuthConfiguration(), prompt_action=print)
    ...     token.authorize_request(lambda scheme, value: print(scheme))
"""

from userauth.errors import (
    AuthenticationCanceledError,
    AuthenticationFailedError,
    AuthenticationFailedWithoutPopupError,
    AuthError,
    InvalidConfigurationError,
    InvalidCredentialKindError,
    NotSupportedError,
    ProviderError,
    ProviderErrorCode,
)
from userauth.tokens import (
    Account,
    AuthConfiguration,
    AuthenticationResult,
    ExpirationPolicy,
    IdentityProviderClient,
    MsalIdentityClient,
    RenewableAccessToken,
    UserTokenProvider,
)
from userauth.types import AccountType, AcquisitionFlow, LoginType

__version__ = "0.1.0"

__all__ = [
    "UserTokenProvider",
    "RenewableAccessToken",
    "ExpirationPolicy",
    "IdentityProviderClient",
    "MsalIdentityClient",
    "AuthConfiguration",
    "Account",
    "AuthenticationResult",
    "AccountType",
    "AcquisitionFlow",
    "LoginType",
    "AuthError",
    "InvalidCredentialKindError",
    "NotSupportedError",
    "InvalidConfigurationError",
    "AuthenticationCanceledError",
    "AuthenticationFailedError",
    "AuthenticationFailedWithoutPopupError",
    "ProviderError",
    "ProviderErrorCode",
]
