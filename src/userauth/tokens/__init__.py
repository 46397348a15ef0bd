"""
User token acquisition with silent renewal.

Basic Usage:
    from userauth.tokens import AuthConfiguration, UserTokenProvider

    config = AuthConfiguration(ad_domain="contoso.onmicrosoft.com")

    with UserTokenProvider() as provider:
        # Device code flow: instructions are passed to the prompt callback
        token = provider.get_access_token(config, prompt_action=print)

        # Later: renewed silently when within 5 minutes of expiry
        headers = token.authorization_header()

Silent only (no prompt callback):
    token = provider.get_access_token(config, user_id="alice@contoso.com")

Username/password:
    token = provider.get_access_token(
        config,
        prompt_action=print,
        user_id="alice@contoso.com",
        password=os.environ["USER_PASSWORD"],
    )
"""

from userauth.tokens.models import (
    Account,
    AcquisitionFailure,
    AcquisitionOutcome,
    AcquisitionSuccess,
    AuthConfiguration,
    AuthenticationResult,
)
from userauth.tokens.policy import (
    EXPIRATION_THRESHOLD,
    FORCE_EXPIRED_ENV_VAR,
    ExpirationPolicy,
)
from userauth.tokens.provider import UserTokenProvider, select_flow
from userauth.tokens.providers import IdentityProviderClient, MsalIdentityClient
from userauth.tokens.token import RenewableAccessToken

__all__ = [
    # Provider
    "UserTokenProvider",
    "select_flow",
    "RenewableAccessToken",
    # Policy
    "ExpirationPolicy",
    "EXPIRATION_THRESHOLD",
    "FORCE_EXPIRED_ENV_VAR",
    # Identity provider clients
    "IdentityProviderClient",
    "MsalIdentityClient",
    # Models
    "AuthConfiguration",
    "Account",
    "AuthenticationResult",
    "AcquisitionOutcome",
    "AcquisitionSuccess",
    "AcquisitionFailure",
]
