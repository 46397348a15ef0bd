"""Identity-provider client implementations."""

from userauth.tokens.providers.base import IdentityProviderClient
from userauth.tokens.providers.msal_client import MsalIdentityClient

__all__ = ["IdentityProviderClient", "MsalIdentityClient"]
