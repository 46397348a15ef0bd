"""Identity-provider client interface."""

from abc import ABC, abstractmethod
from collections.abc import Callable

from userauth.tokens.models import Account, AuthenticationResult


class IdentityProviderClient(ABC):
    """
    Abstract capability for acquiring tokens from an identity provider.

    Implementations own the protocol details and the token cache access.
    Every method blocks until the provider has finished; failures are raised
    as ProviderError carrying a ProviderErrorCode.
    """

    @abstractmethod
    def get_accounts(self) -> list[Account]:
        """
        Enumerate accounts known to the token cache.

        Returns:
            Cached accounts, possibly empty
        """
        pass

    @abstractmethod
    def acquire_token_silent(
        self,
        scopes: list[str],
        account: Account | None,
    ) -> AuthenticationResult | None:
        """
        Acquire a token without user interaction.

        Args:
            scopes: Scopes to request
            account: Cached account to use, or None for the provider default

        Returns:
            AuthenticationResult, or None when nothing usable is cached

        Raises:
            ProviderError: If the provider rejects the request
        """
        pass

    @abstractmethod
    def acquire_token_by_device_code(
        self,
        scopes: list[str],
        on_challenge: Callable[[str], None],
    ) -> AuthenticationResult:
        """
        Acquire a token with the device code flow.

        Args:
            scopes: Scopes to request
            on_challenge: Called once with the human-readable instructions

        Raises:
            ProviderError: If the flow fails, expires or is declined
        """
        pass

    @abstractmethod
    def acquire_token_by_username_password(
        self,
        scopes: list[str],
        username: str,
        password: str,
    ) -> AuthenticationResult:
        """
        Acquire a token by direct credential exchange.

        Raises:
            ProviderError: If the credentials are rejected
        """
        pass


__all__ = ["IdentityProviderClient"]
