"""Token acquisition data models and configuration."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from userauth.errors.exceptions import AuthError

# Public-client defaults for interactive Azure sign-in
DEFAULT_AD_ENDPOINT = "https://login.microsoftonline.com/"
DEFAULT_AD_DOMAIN = "common"
DEFAULT_CLIENT_ID = "1950a258-227b-4e31-a9cf-717495945fc2"
DEFAULT_RESOURCE_CLIENT_URI = "https://management.core.windows.net/"
DEFAULT_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"
USER_IMPERSONATION_SCOPE = "user_impersonation"


@dataclass(frozen=True)
class AuthConfiguration:
    """
    Directory and client settings for user token acquisition.

    Attributes:
        ad_endpoint: Directory service endpoint (e.g. https://login.microsoftonline.com/)
        ad_domain: Tenant id or domain appended to the endpoint
        client_id: Public client (application) id
        resource_client_uri: Resource the token is requested for
        client_redirect_uri: Redirect URI registered for the client
        token_cache: Identity-provider token cache shared with the caller
        validate_authority: Whether the provider validates the authority
    """

    ad_endpoint: str = DEFAULT_AD_ENDPOINT
    ad_domain: str = DEFAULT_AD_DOMAIN
    client_id: str = DEFAULT_CLIENT_ID
    resource_client_uri: str = DEFAULT_RESOURCE_CLIENT_URI
    client_redirect_uri: str = DEFAULT_REDIRECT_URI
    token_cache: Any = field(default=None, compare=False, repr=False)
    validate_authority: bool = True

    @property
    def authority(self) -> str:
        """Endpoint and domain joined by a single slash."""
        return f"{self.ad_endpoint.rstrip('/')}/{self.ad_domain.strip('/')}"

    @property
    def scopes(self) -> list[str]:
        """Scopes requested for the configured resource."""
        return [f"{self.resource_client_uri.rstrip('/')}/{USER_IMPERSONATION_SCOPE}"]


@dataclass(frozen=True)
class Account:
    """
    Account associated with an authentication result.

    Attributes:
        username: Sign-in name (UPN)
        home_account_id: Provider-specific home account identifier
        environment: Environment marker the account is bound to, if any
    """

    username: str
    home_account_id: str | None = None
    environment: str | None = None


@dataclass(frozen=True)
class AuthenticationResult:
    """
    Result of a successful token acquisition.

    Treated as a value: a renewal replaces the whole result.

    Attributes:
        access_token: Bearer token string
        expires_on: UTC timestamp when the token expires
        tenant_id: Tenant that issued the token
        account: Account the token was issued to
        scopes: Scopes granted
    """

    access_token: str = field(repr=False)
    expires_on: datetime
    tenant_id: str | None = None
    account: Account | None = None
    scopes: tuple[str, ...] = ()

    @classmethod
    def from_msal_response(
        cls,
        response: dict,
        account: Account | None = None,
        now: datetime | None = None,
    ) -> "AuthenticationResult":
        """
        Create a result from an MSAL token response.

        Args:
            response: MSAL acquire_token_* response dict
            account: Account the response belongs to (derived from the
                id token claims when omitted)
            now: Reference time for relative expiry (default: current UTC time)

        Returns:
            AuthenticationResult instance
        """
        now = now or datetime.now(UTC)
        expires_in = int(response.get("expires_in", 3600))
        claims = response.get("id_token_claims") or {}

        if account is None:
            username = claims.get("preferred_username") or claims.get("upn")
            if username:
                account = Account(
                    username=username,
                    home_account_id=_home_account_id(claims),
                )

        scope = response.get("scope") or ""
        return cls(
            access_token=response["access_token"],
            expires_on=now + timedelta(seconds=expires_in),
            tenant_id=claims.get("tid"),
            account=account,
            scopes=tuple(scope.split()),
        )


def _home_account_id(claims: dict) -> str | None:
    oid = claims.get("oid")
    tid = claims.get("tid")
    if oid and tid:
        return f"{oid}.{tid}"
    return None


@dataclass(frozen=True)
class AcquisitionSuccess:
    """Acquisition completed. ``result`` is None when the provider returned nothing."""

    result: AuthenticationResult | None


@dataclass(frozen=True)
class AcquisitionFailure:
    """Acquisition failed with a classified error."""

    error: AuthError


AcquisitionOutcome = AcquisitionSuccess | AcquisitionFailure


__all__ = [
    "AuthConfiguration",
    "Account",
    "AuthenticationResult",
    "AcquisitionSuccess",
    "AcquisitionFailure",
    "AcquisitionOutcome",
    "DEFAULT_AD_ENDPOINT",
    "DEFAULT_AD_DOMAIN",
    "DEFAULT_CLIENT_ID",
    "DEFAULT_RESOURCE_CLIENT_URI",
    "DEFAULT_REDIRECT_URI",
]
