"""
Core types and enums shared across the userauth package.

Kept free of imports from other userauth modules so every layer can depend
on it without creating cycles.
"""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of authentication failures for handling decisions.

    Categories:
        AUTH: Credentials were rejected or could not be obtained; the caller
              must re-authenticate to get a new token handle
        USER_CANCELED: The user (or the system) canceled an interactive flow
        CONFIGURATION: The request itself is invalid (unsupported credential
                       kind, missing client id, unsupported operation)
        UNKNOWN: Unclassified errors
    """

    AUTH = "auth"
    USER_CANCELED = "user_canceled"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class AccountType(str, Enum):
    """Credential kinds an account can be authenticated with."""

    USER = "User"
    SERVICE_PRINCIPAL = "ServicePrincipal"
    ACCESS_TOKEN = "AccessToken"
    MANAGED_SERVICE = "ManagedService"


class LoginType(str, Enum):
    """
    Login type of an authenticated user.

    ORG_ID is the default organizational (work or school) account. LIVE_ID is
    reported for accounts bound to an environment marker.
    """

    ORG_ID = "OrgId"
    LIVE_ID = "LiveId"


class AcquisitionFlow(Enum):
    """Mutually exclusive token acquisition flows."""

    SILENT = "silent"
    DEVICE_CODE = "device_code"
    USERNAME_PASSWORD = "username_password"


class FailureKind(Enum):
    """Target kinds of the provider error classification table."""

    CANCELED = "canceled"
    FAILED_WITHOUT_POPUP = "failed_without_popup"
    FAILED = "failed"


__all__ = [
    "ErrorCategory",
    "AccountType",
    "LoginType",
    "AcquisitionFlow",
    "FailureKind",
]
