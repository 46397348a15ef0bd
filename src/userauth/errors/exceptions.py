"""
Exception hierarchy for user token acquisition and renewal.

Every failure surfaced by the token provider is one of the AuthError
subclasses below. Identity-provider clients raise ProviderError, which the
engine classifies into this taxonomy before it reaches a caller.
"""

from userauth.types import ErrorCategory


class AuthError(Exception):
    """
    Base exception for all authentication errors.

    Attributes:
        message: Human-readable error description, suitable for display
        category: Error classification for handling decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.AUTH

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def requires_reauthentication(self) -> bool:
        return self.category in (ErrorCategory.AUTH, ErrorCategory.USER_CANCELED)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Request Errors
# =============================================================================


class InvalidCredentialKindError(AuthError, ValueError):
    """Requested credential kind is not supported by this provider."""

    category = ErrorCategory.CONFIGURATION


class NotSupportedError(AuthError, NotImplementedError):
    """Operation is not implemented by this provider."""

    category = ErrorCategory.CONFIGURATION


class InvalidConfigurationError(AuthError):
    """Authentication configuration is invalid or incomplete."""

    category = ErrorCategory.CONFIGURATION


# =============================================================================
# Acquisition Errors
# =============================================================================


class AuthenticationCanceledError(AuthError):
    """User or system canceled an interactive flow."""

    category = ErrorCategory.USER_CANCELED


class AuthenticationFailedError(AuthError):
    """Token could not be acquired or renewed."""

    pass


class AuthenticationFailedWithoutPopupError(AuthenticationFailedError):
    """
    Non-interactive acquisition could not proceed.

    Raised when interaction is actually required, or when multiple cached
    tokens match and the provider cannot choose between them.
    """

    pass


# =============================================================================
# Identity Provider Errors
# =============================================================================


class ProviderErrorCode:
    """Error codes an identity-provider client may report."""

    AUTHENTICATION_CANCELED = "authentication_canceled"
    UI_REQUIRED = "authentication_ui_failed"
    MULTIPLE_TOKENS_MATCHED = "multiple_matching_tokens_detected"
    MISSING_FEDERATION_METADATA_URL = "missing_federation_metadata_url"
    FEDERATED_SERVICE_RETURNED_ERROR = "federated_service_returned_error"
    UNKNOWN = "unknown_error"


class ProviderError(Exception):
    """
    Error reported by an identity-provider client.

    Attributes:
        code: One of the ProviderErrorCode values, or any other string for
              errors outside the known vocabulary
        message: Provider error description
        cause: Underlying exception, if any
    """

    def __init__(
        self,
        code: str,
        message: str,
        cause: BaseException | None = None,
    ):
        self.code = code
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ProviderError(code={self.code!r}, message={self.message!r})"


__all__ = [
    "AuthError",
    "InvalidCredentialKindError",
    "NotSupportedError",
    "InvalidConfigurationError",
    "AuthenticationCanceledError",
    "AuthenticationFailedError",
    "AuthenticationFailedWithoutPopupError",
    "ProviderErrorCode",
    "ProviderError",
]
