"""
Classification of identity-provider failures.

Maps provider error codes onto the AuthError taxonomy. The code table is a
pure lookup so the same failure always produces the same error kind,
whichever acquisition flow raised it.
"""

from userauth.errors.exceptions import (
    AuthenticationCanceledError,
    AuthenticationFailedError,
    AuthenticationFailedWithoutPopupError,
    AuthError,
    ProviderError,
    ProviderErrorCode,
)
from userauth.types import FailureKind

# Provider error code -> failure kind. Codes not listed here are FAILED.
PROVIDER_ERROR_CODES: dict[str, FailureKind] = {
    ProviderErrorCode.AUTHENTICATION_CANCELED: FailureKind.CANCELED,
    ProviderErrorCode.UI_REQUIRED: FailureKind.FAILED_WITHOUT_POPUP,
    ProviderErrorCode.MULTIPLE_TOKENS_MATCHED: FailureKind.FAILED_WITHOUT_POPUP,
    ProviderErrorCode.MISSING_FEDERATION_METADATA_URL: FailureKind.FAILED,
    ProviderErrorCode.FEDERATED_SERVICE_RETURNED_ERROR: FailureKind.FAILED,
}

USER_INTERACTION_REQUIRED_MESSAGE = (
    "User interaction is required to authenticate this user. "
    "Sign in again with the device code flow to refresh the cached credentials."
)
MULTIPLE_TOKENS_MESSAGE = (
    "Multiple cached tokens match this user. "
    "Clear the token cache and sign in again."
)
ORGANIZATION_ID_MESSAGE = (
    "Username and password credentials can only be used with organizational "
    "(work or school) accounts. Personal Microsoft accounts must sign in with "
    "the device code flow."
)
EXPIRED_REFRESH_TOKEN_MESSAGE = (
    "The refresh token has expired or the cached credentials are missing. "
    "Sign in again to obtain a new access token."
)
INVALID_CREDENTIAL_KIND_MESSAGE = "Invalid credential type, must be '{expected}'"

_FEDERATION_CODES = frozenset(
    {
        ProviderErrorCode.MISSING_FEDERATION_METADATA_URL,
        ProviderErrorCode.FEDERATED_SERVICE_RETURNED_ERROR,
    }
)


def classify_provider_error(code: str | None) -> FailureKind:
    """
    Classify a provider error code into a failure kind.

    Args:
        code: Provider error code (ProviderErrorCode value or any string)

    Returns:
        FailureKind for the code; unrecognized codes are FAILED
    """
    if code is None:
        return FailureKind.FAILED
    return PROVIDER_ERROR_CODES.get(code, FailureKind.FAILED)


def get_exception_message(exc: BaseException) -> str:
    """Exception message, followed by its cause's message when it has one."""
    message = exc.message if isinstance(exc, (AuthError, ProviderError)) else str(exc)
    cause = getattr(exc, "cause", None) or exc.__cause__
    if cause is not None:
        message += f": {cause}"
    return message


def map_provider_error(error: ProviderError) -> AuthError:
    """
    Build the typed AuthError for a provider failure.

    Args:
        error: Error raised by an identity-provider client

    Returns:
        AuthError subclass instance carrying a displayable message
    """
    kind = classify_provider_error(error.code)
    context = {"provider_error_code": error.code}

    if kind is FailureKind.CANCELED:
        return AuthenticationCanceledError(error.message, cause=error, context=context)

    if kind is FailureKind.FAILED_WITHOUT_POPUP:
        message = USER_INTERACTION_REQUIRED_MESSAGE
        if error.code == ProviderErrorCode.MULTIPLE_TOKENS_MATCHED:
            message = MULTIPLE_TOKENS_MESSAGE
        return AuthenticationFailedWithoutPopupError(message, cause=error, context=context)

    if error.code in _FEDERATION_CODES:
        return AuthenticationFailedError(ORGANIZATION_ID_MESSAGE, cause=error, context=context)

    return AuthenticationFailedError(get_exception_message(error), cause=error, context=context)


def wrap_acquisition_error(exc: BaseException) -> AuthError:
    """
    Convert any failure raised during acquisition into an AuthError.

    AuthErrors pass through unchanged, provider errors go through the code
    table, and everything else becomes AuthenticationFailedError.
    """
    if isinstance(exc, AuthError):
        return exc
    if isinstance(exc, ProviderError):
        return map_provider_error(exc)
    return AuthenticationFailedError(
        get_exception_message(exc),
        cause=exc,
        context={"error_type": type(exc).__name__},
    )


__all__ = [
    "PROVIDER_ERROR_CODES",
    "USER_INTERACTION_REQUIRED_MESSAGE",
    "MULTIPLE_TOKENS_MESSAGE",
    "ORGANIZATION_ID_MESSAGE",
    "EXPIRED_REFRESH_TOKEN_MESSAGE",
    "INVALID_CREDENTIAL_KIND_MESSAGE",
    "classify_provider_error",
    "get_exception_message",
    "map_provider_error",
    "wrap_acquisition_error",
]
