"""
Error taxonomy and provider error classification.

Provides:
- AuthError hierarchy for typed exceptions
- ProviderError raised by identity-provider clients
- Classification utilities mapping provider error codes to the taxonomy
"""

from userauth.errors.classifiers import (
    EXPIRED_REFRESH_TOKEN_MESSAGE,
    INVALID_CREDENTIAL_KIND_MESSAGE,
    MULTIPLE_TOKENS_MESSAGE,
    ORGANIZATION_ID_MESSAGE,
    PROVIDER_ERROR_CODES,
    USER_INTERACTION_REQUIRED_MESSAGE,
    classify_provider_error,
    get_exception_message,
    map_provider_error,
    wrap_acquisition_error,
)
from userauth.errors.exceptions import (
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

__all__ = [
    # Base classes
    "AuthError",
    # Request errors
    "InvalidCredentialKindError",
    "NotSupportedError",
    "InvalidConfigurationError",
    # Acquisition errors
    "AuthenticationCanceledError",
    "AuthenticationFailedError",
    "AuthenticationFailedWithoutPopupError",
    # Provider errors
    "ProviderError",
    "ProviderErrorCode",
    # Classification
    "PROVIDER_ERROR_CODES",
    "classify_provider_error",
    "get_exception_message",
    "map_provider_error",
    "wrap_acquisition_error",
    # Messages
    "USER_INTERACTION_REQUIRED_MESSAGE",
    "MULTIPLE_TOKENS_MESSAGE",
    "ORGANIZATION_ID_MESSAGE",
    "EXPIRED_REFRESH_TOKEN_MESSAGE",
    "INVALID_CREDENTIAL_KIND_MESSAGE",
]
