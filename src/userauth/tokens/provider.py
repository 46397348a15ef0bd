"""
User token provider: flow selection, acquisition and silent renewal.

Every identity-provider call runs on a dedicated single-thread worker. The
public methods block until the worker finishes, so callers see a plain
synchronous API and never receive a partial result.
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor

from userauth.errors.classifiers import (
    EXPIRED_REFRESH_TOKEN_MESSAGE,
    INVALID_CREDENTIAL_KIND_MESSAGE,
    USER_INTERACTION_REQUIRED_MESSAGE,
    wrap_acquisition_error,
)
from userauth.errors.exceptions import (
    AuthenticationFailedError,
    AuthenticationFailedWithoutPopupError,
    InvalidCredentialKindError,
    NotSupportedError,
)
from userauth.logging.context import clear_log_context, set_log_context
from userauth.logging.utilities import log_exception, log_with_context, mask_identity
from userauth.tokens.models import (
    AcquisitionFailure,
    AcquisitionOutcome,
    AcquisitionSuccess,
    AuthConfiguration,
    AuthenticationResult,
)
from userauth.tokens.policy import ExpirationPolicy
from userauth.tokens.providers.base import IdentityProviderClient
from userauth.tokens.providers.msal_client import MsalIdentityClient
from userauth.tokens.token import RenewableAccessToken
from userauth.types import AccountType, AcquisitionFlow

logger = logging.getLogger(__name__)

PromptAction = Callable[[str], None]
ClientFactory = Callable[[AuthConfiguration], IdentityProviderClient]


def select_flow(
    prompt_action: PromptAction | None,
    user_id: str | None,
    password: str | None,
    renew: bool = False,
) -> AcquisitionFlow:
    """
    Pick the acquisition flow for the available credential material.

    Renewal is always silent so background refreshes never prompt.

    Args:
        prompt_action: Callback for interactive instructions, if any
        user_id: Username to authenticate, may be empty
        password: Secret for username/password exchange, may be None
        renew: Whether this is a renewal of an existing token

    Returns:
        The flow to use
    """
    if prompt_action is None or renew:
        return AcquisitionFlow.SILENT
    if not user_id or password is None:
        return AcquisitionFlow.DEVICE_CODE
    return AcquisitionFlow.USERNAME_PASSWORD


class UserTokenProvider:
    """
    Acquires user access tokens and renews them when they near expiry.

    Usage:
        with UserTokenProvider() as provider:
            token = provider.get_access_token(
                AuthConfiguration(ad_domain="contoso.onmicrosoft.com"),
                prompt_action=print,
            )
            token.authorize_request(lambda scheme, value: headers.update(
                {"Authorization": f"{scheme} {value}"}
            ))

    Thread Safety:
        The provider can be shared. Provider calls are serialized on one
        worker thread; each token handle serializes its own renewals.
    """

    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        expiration_policy: ExpirationPolicy | None = None,
        executor: Executor | None = None,
    ):
        """
        Initialize provider.

        Args:
            client_factory: Builds the identity-provider client for a
                configuration (default: MsalIdentityClient)
            expiration_policy: Renewal policy (default: 5 minute threshold,
                FORCE_EXPIRED_ACCESS_TOKEN honored)
            executor: Worker to run provider calls on (default: a dedicated
                single-thread pool owned by this provider)
        """
        self._client_factory = client_factory or MsalIdentityClient
        self.expiration_policy = expiration_policy or ExpirationPolicy.from_env()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="userauth-acquire"
        )
        self._worker_state = threading.local()
        self._clients: dict[tuple, IdentityProviderClient] = {}
        self._clients_lock = threading.Lock()

    def __enter__(self) -> "UserTokenProvider":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Shut down the worker if this provider created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def get_access_token(
        self,
        config: AuthConfiguration,
        prompt_behavior: str | None = None,
        prompt_action: PromptAction | None = None,
        user_id: str | None = None,
        password: str | None = None,
        credential_type: str = AccountType.USER,
    ) -> RenewableAccessToken:
        """
        Acquire a token for a user and wrap it in a renewable handle.

        Args:
            config: Directory and client settings
            prompt_behavior: Prompt hint, accepted for interface compatibility
            prompt_action: Callback receiving device code instructions. When
                None, only the silent flow is attempted.
            user_id: Username; selects the cached account for silent flow
            password: Secret for username/password exchange
            credential_type: Must be AccountType.USER

        Returns:
            RenewableAccessToken holding the result

        Raises:
            InvalidCredentialKindError: If credential_type is not "User"
            AuthenticationCanceledError: If the user canceled the flow
            AuthenticationFailedWithoutPopupError: If interaction is required
            AuthenticationFailedError: For any other failure
        """
        if credential_type != AccountType.USER:
            raise InvalidCredentialKindError(
                INVALID_CREDENTIAL_KIND_MESSAGE.format(expected=AccountType.USER.value),
                context={"credential_type": str(credential_type)},
            )

        result = self._acquire_token(config, prompt_action, user_id, password)
        if result is None:
            raise AuthenticationFailedWithoutPopupError(
                USER_INTERACTION_REQUIRED_MESSAGE,
                context={"user": mask_identity(user_id)},
            )

        return RenewableAccessToken(result, self, config)

    def get_access_token_with_certificate(
        self,
        config: AuthConfiguration,
        principal_id: str,
        certificate_thumbprint: str,
        credential_type: str,
    ) -> RenewableAccessToken:
        """Certificate-based user authentication is not supported."""
        raise NotSupportedError("Certificate authentication is not supported for user accounts")

    def renew(self, token: RenewableAccessToken) -> None:
        """
        Silently renew a token handle's result if it is due for renewal.

        Called by the handle before every use. Never prompts and never
        resupplies a password.

        Raises:
            AuthenticationFailedError: If the provider returns no result
            AuthError: Any classified acquisition failure
        """
        result = token.auth_result
        log_with_context(
            logger,
            logging.DEBUG,
            "Checking access token for renewal",
            expires_on=result.expires_on,
            renew=True,
            tenant_id=result.tenant_id,
            user=mask_identity(token.user_id),
        )
        if result.account is not None:
            log_with_context(
                logger,
                logging.DEBUG,
                "Renewal account details",
                environment=result.account.environment,
                home_account_id=mask_identity(result.account.home_account_id),
                user=mask_identity(result.account.username),
            )

        if not self.expiration_policy.is_expired(result):
            return

        logger.info("Access token is expired or near expiry, renewing silently")
        new_result = self._acquire_token(token.configuration, None, token.user_id, None, renew=True)
        if new_result is None:
            raise AuthenticationFailedError(
                EXPIRED_REFRESH_TOKEN_MESSAGE,
                context={"user": mask_identity(token.user_id)},
            )

        token._replace_result(new_result)
        log_with_context(
            logger,
            logging.INFO,
            "Access token renewed",
            expires_on=new_result.expires_on,
            tenant_id=new_result.tenant_id,
            user=mask_identity(token.user_id),
        )

    def _acquire_token(
        self,
        config: AuthConfiguration,
        prompt_action: PromptAction | None,
        user_id: str | None,
        password: str | None,
        renew: bool = False,
    ) -> AuthenticationResult | None:
        outcome = self._safe_acquire_token(config, prompt_action, user_id, password, renew)
        if isinstance(outcome, AcquisitionFailure):
            error = outcome.error
            log_exception(
                logger,
                error,
                "Token acquisition failed",
                level=logging.WARNING,
                include_traceback=False,
                renew=renew,
                **error.context,
            )
            raise error from error.cause
        return outcome.result

    def _safe_acquire_token(
        self,
        config: AuthConfiguration,
        prompt_action: PromptAction | None,
        user_id: str | None,
        password: str | None,
        renew: bool = False,
    ) -> AcquisitionOutcome:
        """Run the acquisition on the worker and capture the outcome."""
        try:
            if getattr(self._worker_state, "active", False):
                # Already on the worker (prompt callback re-entered the provider)
                result = self._do_acquire_token(config, user_id, password, prompt_action, renew)
            else:
                future = self._executor.submit(
                    self._run_on_worker, config, user_id, password, prompt_action, renew
                )
                result = future.result()
        except Exception as e:
            return AcquisitionFailure(wrap_acquisition_error(e))
        return AcquisitionSuccess(result)

    def _run_on_worker(self, *args) -> AuthenticationResult | None:
        self._worker_state.active = True
        try:
            return self._do_acquire_token(*args)
        finally:
            self._worker_state.active = False
            clear_log_context()

    def _get_client(self, config: AuthConfiguration) -> IdentityProviderClient:
        """
        Client bound to a configuration, built once and reused.

        Acquisition and later renewals must see the same token cache. With no
        explicit cache the client's in-memory cache is the only one there is.
        """
        key = (config, id(config.token_cache))
        with self._clients_lock:
            client = self._clients.get(key)
            if client is None:
                client = self._client_factory(config)
                self._clients[key] = client
            return client

    def _do_acquire_token(
        self,
        config: AuthConfiguration,
        user_id: str | None,
        password: str | None,
        prompt_action: PromptAction | None,
        renew: bool = False,
    ) -> AuthenticationResult | None:
        client = self._get_client(config)
        flow = select_flow(prompt_action, user_id, password, renew)
        set_log_context(
            operation="renew" if renew else "acquire",
            flow=flow.value,
            client_id=config.client_id,
        )

        log_with_context(
            logger,
            logging.INFO,
            "Acquiring access token",
            authority=config.authority,
            ad_domain=config.ad_domain,
            ad_endpoint=config.ad_endpoint,
            client_id=config.client_id,
            redirect_uri=config.client_redirect_uri,
            validate_authority=config.validate_authority,
            flow=flow.value,
        )

        scopes = config.scopes
        if flow is AcquisitionFlow.SILENT:
            accounts = client.get_accounts()
            account = next((a for a in accounts if a.username == user_id), None)
            if account is None:
                log_with_context(
                    logger,
                    logging.WARNING,
                    "No cached account matches user, using provider default account",
                    user=mask_identity(user_id),
                    account_count=len(accounts),
                )
            return client.acquire_token_silent(scopes, account)

        if flow is AcquisitionFlow.DEVICE_CODE:
            return client.acquire_token_by_device_code(scopes, prompt_action)

        return client.acquire_token_by_username_password(scopes, user_id, password)


__all__ = ["UserTokenProvider", "select_flow"]
