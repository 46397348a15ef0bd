"""Expiry policy deciding when a held token is due for renewal."""

import logging
import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from userauth.logging.utilities import log_with_context
from userauth.tokens.models import AuthenticationResult

logger = logging.getLogger(__name__)

# Tokens within this margin of expiry are renewed before use
EXPIRATION_THRESHOLD = timedelta(minutes=5)

# When set (any value), every freshness check reports "expired"
FORCE_EXPIRED_ENV_VAR = "FORCE_EXPIRED_ACCESS_TOKEN"


def utc_now() -> datetime:
    return datetime.now(UTC)


class ExpirationPolicy:
    """
    Decides whether an authentication result must be renewed before use.

    The clock and the force-expired switch are injectable so renewal can be
    exercised deterministically.
    """

    def __init__(
        self,
        threshold: timedelta = EXPIRATION_THRESHOLD,
        clock: Callable[[], datetime] = utc_now,
        force_expired: bool = False,
    ):
        self.threshold = threshold
        self.clock = clock
        self.force_expired = force_expired

    @classmethod
    def from_env(cls, **kwargs) -> "ExpirationPolicy":
        """Policy with force_expired taken from FORCE_EXPIRED_ACCESS_TOKEN."""
        kwargs.setdefault("force_expired", os.environ.get(FORCE_EXPIRED_ENV_VAR) is not None)
        return cls(**kwargs)

    def time_until_expiration(self, result: AuthenticationResult) -> timedelta:
        return result.expires_on - self.clock()

    def is_expired(self, result: AuthenticationResult) -> bool:
        """
        Whether the result is expired or within the threshold of expiring.

        A token with exactly the threshold left counts as expired
        (now >= expires_on - threshold).
        """
        if self.force_expired:
            logger.debug("Access token forced expired")
            return True

        remaining = self.time_until_expiration(result)
        log_with_context(
            logger,
            logging.DEBUG,
            "Checking access token expiration",
            expires_on=result.expires_on,
            current_time=result.expires_on - remaining,
            threshold_seconds=self.threshold.total_seconds(),
            remaining_seconds=remaining.total_seconds(),
        )
        return remaining <= self.threshold


__all__ = [
    "EXPIRATION_THRESHOLD",
    "FORCE_EXPIRED_ENV_VAR",
    "ExpirationPolicy",
    "utc_now",
]
