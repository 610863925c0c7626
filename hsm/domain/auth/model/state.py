"""CorrelationState ties an authorization request to its callback."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from hsm.domain.auth.model.value import OAuthProvider


@dataclass(frozen=True)
class CorrelationState:
    """A single-use CSRF/correlation token and what it was issued for.

    The token doubles as the PKCE code verifier for providers that require one.
    """

    token: str
    provider: OAuthProvider
    return_url: str | None
    issued_at: datetime

    def is_expired(self, ttl: timedelta, now: datetime) -> bool:
        return now >= self.issued_at + ttl
