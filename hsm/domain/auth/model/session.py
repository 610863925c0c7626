"""Local session credentials minted after a successful login."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    expires_in: int  # Seconds until access token expires
