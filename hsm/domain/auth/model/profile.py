"""Transient values produced by a provider round-trip."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any


@dataclass(frozen=True)
class ProviderTokens:
    """Tokens returned by a provider's token endpoint."""

    access_token: str
    token_type: str = "bearer"
    refresh_token: str | None = None
    expires_in: int | None = None  # Seconds, relative to receipt
    scope: str | None = None
    id_token: str | None = None  # OpenID identity token (Apple)
    received_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def expires_at(self) -> datetime | None:
        if self.expires_in is None:
            return None
        return self.received_at + timedelta(seconds=self.expires_in)

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "ProviderTokens":
        """Build from a token endpoint JSON body."""
        expires_in = data.get("expires_in")
        return cls(
            access_token=str(data.get("access_token") or ""),
            token_type=str(data.get("token_type") or "bearer"),
            refresh_token=data.get("refresh_token"),
            expires_in=int(expires_in) if expires_in is not None else None,
            scope=data.get("scope"),
            id_token=data.get("id_token"),
        )


@dataclass(frozen=True)
class ExternalProfile:
    """Canonical user profile, normalized from any provider's payload."""

    external_id: str  # Provider-specific user ID
    email: str | None = None
    display_name: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    avatar_url: str | None = None
    profile_url: str | None = None
    raw_payload: dict[str, Any] = field(default_factory=dict)

    def split_name(self) -> tuple[str, str]:
        """Return (first, last) name, falling back to splitting display_name."""
        parts = (self.display_name or "").split()
        first = self.given_name or (parts[0] if parts else "")
        last = self.family_name or " ".join(parts[1:])
        return first, last
