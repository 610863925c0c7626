"""Value objects for the auth domain."""

from enum import StrEnum
from uuid import UUID, uuid4

from pydantic import RootModel


class AccountId(RootModel[UUID]):
    """Unique identifier for an Account."""

    @classmethod
    def generate(cls) -> "AccountId":
        return cls(uuid4())

    def __str__(self) -> str:
        return str(self.root)

    def __hash__(self) -> int:
        return hash(self.root)


class LinkedIdentityId(RootModel[UUID]):
    """Unique identifier for a LinkedIdentity."""

    @classmethod
    def generate(cls) -> "LinkedIdentityId":
        return cls(uuid4())

    def __str__(self) -> str:
        return str(self.root)

    def __hash__(self) -> int:
        return hash(self.root)


class OAuthProvider(StrEnum):
    """The closed set of supported external identity providers."""

    GOOGLE = "GOOGLE"
    FACEBOOK = "FACEBOOK"
    LINKEDIN = "LINKEDIN"
    APPLE = "APPLE"
    TWITTER = "TWITTER"
    GITHUB = "GITHUB"
    MICROSOFT = "MICROSOFT"

    @property
    def slug(self) -> str:
        """Lower-case name used in URLs and configuration keys."""
        return self.value.lower()

    @classmethod
    def parse(cls, name: str) -> "OAuthProvider":
        """Parse a provider name case-insensitively.

        Raises:
            InvalidProviderError: If the name is not a supported provider.
        """
        from hsm.domain.auth.error import InvalidProviderError

        try:
            return cls(name.strip().upper())
        except ValueError as e:
            raise InvalidProviderError(f"Invalid OAuth provider: {name}") from e


class AccountRole(StrEnum):
    """Marketplace role of a local account."""

    CUSTOMER = "CUSTOMER"
    PROVIDER = "PROVIDER"  # Service provider (bids on jobs), not an identity provider
    ADMIN = "ADMIN"


class AccountStatus(StrEnum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


def normalize_email(value: str) -> str:
    """Return the canonical representation used for email comparisons."""
    return value.strip().lower()
