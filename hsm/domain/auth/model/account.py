"""Account aggregate for the auth domain."""

from datetime import UTC, datetime

from hsm.domain.auth.model.value import (
    AccountId,
    AccountRole,
    AccountStatus,
    normalize_email,
)
from hsm.domain.shared.model.entity import Aggregate


class Account(Aggregate):
    """A local marketplace account.

    The account store owns the full lifecycle (passwords, profile edits, status).
    Identity federation only reads accounts and creates them on first OAuth login.

    Invariants:
    - `email` is unique and stored normalized (stripped, lower-case)
    - `id` and `created_at` are immutable after creation
    """

    id: AccountId
    email: str
    first_name: str
    last_name: str
    profile_image: str | None = None
    role: AccountRole
    status: AccountStatus
    email_verified: bool
    password_hash: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    @classmethod
    def create_from_oauth(
        cls,
        email: str,
        first_name: str,
        last_name: str,
        profile_image: str | None,
        role: AccountRole = AccountRole.CUSTOMER,
    ) -> "Account":
        """Create an account for a first-time OAuth login.

        The provider already verified the email, so the account starts verified
        and active, without a password.
        """
        return cls(
            id=AccountId.generate(),
            email=normalize_email(email),
            first_name=first_name,
            last_name=last_name,
            profile_image=profile_image,
            role=role,
            status=AccountStatus.ACTIVE,
            email_verified=True,
            password_hash=None,
            created_at=datetime.now(UTC),
            updated_at=None,
        )
