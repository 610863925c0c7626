"""SQL repository for linked identities."""

from uuid import UUID

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hsm.domain.auth.error import DuplicateAccountError
from hsm.domain.auth.model.linked_identity import LinkedIdentity
from hsm.domain.auth.model.value import AccountId, LinkedIdentityId, OAuthProvider
from hsm.domain.auth.port.repository import LinkedIdentityRepository
from hsm.infrastructure.persistence.tables import linked_identities_table


def _row_to_identity(row: dict) -> LinkedIdentity:
    """Convert a database row to a LinkedIdentity model."""
    return LinkedIdentity(
        id=LinkedIdentityId(UUID(row["id"])),
        account_id=AccountId(UUID(row["account_id"])),
        provider=OAuthProvider(row["provider"]),
        external_id=row["external_id"],
        access_token=row["access_token"],
        refresh_token=row["refresh_token"],
        token_expires_at=row["token_expires_at"],
        email=row["email"],
        display_name=row["display_name"],
        avatar_url=row["avatar_url"],
        profile_url=row["profile_url"],
        raw_data=row["raw_data"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def identity_to_dict(identity: LinkedIdentity) -> dict:
    """Convert a LinkedIdentity model to a database row dict."""
    return {
        "id": str(identity.id),
        "account_id": str(identity.account_id),
        "provider": identity.provider.value,
        "external_id": identity.external_id,
        "access_token": identity.access_token,
        "refresh_token": identity.refresh_token,
        "token_expires_at": identity.token_expires_at,
        "email": identity.email,
        "display_name": identity.display_name,
        "avatar_url": identity.avatar_url,
        "profile_url": identity.profile_url,
        "raw_data": identity.raw_data,
        "created_at": identity.created_at,
        "updated_at": identity.updated_at,
    }


class SqlLinkedIdentityRepository(LinkedIdentityRepository):
    """SQLAlchemy Core implementation of LinkedIdentityRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, identity_id: LinkedIdentityId) -> LinkedIdentity | None:
        stmt = select(linked_identities_table).where(
            linked_identities_table.c.id == str(identity_id)
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return _row_to_identity(dict(row)) if row else None

    async def get_by_provider_and_external_id(
        self, provider: OAuthProvider, external_id: str
    ) -> LinkedIdentity | None:
        stmt = select(linked_identities_table).where(
            linked_identities_table.c.provider == provider.value,
            linked_identities_table.c.external_id == external_id,
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return _row_to_identity(dict(row)) if row else None

    async def get_by_account_and_provider(
        self, account_id: AccountId, provider: OAuthProvider
    ) -> LinkedIdentity | None:
        stmt = select(linked_identities_table).where(
            linked_identities_table.c.account_id == str(account_id),
            linked_identities_table.c.provider == provider.value,
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return _row_to_identity(dict(row)) if row else None

    async def list_by_account(self, account_id: AccountId) -> list[LinkedIdentity]:
        stmt = (
            select(linked_identities_table)
            .where(linked_identities_table.c.account_id == str(account_id))
            .order_by(linked_identities_table.c.created_at)
        )
        result = await self.session.execute(stmt)
        return [_row_to_identity(dict(row)) for row in result.mappings().all()]

    async def save(self, identity: LinkedIdentity) -> None:
        identity_dict = identity_to_dict(identity)
        existing = await self.get(identity.id)

        if existing:
            stmt = (
                update(linked_identities_table)
                .where(linked_identities_table.c.id == str(identity.id))
                .values(**identity_dict)
            )
        else:
            stmt = insert(linked_identities_table).values(**identity_dict)

        try:
            async with self.session.begin_nested():
                await self.session.execute(stmt)
        except IntegrityError as e:
            raise DuplicateAccountError(
                f"{identity.provider.slug} identity {identity.external_id} is already linked"
            ) from e

    async def delete(self, identity_id: LinkedIdentityId) -> bool:
        stmt = delete(linked_identities_table).where(
            linked_identities_table.c.id == str(identity_id)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
