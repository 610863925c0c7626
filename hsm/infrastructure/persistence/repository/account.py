"""SQL repository for the account store."""

import logging
from uuid import UUID

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hsm.domain.auth.error import DuplicateAccountError
from hsm.domain.auth.model.account import Account
from hsm.domain.auth.model.linked_identity import LinkedIdentity
from hsm.domain.auth.model.value import AccountId, AccountRole, AccountStatus, normalize_email
from hsm.domain.auth.port.repository import AccountRepository
from hsm.infrastructure.persistence.repository.linked_identity import identity_to_dict
from hsm.infrastructure.persistence.tables import accounts_table, linked_identities_table

logger = logging.getLogger(__name__)


def _row_to_account(row: dict) -> Account:
    """Convert a database row to an Account model."""
    return Account(
        id=AccountId(UUID(row["id"])),
        email=row["email"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        profile_image=row["profile_image"],
        role=AccountRole(row["role"]),
        status=AccountStatus(row["status"]),
        email_verified=row["email_verified"],
        password_hash=row["password_hash"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _account_to_dict(account: Account) -> dict:
    """Convert an Account model to a database row dict."""
    return {
        "id": str(account.id),
        "email": normalize_email(account.email),
        "first_name": account.first_name,
        "last_name": account.last_name,
        "profile_image": account.profile_image,
        "role": account.role.value,
        "status": account.status.value,
        "email_verified": account.email_verified,
        "password_hash": account.password_hash,
        "created_at": account.created_at,
        "updated_at": account.updated_at,
    }


class SqlAccountRepository(AccountRepository):
    """SQLAlchemy Core implementation of AccountRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, account_id: AccountId, *, for_update: bool = False) -> Account | None:
        stmt = select(accounts_table).where(accounts_table.c.id == str(account_id))
        if for_update:
            # Row lock on PostgreSQL; SQLite has already taken the database
            # write lock with BEGIN IMMEDIATE and drops the clause.
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return _row_to_account(dict(row)) if row else None

    async def get_by_email(self, email: str) -> Account | None:
        stmt = select(accounts_table).where(accounts_table.c.email == normalize_email(email))
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return _row_to_account(dict(row)) if row else None

    async def create_with_identity(self, account: Account, identity: LinkedIdentity) -> None:
        # Savepoint: a duplicate rolls back both inserts and leaves the
        # surrounding unit of work usable for the re-resolve.
        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    insert(accounts_table).values(**_account_to_dict(account))
                )
                await self.session.execute(
                    insert(linked_identities_table).values(**identity_to_dict(identity))
                )
        except IntegrityError as e:
            logger.info("Duplicate account on create: email=%s", account.email)
            raise DuplicateAccountError(
                f"Account or identity already exists for {account.email}"
            ) from e
