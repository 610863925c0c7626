"""Core tables for accounts, linked identities and pending OAuth states (SQLite and PostgreSQL)."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.types import JSON

metadata = MetaData()


accounts_table = Table(
    "accounts",
    metadata,
    Column("id", String, primary_key=True),  # UUID as string
    Column("email", String(320), nullable=False),  # Normalized (lower-case)
    Column("first_name", String(255), nullable=False),
    Column("last_name", String(255), nullable=False),
    Column("profile_image", Text, nullable=True),
    Column("role", String(32), nullable=False),  # AccountRole as string
    Column("status", String(32), nullable=False),  # AccountStatus as string
    Column("email_verified", Boolean, nullable=False, default=False),
    Column("password_hash", String(255), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=True),
    UniqueConstraint("email", name="uq_accounts_email"),
)


# One row per (account, provider) link
linked_identities_table = Table(
    "linked_identities",
    metadata,
    Column("id", String, primary_key=True),  # UUID as string
    Column(
        "account_id", String, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    ),
    Column("provider", String(32), nullable=False),  # OAuthProvider as string
    Column("external_id", String(255), nullable=False),  # Provider-specific user ID
    Column("access_token", Text, nullable=True),
    Column("refresh_token", Text, nullable=True),
    Column("token_expires_at", DateTime(timezone=True), nullable=True),
    Column("email", String(320), nullable=True),
    Column("display_name", String(255), nullable=True),
    Column("avatar_url", Text, nullable=True),
    Column("profile_url", Text, nullable=True),
    Column("raw_data", JSON, nullable=True),  # Last profile payload from the provider
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=True),
    UniqueConstraint("provider", "external_id", name="uq_linked_identity_provider_external"),
    UniqueConstraint("account_id", "provider", name="uq_linked_identity_account_provider"),
)

Index("ix_linked_identities_account_id", linked_identities_table.c.account_id)


# Pending login correlation tokens; used only by the database state backend
oauth_states_table = Table(
    "oauth_states",
    metadata,
    Column("token", String(128), primary_key=True),
    Column("provider", String(32), nullable=False),
    Column("return_url", Text, nullable=True),
    Column("issued_at", DateTime(timezone=True), nullable=False),
    Column("expires_at", DateTime(timezone=True), nullable=False),
)

Index("ix_oauth_states_expires_at", oauth_states_table.c.expires_at)
