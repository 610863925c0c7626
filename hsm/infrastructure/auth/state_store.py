"""State store adapters for OAuth correlation tokens."""

import asyncio
import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hsm.domain.auth.error import InvalidStateError
from hsm.domain.auth.model.state import CorrelationState
from hsm.domain.auth.model.value import OAuthProvider
from hsm.domain.auth.port.state_store import StateStore
from hsm.infrastructure.persistence.tables import oauth_states_table

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# 32 random bytes -> 43 URL-safe characters, also a valid PKCE code verifier
TOKEN_BYTES = 32


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class InMemoryStateStore(StateStore):
    """Process-local state store.

    Only suitable for a single server process. Issue and consume hold one
    asyncio lock so check-and-delete is a single step.
    """

    def __init__(self, ttl: timedelta, clock: Clock = _utcnow) -> None:
        self._ttl = ttl
        self._clock = clock
        self._states: dict[str, CorrelationState] = {}
        self._lock = asyncio.Lock()

    async def issue(self, provider: OAuthProvider, return_url: str | None = None) -> str:
        token = secrets.token_urlsafe(TOKEN_BYTES)
        async with self._lock:
            self._states[token] = CorrelationState(
                token=token,
                provider=provider,
                return_url=return_url,
                issued_at=self._clock(),
            )
        return token

    async def consume(self, token: str) -> CorrelationState:
        async with self._lock:
            state = self._states.pop(token, None)

        if state is None:
            raise InvalidStateError("Invalid or expired state")
        if state.is_expired(self._ttl, self._clock()):
            raise InvalidStateError("Invalid or expired state")
        return state

    async def sweep(self) -> int:
        now = self._clock()
        async with self._lock:
            expired = [t for t, s in self._states.items() if s.is_expired(self._ttl, now)]
            for token in expired:
                del self._states[token]

        if expired:
            logger.debug("Swept expired OAuth states: count=%d", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._states)


class SqlStateStore(StateStore):
    """Database-backed state store, shared by every server instance.

    Each operation runs in its own short transaction, independent of the
    request's unit of work, so a consumed token stays consumed even if the
    rest of the callback fails.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ttl: timedelta,
        clock: Clock = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._ttl = ttl
        self._clock = clock

    async def issue(self, provider: OAuthProvider, return_url: str | None = None) -> str:
        token = secrets.token_urlsafe(TOKEN_BYTES)
        issued_at = self._clock()

        async with self._session_factory() as session:
            await session.execute(
                insert(oauth_states_table).values(
                    token=token,
                    provider=provider.value,
                    return_url=return_url,
                    issued_at=issued_at,
                    expires_at=issued_at + self._ttl,
                )
            )
            await session.commit()
        return token

    async def consume(self, token: str) -> CorrelationState:
        # DELETE ... RETURNING: only one concurrent caller can get the row back
        stmt = (
            delete(oauth_states_table)
            .where(oauth_states_table.c.token == token)
            .returning(
                oauth_states_table.c.provider,
                oauth_states_table.c.return_url,
                oauth_states_table.c.issued_at,
            )
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            row = result.mappings().first()
            await session.commit()

        if row is None:
            raise InvalidStateError("Invalid or expired state")

        state = CorrelationState(
            token=token,
            provider=OAuthProvider(row["provider"]),
            return_url=row["return_url"],
            issued_at=_as_utc(row["issued_at"]),
        )
        if state.is_expired(self._ttl, self._clock()):
            raise InvalidStateError("Invalid or expired state")
        return state

    async def sweep(self) -> int:
        stmt = delete(oauth_states_table).where(oauth_states_table.c.expires_at <= self._clock())
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()

        if result.rowcount:
            logger.debug("Swept expired OAuth states: count=%d", result.rowcount)
        return result.rowcount or 0
