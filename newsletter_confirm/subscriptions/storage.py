"""Storage adapters for newsletter subscriptions."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import asyncpg

from ..domain import EmailAddress, PersonName
from ..utils.time import utc_now

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS subscriptions (
    id UUID PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    subscribed_at TIMESTAMPTZ NOT NULL,
    confirmed_at TIMESTAMPTZ
)
"""


@dataclass(frozen=True)
class NewSubscription:
    name: PersonName
    email: EmailAddress


@dataclass(frozen=True)
class Subscription:
    id: UUID
    name: str
    email: str
    subscribed_at: datetime
    confirmed_at: Optional[datetime] = None

    @property
    def confirmed(self) -> bool:
        return self.confirmed_at is not None


@dataclass(frozen=True)
class ConfirmedSubscription:
    id: UUID
    email: str


class DuplicateSubscription(Exception):
    """A subscription for this email address already exists."""


class SubscriptionStorage(ABC):
    """Abstract storage backend for subscription rows."""

    @abstractmethod
    async def insert(self, new_subscription: NewSubscription) -> UUID:
        """Persist a new unconfirmed subscription and return its id."""

    @abstractmethod
    async def delete(self, subscription_id: UUID) -> None:
        """Remove a subscription row, if present."""

    @abstractmethod
    async def get(self, subscription_id: UUID) -> Optional[Subscription]:
        """Fetch a subscription by id."""

    @abstractmethod
    async def confirm_by_id(self, subscription_id: UUID) -> bool:
        """Mark a subscription confirmed; False if no such row exists."""

    @abstractmethod
    async def fetch_all_confirmed(self) -> list[ConfirmedSubscription]:
        """Return every confirmed subscription."""

    async def close(self) -> None:
        return None


class InMemoryStorage(SubscriptionStorage):
    """In-memory storage fallback backend."""

    def __init__(self) -> None:
        self.rows: dict[UUID, Subscription] = {}

    async def insert(self, new_subscription: NewSubscription) -> UUID:
        email = str(new_subscription.email)
        if any(row.email == email for row in self.rows.values()):
            raise DuplicateSubscription(email)
        subscription_id = uuid4()
        self.rows[subscription_id] = Subscription(
            id=subscription_id,
            name=str(new_subscription.name),
            email=email,
            subscribed_at=utc_now(),
        )
        return subscription_id

    async def delete(self, subscription_id: UUID) -> None:
        self.rows.pop(subscription_id, None)

    async def get(self, subscription_id: UUID) -> Optional[Subscription]:
        return self.rows.get(subscription_id)

    async def confirm_by_id(self, subscription_id: UUID) -> bool:
        row = self.rows.get(subscription_id)
        if row is None:
            return False
        if row.confirmed_at is None:
            self.rows[subscription_id] = Subscription(
                id=row.id,
                name=row.name,
                email=row.email,
                subscribed_at=row.subscribed_at,
                confirmed_at=utc_now(),
            )
        return True

    async def fetch_all_confirmed(self) -> list[ConfirmedSubscription]:
        return [ConfirmedSubscription(id=row.id, email=row.email) for row in self.rows.values() if row.confirmed]


class PostgresStorage(SubscriptionStorage):
    """Postgres-backed storage using asyncpg."""

    def __init__(self, dsn: str) -> None:
        self.dsn = dsn
        self.pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        if self.pool is None:
            pool = await asyncpg.create_pool(dsn=self.dsn, min_size=1, max_size=4)
            async with pool.acquire() as conn:
                await conn.execute(SCHEMA_SQL)
            self.pool = pool

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    async def insert(self, new_subscription: NewSubscription) -> UUID:
        await self.connect()
        assert self.pool is not None
        async with self.pool.acquire() as conn:
            try:
                row = await conn.fetchrow(
                    """
                    INSERT INTO subscriptions (id, name, email, subscribed_at)
                    VALUES ($1, $2, $3, $4)
                    RETURNING id
                    """,
                    uuid4(),
                    str(new_subscription.name),
                    str(new_subscription.email),
                    utc_now(),
                )
            except asyncpg.UniqueViolationError as exc:
                raise DuplicateSubscription(str(new_subscription.email)) from exc
            return row["id"]

    async def delete(self, subscription_id: UUID) -> None:
        await self.connect()
        assert self.pool is not None
        async with self.pool.acquire() as conn:
            await conn.execute("DELETE FROM subscriptions WHERE id=$1", subscription_id)

    async def get(self, subscription_id: UUID) -> Optional[Subscription]:
        await self.connect()
        assert self.pool is not None
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id, name, email, subscribed_at, confirmed_at FROM subscriptions WHERE id=$1",
                subscription_id,
            )
            if row is None:
                return None
            return Subscription(**dict(row))

    async def confirm_by_id(self, subscription_id: UUID) -> bool:
        await self.connect()
        assert self.pool is not None
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                UPDATE subscriptions SET confirmed_at = COALESCE(confirmed_at, $2)
                WHERE id=$1
                RETURNING id
                """,
                subscription_id,
                utc_now(),
            )
            return row is not None

    async def fetch_all_confirmed(self) -> list[ConfirmedSubscription]:
        await self.connect()
        assert self.pool is not None
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("SELECT id, email FROM subscriptions WHERE confirmed_at IS NOT NULL")
            return [ConfirmedSubscription(id=row["id"], email=row["email"]) for row in rows]


def create_storage_from_env(dsn: str | None = None) -> SubscriptionStorage:
    """Create Postgres storage if a DSN is configured, otherwise in-memory."""
    dsn = dsn or os.getenv("NEWSLETTER_PG_DSN") or os.getenv("DATABASE_URL")
    if dsn:
        return PostgresStorage(dsn=dsn)
    return InMemoryStorage()
