"""
SQLAlchemy integration — persistent session store.

Usage:
    engine = create_async_engine("sqlite+aiosqlite:///checkout.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    store = SQLAlchemyStore(async_sessionmaker(engine, expire_on_commit=False))
    orchestrator = CO.CheckoutOrchestrator(..., store=store)

The table keeps one row per checkout session; delivery details and guest
contact data are JSON columns. Timestamps are stored as naive UTC and
returned timezone-aware.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import structlog
from kungfu import Result, Ok, Error
from sqlalchemy import JSON, DateTime, Integer, String, Text, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from cartflow._types import SessionState
from cartflow.config import utc_now
from cartflow.errors import StoreError
from cartflow.session._session import CheckoutSession
from cartflow.session._store import overwrites_terminal, terminal_conflict

logger = structlog.get_logger(__name__)

_NON_TERMINAL = (SessionState.STARTED.value, SessionState.PAYMENT_CONFIRMED.value)


# ═══════════════════════════════════════════════════════════════════════════════
# Columns
# ═══════════════════════════════════════════════════════════════════════════════


class UTCDateTime(TypeDecorator[datetime]):
    """Store naive UTC, load aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


class Base(DeclarativeBase):
    pass


class CheckoutSessionTable(Base):
    __tablename__ = "checkout_sessions"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    cart_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    state: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    total: Mapped[int] = mapped_column(Integer, nullable=False)
    delivery_details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    guest: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    payment_reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    order_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    canceled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    cancel_reason: Mapped[str | None] = mapped_column(Text, nullable=True)


def to_row(session: CheckoutSession) -> CheckoutSessionTable:
    return CheckoutSessionTable(**session.to_record())


def from_row(row: CheckoutSessionTable) -> CheckoutSession:
    return CheckoutSession.from_record({
        column.key: getattr(row, column.key)
        for column in CheckoutSessionTable.__table__.columns
    })


# ═══════════════════════════════════════════════════════════════════════════════
# SQLAlchemy Store
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyStore:
    """Session store backed by an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, session_id: str) -> Result[CheckoutSession | None, StoreError]:
        try:
            async with self._session_factory() as db:
                row = await db.get(CheckoutSessionTable, session_id)
                return Ok(from_row(row) if row is not None else None)
        except SQLAlchemyError as e:
            return Error(StoreError(f"Failed to get session: {e}", e))

    async def save(self, session: CheckoutSession) -> Result[None, StoreError]:
        try:
            async with self._session_factory() as db:
                current = await db.get(CheckoutSessionTable, session.id)
                if current is not None and overwrites_terminal(current.state, session):
                    return Error(terminal_conflict(session, current.state))
                await db.merge(to_row(session))
                await db.commit()
        except SQLAlchemyError as e:
            return Error(StoreError(f"Failed to save session: {e}", e))

        logger.debug("session_saved", session_id=session.id, state=session.state.value)
        return Ok(None)

    async def delete(self, session_id: str) -> Result[bool, StoreError]:
        try:
            async with self._session_factory() as db:
                row = await db.get(CheckoutSessionTable, session_id)
                if row is None:
                    return Ok(False)
                await db.delete(row)
                await db.commit()
                return Ok(True)
        except SQLAlchemyError as e:
            return Error(StoreError(f"Failed to delete session: {e}", e))

    async def find_by_cart(self, cart_id: str) -> Result[CheckoutSession | None, StoreError]:
        stmt = (
            select(CheckoutSessionTable)
            .where(CheckoutSessionTable.cart_id == cart_id)
            .order_by(CheckoutSessionTable.created_at.desc())
            .limit(1)
        )
        match await self._select(stmt, "find sessions by cart"):
            case Ok(sessions):
                return Ok(sessions[0] if sessions else None)
            case Error(e):
                return Error(e)

    async def find_by_customer(self, customer_id: str) -> Result[list[CheckoutSession], StoreError]:
        stmt = select(CheckoutSessionTable).where(CheckoutSessionTable.customer_id == customer_id)
        return await self._select(stmt, "find sessions by customer")

    async def find_expired(self, now: datetime | None = None) -> Result[list[CheckoutSession], StoreError]:
        stmt = select(CheckoutSessionTable).where(
            CheckoutSessionTable.expires_at < (now or utc_now()),
            CheckoutSessionTable.state.in_(_NON_TERMINAL),
        )
        return await self._select(stmt, "find expired sessions")

    async def purge_expired(self, now: datetime | None = None) -> Result[int, StoreError]:
        stmt = delete(CheckoutSessionTable).where(
            CheckoutSessionTable.expires_at < (now or utc_now()),
            CheckoutSessionTable.state == SessionState.STARTED.value,
        )
        try:
            async with self._session_factory() as db:
                cursor = await db.execute(stmt)
                await db.commit()
                count = cursor.rowcount or 0
        except SQLAlchemyError as e:
            return Error(StoreError(f"Failed to purge expired sessions: {e}", e))

        if count:
            logger.info("expired_sessions_purged", count=count)
        return Ok(count)

    async def stats(self) -> Result[dict[str, int], StoreError]:
        stmt = select(CheckoutSessionTable.state, func.count()).group_by(CheckoutSessionTable.state)
        try:
            async with self._session_factory() as db:
                rows: Sequence[Any] = (await db.execute(stmt)).all()
        except SQLAlchemyError as e:
            return Error(StoreError(f"Failed to compute stats: {e}", e))

        stats = {state: count for state, count in rows}
        stats["total"] = sum(count for _, count in rows)
        return Ok(stats)

    async def _select(self, stmt: Any, what: str) -> Result[list[CheckoutSession], StoreError]:
        try:
            async with self._session_factory() as db:
                rows = (await db.execute(stmt)).scalars().all()
                return Ok([from_row(row) for row in rows])
        except SQLAlchemyError as e:
            return Error(StoreError(f"Failed to {what}: {e}", e))


__all__ = (
    "Base",
    "UTCDateTime",
    "CheckoutSessionTable",
    "to_row",
    "from_row",
    "SQLAlchemyStore",
)
