"""
Session store — typed storage protocol for checkout sessions.

All methods return Result for explicit error handling. Stores hold
snapshots: a session fetched from a store is a fresh object, and changes
become visible to other readers only after `save`.

Stores lock single operations only; a read-modify-save sequence is not
atomic. `save` refuses to replace a stored COMPLETED or CANCELED
snapshot with a different state, so a stale writer cannot undo a finished
checkout. Stronger mutual exclusion (optimistic versioning, row locks) is
the backend's concern.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from datetime import datetime
from typing import Any, Protocol

import structlog
from kungfu import Result, Ok, Error

from cartflow._types import SessionState
from cartflow.config import utc_now
from cartflow.errors import CheckoutError, SessionNotFoundError, StoreError
from cartflow.session._session import CheckoutSession

logger = structlog.get_logger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Store Protocol — Result-based
# ═══════════════════════════════════════════════════════════════════════════════


class SessionStore(Protocol):
    """
    Checkout session store protocol.

    Implement this for custom backends. `find_expired` and `purge_expired`
    form the query contract used by an external housekeeping sweep.
    """

    async def get(self, session_id: str) -> Result[CheckoutSession | None, StoreError]:
        """Get session. Returns Ok(None) if not found."""
        ...

    async def save(self, session: CheckoutSession) -> Result[None, StoreError]:
        """Insert or replace the session snapshot. A finished session is never replaced by another state."""
        ...

    async def delete(self, session_id: str) -> Result[bool, StoreError]:
        """Delete session. Returns Ok(True) if existed."""
        ...

    async def find_by_cart(self, cart_id: str) -> Result[CheckoutSession | None, StoreError]:
        """Most recent session for a cart."""
        ...

    async def find_by_customer(self, customer_id: str) -> Result[list[CheckoutSession], StoreError]:
        ...

    async def find_expired(self, now: datetime | None = None) -> Result[list[CheckoutSession], StoreError]:
        """Non-terminal sessions past `expires_at`."""
        ...

    async def purge_expired(self, now: datetime | None = None) -> Result[int, StoreError]:
        """Delete expired sessions still STARTED. Returns count."""
        ...

    async def stats(self) -> Result[dict[str, int], StoreError]:
        """Session count per state plus `total`."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Store — Default / Tests
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryStore:
    """
    In-memory session store.

    Single-process only: no distributed lock, data does not survive restart.
    """

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    async def get(self, session_id: str) -> Result[CheckoutSession | None, StoreError]:
        async with self._lock:
            record = self._records.get(session_id)
            if record is None:
                return Ok(None)
            return Ok(CheckoutSession.from_record(record))

    async def save(self, session: CheckoutSession) -> Result[None, StoreError]:
        async with self._lock:
            current = self._records.get(session.id)
            if current is not None and overwrites_terminal(current["state"], session):
                return Error(terminal_conflict(session, current["state"]))
            self._records[session.id] = session.to_record()
        logger.debug("session_saved", session_id=session.id, state=session.state.value)
        return Ok(None)

    async def delete(self, session_id: str) -> Result[bool, StoreError]:
        async with self._lock:
            if session_id in self._records:
                del self._records[session_id]
                return Ok(True)
            return Ok(False)

    async def find_by_cart(self, cart_id: str) -> Result[CheckoutSession | None, StoreError]:
        async with self._lock:
            matches = [r for r in self._records.values() if r["cart_id"] == cart_id]
            if not matches:
                return Ok(None)
            latest = max(matches, key=lambda r: r["created_at"])
            return Ok(CheckoutSession.from_record(latest))

    async def find_by_customer(self, customer_id: str) -> Result[list[CheckoutSession], StoreError]:
        async with self._lock:
            return Ok([
                CheckoutSession.from_record(r)
                for r in self._records.values()
                if r["customer_id"] == customer_id
            ])

    async def find_expired(self, now: datetime | None = None) -> Result[list[CheckoutSession], StoreError]:
        now = now or utc_now()
        async with self._lock:
            sessions = [CheckoutSession.from_record(r) for r in self._records.values()]
        return Ok([s for s in sessions if s.is_expired(now)])

    async def purge_expired(self, now: datetime | None = None) -> Result[int, StoreError]:
        now = now or utc_now()
        async with self._lock:
            stale = [
                key
                for key, r in self._records.items()
                if r["state"] == SessionState.STARTED.value and r["expires_at"] < now
            ]
            for key in stale:
                del self._records[key]

        if stale:
            logger.info("expired_sessions_purged", count=len(stale))
        return Ok(len(stale))

    async def stats(self) -> Result[dict[str, int], StoreError]:
        async with self._lock:
            counts = Counter(r["state"] for r in self._records.values())
        stats = dict(counts)
        stats["total"] = sum(counts.values())
        return Ok(stats)


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def overwrites_terminal(stored_state: str, session: CheckoutSession) -> bool:
    return SessionState(stored_state).is_terminal and stored_state != session.state.value


def terminal_conflict(session: CheckoutSession, stored_state: str) -> StoreError:
    error = StoreError(f"Checkout session {session.id} is already {stored_state}")
    error.context.update(session_id=session.id, stored_state=stored_state, state=session.state.value)
    return error


async def require(store: SessionStore, session_id: str) -> Result[CheckoutSession, CheckoutError]:
    """Fetch a session, mapping `Ok(None)` to `SessionNotFoundError`."""
    match await store.get(session_id):
        case Ok(None):
            return Error(SessionNotFoundError(session_id))
        case Ok(session):
            return Ok(session)
        case Error(e):
            return Error(e)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "SessionStore",
    "MemoryStore",
    "require",
    "overwrites_terminal",
    "terminal_conflict",
)
