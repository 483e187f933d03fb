"""
Session — checkout lifecycle state machine and its storage.

    from cartflow import session as SS

    match SS.CheckoutSession.create(cart_id=..., total=5940, ...):
        case Ok(session):
            session.confirm_payment("mp-12345")
            session.complete("order-789")

    store = SS.MemoryStore()
    await store.save(session)
"""

from __future__ import annotations

from cartflow.session._session import (
    DEFAULT_TTL,
    Transition,
    TRANSITIONS,
    can_transition,
    parse_session_id,
    CheckoutSession,
)
from cartflow.session._store import SessionStore, MemoryStore, require
from cartflow.session._sqlalchemy import (
    Base,
    CheckoutSessionTable,
    SQLAlchemyStore,
)

__all__ = (
    "DEFAULT_TTL",
    "Transition",
    "TRANSITIONS",
    "can_transition",
    "parse_session_id",
    "CheckoutSession",
    "SessionStore",
    "MemoryStore",
    "require",
    "Base",
    "CheckoutSessionTable",
    "SQLAlchemyStore",
)
