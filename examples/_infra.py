"""Shared helpers for examples."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine

from kungfu import Result, Ok, Error

from cartflow.errors import CheckoutError


def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def show[T](result: Result[T, CheckoutError]) -> None:
    match result:
        case Ok(value):
            print(f"  ✓ {value}")
        case Error(e):
            print(f"  ✗ [{e.code}] {e.message}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    asyncio.run(main())
