"""Shared concurrency primitives for the connector fan-out.

Two patterns are exposed:

1. **with_timeout** -- bound a single awaitable by a deadline, converting
   ``asyncio.TimeoutError`` into :class:`ConnectorTimeoutError` so callers
   deal with one exception family.

2. **gather_settled** -- a settle-all ``asyncio.gather``: every awaitable
   runs to completion (or to its own deadline) and its outcome, value or
   exception, lands in the result list at the same index.  One failing
   awaitable never cancels its siblings.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from src.utils.errors import ConnectorTimeoutError

_T = TypeVar("_T")


async def call_async(fn: Callable[..., Awaitable[_T]], *args: Any) -> _T:
    """Call *fn* and await its result inside one coroutine.

    Deferring the call means a method that raises before returning an
    awaitable (or returns something that is not awaitable) fails inside
    the gathered task instead of while the task list is being built.
    """
    return await fn(*args)


async def with_timeout(
    awaitable: Awaitable[_T],
    timeout: float | None,
    provider_name: str | None = None,
) -> _T:
    """Await *awaitable*, raising :class:`ConnectorTimeoutError` after *timeout* seconds.

    ``None`` disables the deadline.
    """
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise ConnectorTimeoutError(
            message=f"Connector timed out after {timeout:g}s",
            provider_name=provider_name,
        ) from exc


async def gather_settled(
    awaitables: Sequence[Awaitable[_T]],
    timeout: float | None = None,
) -> list[_T | BaseException]:
    """Run *awaitables* concurrently and wait for all of them to settle.

    Parameters
    ----------
    awaitables:
        The operations to run.  Each one gets its own deadline.
    timeout:
        Per-awaitable deadline in seconds; ``None`` for no deadline.

    Returns
    -------
    list
        Results in input order.  Failed entries hold the raised exception
        (``ConnectorTimeoutError`` for a missed deadline).
    """
    if not awaitables:
        return []
    wrapped = [with_timeout(aw, timeout) for aw in awaitables]
    return await asyncio.gather(*wrapped, return_exceptions=True)
