"""
Bounded calls into blocking services from asyncio code.

Store and ledger functions are synchronous (SQLAlchemy sessions, file
locks). The delivery check screen runs on a single event loop, so each
call is pushed to a worker thread and awaited with a timeout; the loop
stays free while the call is in flight.
"""

import asyncio
from typing import Any, Callable, Optional, TypeVar

from src.services.exceptions import RemoteTimeoutError

T = TypeVar("T")


async def call_with_timeout(
    func: Callable[..., T],
    *args: Any,
    timeout: Optional[float] = None,
    operation: Optional[str] = None,
    **kwargs: Any,
) -> T:
    """
    Run a blocking callable in a worker thread and await it.

    Args:
        func: Blocking callable
        *args: Positional arguments for func
        timeout: Seconds to wait; None waits indefinitely
        operation: Name used in the timeout error (defaults to func's name)
        **kwargs: Keyword arguments for func

    Returns:
        Whatever func returns

    Raises:
        RemoteTimeoutError: If func does not finish within timeout. The
            worker thread is not interrupted; its result is discarded.
        Exception: Anything func raises is re-raised unchanged
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args, **kwargs), timeout)
    except asyncio.TimeoutError:
        name = operation or getattr(func, "__name__", repr(func))
        raise RemoteTimeoutError(name, timeout)
