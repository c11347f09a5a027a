"""
Background asyncio loop for the Tk UI.

Tk owns the main thread, so controller coroutines run on an event loop in
a daemon thread. Results are handed back to the Tk thread with after().
"""

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, Optional

logger = logging.getLogger(__name__)


class AsyncRunner:
    """Runs coroutines on a dedicated event loop thread."""

    def __init__(self):
        self._loop = asyncio.new_event_loop()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return

        self._thread = threading.Thread(
            target=self._run_loop,
            name="DeliveryCheckLoop",
            daemon=True,
        )
        self._thread.start()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def submit(
        self,
        coro: Coroutine[Any, Any, Any],
        on_done: Optional[Callable[[Future], None]] = None,
    ) -> Future:
        """
        Schedule a coroutine on the loop.

        Args:
            coro: Coroutine to run
            on_done: Optional callback receiving the finished future. It runs
                on the loop thread; UI code should forward it with after().

        Returns:
            concurrent.futures.Future for the coroutine's result
        """
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        if on_done is not None:
            future.add_done_callback(on_done)
        return future

    def stop(self, timeout: float = 2.0) -> None:
        if not self._thread or not self._thread.is_alive():
            return

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Delivery check loop did not stop within timeout")
        else:
            self._loop.close()
