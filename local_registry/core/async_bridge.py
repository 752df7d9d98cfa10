import asyncio
import concurrent.futures
import threading
from typing import Any, Coroutine, Optional

from local_registry.core.logging_utils import get_module_logger

logger = get_module_logger("AsyncBridge")


class AsyncBridge:
    """
    Bridge between synchronous harness hooks and a background asyncio loop.

    A registry started from a synchronous hook must outlive that hook: its
    stdout has to keep draining and its exit has to keep being observed
    while the tests run. The loop therefore lives on a daemon thread until
    teardown calls ``stop()``.
    """

    def __init__(self, name: str = "local-registry-loop"):
        self.name = name
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.thread: Optional[threading.Thread] = None
        self._running = False
        self._ready = threading.Event()

    def start(self) -> None:
        """Start the event loop in a background thread."""
        if self._running:
            return

        self.thread = threading.Thread(target=self._run_event_loop, name=self.name, daemon=True)
        self.thread.start()

        if not self._ready.wait(timeout=5.0):
            raise RuntimeError("AsyncIO loop failed to start within 5 seconds")

        self._running = True
        logger.debug("AsyncIO loop running in background (thread %s)", self.thread.ident)

    def _run_event_loop(self) -> None:
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)

        self._ready.set()
        try:
            self.loop.run_forever()
        finally:
            self.loop.close()
            logger.debug("AsyncIO loop closed")

    def run_coroutine(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        """Schedule ``coro`` on the background loop from any thread."""
        if self.loop is None or not self._running:
            coro.close()
            raise RuntimeError("AsyncIO loop not started")
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def run(self, coro: Coroutine[Any, Any, Any], timeout: Optional[float] = None) -> Any:
        """Run ``coro`` on the background loop and block for its result."""
        return self.run_coroutine(coro).result(timeout=timeout)

    def stop(self, timeout: float = 5.0) -> None:
        """Cancel pending tasks, stop the loop and join the thread."""
        if self.loop is None or not self._running:
            return

        self._running = False
        future = asyncio.run_coroutine_threadsafe(self._shutdown(), self.loop)
        try:
            future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            logger.warning("AsyncIO loop did not shut down within %.1fs", timeout)
        self.loop.call_soon_threadsafe(self.loop.stop)

        if self.thread is not None and self.thread is not threading.current_thread():
            self.thread.join(timeout=timeout)

    async def _shutdown(self) -> None:
        tasks = [task for task in asyncio.all_tasks(self.loop)
                 if task is not asyncio.current_task()]

        logger.debug("Cancelling %d pending tasks", len(tasks))
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def is_running(self) -> bool:
        return self._running
