import asyncio
import inspect
import logging
from typing import Callable, Dict, List, Set

logger = logging.getLogger(__name__)


class EventChannel:
    """
    A non-blocking event emitter.

    emit() schedules every listener on the running event loop and returns
    immediately, so a slow or failing listener can never hold up or break
    the request that emitted the event. Listener errors are logged.

        controller.on("create", notify_slack)
        controller.emit("create", ctx, record)
    """

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}
        # One-shot registrations, per event
        self._once: Dict[str, List[Callable]] = {}
        self._pending: Set[asyncio.Future] = set()

    def on(self, event: str, listener: Callable) -> Callable:
        self._listeners.setdefault(event, []).append(listener)
        return listener

    def once(self, event: str, listener: Callable) -> Callable:
        self._once.setdefault(event, []).append(listener)
        return self.on(event, listener)

    def off(self, event: str, listener: Callable) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)
        once = self._once.get(event, [])
        if listener in once:
            once.remove(listener)

    def listeners(self, event: str) -> List[Callable]:
        return list(self._listeners.get(event, []))

    def emit(self, event: str, *args) -> bool:
        listeners = self.listeners(event)
        if not listeners:
            return False

        loop = asyncio.get_running_loop()
        for listener in listeners:
            if listener in self._once.get(event, []):
                self.off(event, listener)
            future = loop.create_future()
            self._pending.add(future)
            future.add_done_callback(self._pending.discard)
            loop.call_soon(self._dispatch, event, listener, args, future)
        return True

    def _dispatch(self, event: str, listener: Callable, args: tuple, future: asyncio.Future):
        try:
            result = listener(*args)
        except Exception:
            logger.exception(f"Listener for '{event}' failed")
            _resolve(future)
            return

        if not inspect.isawaitable(result):
            _resolve(future)
            return

        task = asyncio.ensure_future(result)

        def finish(done: asyncio.Future):
            if not done.cancelled() and done.exception() is not None:
                logger.error(
                    f"Listener for '{event}' failed", exc_info=done.exception()
                )
            _resolve(future)

        task.add_done_callback(finish)

    async def drain(self) -> None:
        """Wait for every listener scheduled so far to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))


def _resolve(future: asyncio.Future) -> None:
    if not future.done():
        future.set_result(None)
