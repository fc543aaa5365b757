"""Poll registry and dispatcher.

Every background behaviour (defence, eating, auto-farm, inventory sync, ...)
is a :class:`Poll` that fires on its own interval. All polls share one asyncio
event loop, so they interleave only at ``await`` points.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional


logger = logging.getLogger(__name__)


@dataclass
class Poll:
    name: str
    interval: float
    callback: Callable[[], Any]
    runs: int = 0
    errors: int = 0


class Scheduler:
    """Maintain an ordered list of polls and run each on its own timer."""

    def __init__(self, verbose: bool = False) -> None:
        self._polls: List[Poll] = []
        self._tasks: Dict[str, asyncio.Task] = {}
        self.verbose = verbose

    # ------------------------------------------------------------------
    # Registration API
    # ------------------------------------------------------------------
    def register(self, name: str, interval: float, callback: Callable[[], Any]) -> Poll:
        """Add a poll; registering an existing name replaces it."""

        self.unregister(name)
        poll = Poll(name=name, interval=interval, callback=callback)
        self._polls.append(poll)
        return poll

    def unregister(self, name: str) -> None:
        """Remove poll ``name`` if currently registered."""

        self._polls = [p for p in self._polls if p.name != name]
        task = self._tasks.pop(name, None)
        if task is not None:
            task.cancel()

    def get(self, name: str) -> Optional[Poll]:
        for poll in self._polls:
            if poll.name == name:
                return poll
        return None

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    async def _fire(self, poll: Poll) -> None:
        poll.runs += 1
        try:
            result = poll.callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            # Background polls retry on their next tick.
            poll.errors += 1
            if self.verbose:
                logger.exception("Poll %s failed", poll.name)
            else:
                logger.debug("Poll %s failed", poll.name, exc_info=True)

    async def _loop(self, poll: Poll) -> None:
        while True:
            await self._fire(poll)
            await asyncio.sleep(poll.interval)

    async def tick_once(self) -> None:
        """Fire every poll once, in registration order."""

        for poll in list(self._polls):
            await self._fire(poll)

    def start(self) -> None:
        """Start one task per poll on the running loop."""

        for poll in self._polls:
            if poll.name not in self._tasks or self._tasks[poll.name].done():
                self._tasks[poll.name] = asyncio.create_task(self._loop(poll), name=f"poll:{poll.name}")
        logger.info("Scheduler started %d polls", len(self._tasks))

    async def stop(self) -> None:
        """Cancel every running poll and wait for them to unwind."""

        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def run(self, until: Optional[Awaitable[Any]] = None) -> None:
        """Start the polls and keep them alive until ``until`` completes."""

        self.start()
        try:
            if until is None:
                await asyncio.Event().wait()
            else:
                await until
        finally:
            await self.stop()

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks.values())

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterable[Poll]:
        return iter(self._polls)

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._polls)


__all__ = ["Poll", "Scheduler"]
