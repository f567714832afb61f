"""
Debounce helper: run an async action only after input has been quiet for a while.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional


class Debouncer:
    """
    Keeps at most one pending action.

    Every schedule() call cancels the previous pending action and restarts
    the quiet period, so only the last call in a burst ever runs.
    """

    def __init__(self, delay: float = 0.3):
        """
        Args:
            delay: Quiet period in seconds, measured from the last schedule() call
        """
        self.delay = delay
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        """True while an action is waiting for its quiet period to end."""
        return self._task is not None and not self._task.done()

    def schedule(self, action: Callable[[], Awaitable[Any]]) -> asyncio.Task:
        """
        Schedule action() after the quiet period, replacing any pending one.

        Must be called from inside a running event loop.
        """
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(action))
        return self._task

    async def _run(self, action: Callable[[], Awaitable[Any]]) -> Any:
        await asyncio.sleep(self.delay)
        # The timer has fired: from here on the action is no longer "pending"
        # and a later cancel() must not interrupt it.
        self._task = None
        return await action()

    def cancel(self) -> None:
        """Drop the pending action, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
