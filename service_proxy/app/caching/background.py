"""
Detached background task runner.
"""

import asyncio
from typing import Any, Coroutine, Optional, Set, TYPE_CHECKING

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class BackgroundTaskRunner:
    """Launches tasks whose completion no request waits for.

    Tasks are referenced until they finish so they cannot be collected
    mid-flight. Their exceptions are logged and counted, never raised.
    Tasks are never cancelled; ``drain`` waits for them instead.
    """

    def __init__(self, metrics: Optional["MetricsCollector"] = None):
        self.metrics = metrics
        self.logger = get_logger("proxy.background")
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        self.logger.debug("Background task scheduled", task=name, pending=len(self._tasks))
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        name = task.get_name()

        if task.cancelled():
            self.logger.warning("Background task cancelled", task=name)
            self._record(name, "cancelled")
            return

        exc = task.exception()
        if exc is not None:
            self.logger.error(
                "Background task failed",
                task=name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            self._record(name, "error")
            return

        self._record(name, "success")

    def _record(self, name: str, outcome: str) -> None:
        if not self.metrics:
            return
        # Task names carry the resource after a colon; label by kind only.
        kind = name.split(":", 1)[0]
        self.metrics.increment_counter("background_tasks_total", task=kind, outcome=outcome)

    async def drain(self) -> None:
        """Wait for every in-flight task, including ones spawned while waiting."""
        while self._tasks:
            # wait() leaves the tasks running if the drainer itself is cancelled.
            await asyncio.wait(set(self._tasks))
