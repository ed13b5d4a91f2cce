"""
Unified Notification Service
Fans one business event out to every notification channel (Slack, email,
analytics) after the response has been sent. Channels are independent: a
failure in one is logged and never reaches the others or the caller.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable

from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)


class NotificationBatch:
    """Named channel calls that run together as one fire-and-forget task"""

    def __init__(self, label: str):
        self.label = label
        self.calls: list[tuple[str, Callable, tuple, dict]] = []

    def add(self, name: str, func: Callable, *args: Any, **kwargs: Any) -> "NotificationBatch":
        self.calls.append((name, func, args, kwargs))
        return self

    def __len__(self) -> int:
        return len(self.calls)

    async def _guarded(self, name: str, func: Callable, args: tuple, kwargs: dict) -> bool:
        # Catches synchronous raises as well as failures inside the coroutine
        try:
            result = func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"❌ {self.label}: {name} notification failed: {e}", exc_info=True)
            return False

        if result is False:
            logger.warning(f"⚠️ {self.label}: {name} notification skipped or rejected")
            return False
        return True

    async def run(self) -> dict[str, bool]:
        """Run every channel concurrently and return the outcome per channel"""
        if not self.calls:
            return {}

        outcomes = await asyncio.gather(
            *(self._guarded(name, func, args, kwargs) for name, func, args, kwargs in self.calls)
        )
        results = {name: ok for (name, _, _, _), ok in zip(self.calls, outcomes)}

        sent = sum(1 for ok in results.values() if ok)
        logger.info(f"📣 {self.label}: {sent}/{len(results)} notifications delivered {results}")
        return results

    def schedule(self, background_tasks: BackgroundTasks) -> None:
        """Hand the batch to FastAPI so it runs after the response is sent"""
        if self.calls:
            background_tasks.add_task(self.run)
