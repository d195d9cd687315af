"""
Debounced autosave.

Each edit (re)schedules one pending save task. A newer schedule cancels
the pending task as long as it is still waiting out the quiet period; a
save that has already started is left to finish and never blocks edits.

A failed save is logged and kept in `last_error`. There is no background
retry: the next edit schedules the next attempt.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Set

from dfe.errors import FormEngineError
from dfe.model import FormTemplate

logger = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_DELAY = 2.0

SaveCallable = Callable[[FormTemplate], Awaitable[Any]]


class DebouncedSaver:
    """
    Cancellable scheduled save for one authoring session.

    Args:
        save: Coroutine function persisting a template
        delay: Quiet period in seconds after the last schedule()

    Must be used from inside a running event loop.
    """

    def __init__(self, save: SaveCallable, delay: float = DEFAULT_AUTOSAVE_DELAY):
        self._save = save
        self.delay = delay
        self.last_error: Optional[BaseException] = None
        self.last_saved_at: Optional[datetime] = None
        self.save_count = 0
        self._pending: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._latest: Optional[FormTemplate] = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def schedule(self, template: FormTemplate) -> bool:
        """
        Start (or restart) the quiet period for a template.

        Templates without an id have never been created in the store and
        are not autosaved.

        Returns:
            True when a save was scheduled
        """
        if not template.id:
            logger.debug("Skipping autosave of unsaved template %s", template.name)
            return False

        self.cancel()
        self._latest = template
        task = asyncio.get_running_loop().create_task(self._delayed_save(template))
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    def cancel(self) -> None:
        """Drop the pending save if it has not started yet."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    async def flush(self) -> bool:
        """Save the most recently scheduled template now."""
        template = self._latest
        self.cancel()
        if template is None:
            return False
        return await self._run_save(template)

    async def drain(self) -> None:
        """Wait for every pending and in-flight save."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _delayed_save(self, template: FormTemplate) -> None:
        await asyncio.sleep(self.delay)
        if self._pending is asyncio.current_task():
            self._pending = None
        await self._run_save(template)

    async def _run_save(self, template: FormTemplate) -> bool:
        try:
            await self._save(template)
        except FormEngineError as exc:
            self.last_error = exc
            logger.warning("Autosave of template %s failed: %s", template.id, exc)
            return False
        self.last_error = None
        self.last_saved_at = datetime.now(timezone.utc)
        self.save_count += 1
        logger.debug("Autosaved template %s", template.id)
        return True
