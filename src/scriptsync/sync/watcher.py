"""Watch the content directory and deliver debounced batches of changes.

``ChangeWatcher`` wraps ``watchfiles.awatch``.  Raw events are filtered
(directories and ignored paths are dropped) and fed to a ``Debouncer``,
which collects distinct paths until a quiet period passes and then hands
the whole batch to the caller's callback in one call.

Lifecycle::

    IDLE --start()--> WATCHING --stop()--> STOPPED

A stopped watcher cannot be restarted; create a new one instead.  All
state is owned by one instance and only touched from the event loop.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable

from watchfiles import Change, awatch

from .ignore import IgnoreMatcher

logger = logging.getLogger(__name__)

DEFAULT_QUIET_PERIOD = 0.5

# watchfiles' own batching is kept short so the Debouncer decides delivery
_RAW_DEBOUNCE_MS = 50
_RAW_STEP_MS = 10
_READY_TIMEOUT_MS = 100

BatchCallback = Callable[[list[str]], Awaitable[None] | None]
ReadyCallback = Callable[[], Awaitable[None] | None]


class WatchState(str, Enum):
    IDLE = "idle"
    WATCHING = "watching"
    STOPPED = "stopped"


class Debouncer:
    """Coalesce paths into batches separated by a quiet period.

    Each new path is appended to ``pending`` and restarts the timer.  A path
    already pending is ignored (the timer is left alone).  When the timer
    fires the pending batch goes to *callback* and ``pending`` is cleared.

    Args:
        callback: Receives the batch; may be sync or async.  Errors are
            logged and confined to that batch.
        delay: Quiet period in seconds.
    """

    def __init__(
        self, callback: BatchCallback, delay: float = DEFAULT_QUIET_PERIOD
    ) -> None:
        self.callback = callback
        self.delay = delay
        self.pending: dict[str, None] = {}
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def scheduled(self) -> bool:
        return self._timer is not None

    def add(self, path: str) -> None:
        """Record *path* and restart the quiet period."""
        if self._closed:
            return
        if path in self.pending:
            logger.debug(
                "Path %s already pending in current debounce cycle, "
                "ignoring duplicate.",
                path,
            )
            return
        logger.debug("Debouncing change for path: %s", path)
        self.pending[path] = None
        self.schedule()

    def schedule(self) -> None:
        """(Re)start the timer for one quiet period from now."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self.flush)

    def cancel(self) -> None:
        """Cancel the pending timer, keeping pending paths."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def close(self) -> None:
        """Cancel the timer, drop pending paths and refuse new ones."""
        self._closed = True
        self.cancel()
        self.pending.clear()

    def flush(self) -> None:
        """Deliver the pending batch now."""
        self._timer = None
        if not self.pending or self._closed:
            return
        batch = list(self.pending)
        self.pending.clear()
        logger.debug(
            "Debounce delay elapsed. Firing callback for %d changed paths.",
            len(batch),
        )
        try:
            result = self.callback(batch)
        except Exception:
            logger.exception("Change callback failed")
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(self._await_callback(result))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    @staticmethod
    async def _await_callback(result: Awaitable[Any]) -> None:
        try:
            await result
        except Exception:
            logger.exception("Change callback failed")

    async def drain(self) -> None:
        """Wait for callbacks that are already running."""
        if self._tasks:
            await asyncio.gather(*self._tasks)


class ChangeWatcher:
    """Deliver debounced batches of changed paths under *content_dir*.

    Paths passed to *on_change* are forward-slash paths relative to
    *content_dir*.

    Args:
        content_dir: Directory to watch recursively.
        ignore_patterns: Ignore rules; matching paths produce no events.
        on_change: Batch callback (sync or async).
        on_ready: Called once the watch is established, before any batch.
        delay: Quiet period in seconds.
    """

    def __init__(
        self,
        content_dir: str | Path,
        ignore_patterns: list[str] | None,
        on_change: BatchCallback,
        on_ready: ReadyCallback | None = None,
        delay: float = DEFAULT_QUIET_PERIOD,
    ) -> None:
        self.content_dir = Path(content_dir).resolve()
        self.matcher = IgnoreMatcher(ignore_patterns)
        self.on_ready = on_ready
        self.debouncer = Debouncer(on_change, delay)
        self.state = WatchState.IDLE
        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start watching; returns once the watch is ready.

        Raises:
            RuntimeError: If the watcher was already started.
        """
        if self.state != WatchState.IDLE:
            raise RuntimeError(f"Watcher cannot start from state {self.state.value}")
        self.state = WatchState.WATCHING
        self._stop_event = asyncio.Event()
        ready = asyncio.Event()

        logger.debug("Starting file watcher on directory: %s", self.content_dir)
        self._task = asyncio.create_task(self._run(ready))
        ready_wait = asyncio.create_task(ready.wait())
        done, _ = await asyncio.wait(
            {self._task, ready_wait}, return_when=asyncio.FIRST_COMPLETED
        )
        if ready_wait not in done:
            ready_wait.cancel()
            self.state = WatchState.STOPPED
            # the watch loop ended before it was ready; surface its error
            self._task.result()
            return

        if self.on_ready is not None:
            result = self.on_ready()
            if inspect.isawaitable(result):
                await result

    async def wait(self) -> None:
        """Block until the watcher stops."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def stop(self) -> None:
        """Stop watching.  No callback starts after this returns."""
        if self.state == WatchState.STOPPED:
            return
        logger.debug("Stopping file watcher.")
        self.state = WatchState.STOPPED
        self.debouncer.close()
        if self._stop_event is not None:
            self._stop_event.set()
        if self._task is not None:
            await self._task
        await self.debouncer.drain()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def _run(self, ready: asyncio.Event) -> None:
        async for changes in awatch(
            self.content_dir,
            watch_filter=None,
            debounce=_RAW_DEBOUNCE_MS,
            step=_RAW_STEP_MS,
            stop_event=self._stop_event,
            rust_timeout=_READY_TIMEOUT_MS,
            yield_on_timeout=True,
        ):
            if not ready.is_set():
                ready.set()
            for change, path in changes:
                self.handle_change(change, path)

    def handle_change(self, change: Change, path: str | Path) -> None:
        """Filter one raw event and queue it for delivery."""
        if self.state != WatchState.WATCHING:
            return
        abs_path = Path(path).resolve()
        try:
            rel_path = abs_path.relative_to(self.content_dir).as_posix()
        except ValueError:
            return
        if change != Change.deleted and not abs_path.is_file():
            return
        if self.matcher.is_ignored(rel_path):
            logger.debug("Ignoring change to excluded path: %s", rel_path)
            return
        logger.debug("Local file change detected: %s", rel_path)
        self.debouncer.add(rel_path)
