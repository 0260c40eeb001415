from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


# -----------------------------------------------------------------------------
# Dumper
# -----------------------------------------------------------------------------
class Dumper:
    """
    Coalesces writes of the identity map to the durable store.

    Two independent strategies:
    - auto-dump: every ``request()`` (re)arms a quiet-window timer; a burst of
      mutations inside the window produces a single write.
    - periodic: a background task writes every ``interval`` seconds.

    Both run on the current asyncio loop. Outside a running loop a request is
    written immediately.
    """

    def __init__(
        self,
        dump: Callable[[], None],
        auto_dump: bool = True,
        delay: float = 1.0,
        interval: Optional[float] = None,
    ) -> None:
        self._dump = dump
        self._auto_dump = auto_dump
        self._delay = delay
        self._interval = interval

        self._handle: Optional[asyncio.TimerHandle] = None
        self._periodic: Optional[asyncio.Task] = None

    # -------------------------------------------------------------------------
    # Policy
    # -------------------------------------------------------------------------
    @property
    def auto_dump(self) -> bool:
        return self._auto_dump

    @auto_dump.setter
    def auto_dump(self, enabled: bool) -> None:
        self._auto_dump = enabled
        if not enabled:
            self._cancel_pending()

    @property
    def interval(self) -> Optional[float]:
        return self._interval

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def running(self) -> bool:
        return self._periodic is not None and not self._periodic.done()

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------
    def start(self) -> None:
        """Start the periodic task if configured and a loop is running."""
        if self._interval is None or self.running:
            return
        loop = _running_loop()
        if loop is None:
            logger.debug("No running loop; periodic dump starts with the first request")
            return
        self._periodic = loop.create_task(self._run_periodic())

    def request(self) -> None:
        """Called on every store mutation."""
        self.start()

        if not self._auto_dump:
            return

        loop = _running_loop()
        if loop is None:
            self.dump()
            return

        self._cancel_pending()
        self._handle = loop.call_later(self._delay, self._fire)

    def flush(self) -> None:
        """Write now if a debounced write is pending."""
        if self._handle is not None:
            self._cancel_pending()
            self.dump()

    def dump(self) -> None:
        self._dump()

    def stop(self) -> None:
        self._cancel_pending()
        if self._periodic is not None:
            self._periodic.cancel()
            self._periodic = None

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    def _fire(self) -> None:
        self._handle = None
        self.dump()

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def _run_periodic(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            logger.debug("Periodic dump")
            self.dump()
