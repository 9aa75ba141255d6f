"""Coalesces change notifications into deduplicated content emissions."""

import logging
from typing import Any, Callable, Optional

from thaanastream.scheduling import Scheduler

logger = logging.getLogger("thaanastream.change_buffer")


class ChangeBuffer:
    """Batch bursts of changes into a single ``on_content`` call.

    ``schedule`` queues one deferred flush (0ms) no matter how many changes
    arrive before it runs. ``on_content`` fires only when the produced text
    differs from the last emitted one, unless ``force`` is set.
    """

    def __init__(
        self,
        get_content: Callable[[], str],
        on_content: Callable[[str], None],
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self._get_content = get_content
        self._on_content = on_content
        self._scheduler = scheduler
        self._handle: Any = None
        self._last_content: Optional[str] = None
        self.last_source: Optional[str] = None

        # Stats
        self.scheduled = 0
        self.emitted = 0

    def schedule(self, source: str, immediate: bool = False) -> None:
        self.last_source = source
        self.scheduled += 1
        if immediate or self._scheduler is None:
            self.flush()
            return
        if self._handle is None:
            self._handle = self._scheduler.schedule(0, self._run)

    def _run(self) -> None:
        self._handle = None
        self.flush()

    def flush(self, force: bool = False) -> Optional[str]:
        if self._handle is not None and self._scheduler is not None:
            self._scheduler.cancel(self._handle)
            self._handle = None
        try:
            content = self._get_content()
        except Exception:
            logger.exception("Change flush failed (source=%s)", self.last_source)
            return None
        if force or content != self._last_content:
            self._last_content = content
            self.emitted += 1
            self._on_content(content)
        return content

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def destroy(self) -> None:
        if self._handle is not None and self._scheduler is not None:
            self._scheduler.cancel(self._handle)
        self._handle = None
