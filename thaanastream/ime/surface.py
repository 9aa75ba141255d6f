"""Document surface: the cursor-relative text sink the composer writes into."""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

from thaanastream.models import InterruptKind

logger = logging.getLogger("thaanastream.ime.surface")

InterruptCallback = Callable[[InterruptKind], None]


class DocumentSurface(ABC):
    """Host editing surface as seen by the composer."""

    @abstractmethod
    def insert_at_cursor(self, text: str) -> None:
        ...

    @abstractmethod
    def replace_last_inserted(self, text: str) -> None:
        """Replace exactly the most recently inserted run with ``text``."""
        ...

    @abstractmethod
    def on_interrupt(self, callback: InterruptCallback) -> Callable[[], None]:
        """Subscribe to interrupts. Returns an unsubscribe function."""
        ...


class TextSurface(DocumentSurface):
    """In-memory text buffer with a cursor.

    Host actions (``move_cursor``, ``delete_backward``, ``blur``, ...) notify
    interrupt subscribers before they mutate anything, so a pending
    composition is settled against the text it was written into.
    """

    def __init__(self, text: str = "", cursor: Optional[int] = None) -> None:
        self.text = text
        self.cursor = len(text) if cursor is None else cursor
        self._last_run: Optional[Tuple[int, int]] = None  # (start, length)
        self._listeners: List[InterruptCallback] = []

    # ---- DocumentSurface ----------------------------------------------------

    def insert_at_cursor(self, text: str) -> None:
        start = self.cursor
        self.text = self.text[:start] + text + self.text[start:]
        self.cursor = start + len(text)
        self._last_run = (start, len(text))

    def replace_last_inserted(self, text: str) -> None:
        if self._last_run is None:
            self.insert_at_cursor(text)
            return
        start, length = self._last_run
        self.text = self.text[:start] + text + self.text[start + length:]
        self.cursor = start + len(text)
        self._last_run = (start, len(text))

    def on_interrupt(self, callback: InterruptCallback) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    # ---- host actions -------------------------------------------------------

    def interrupt(self, kind: InterruptKind) -> None:
        for callback in list(self._listeners):
            callback(kind)

    def move_cursor(self, position: int) -> None:
        self.interrupt(InterruptKind.SELECTION_CHANGE)
        self.cursor = max(0, min(position, len(self.text)))
        self._last_run = None

    def click(self, position: int) -> None:
        self.interrupt(InterruptKind.POINTER)
        self.cursor = max(0, min(position, len(self.text)))
        self._last_run = None

    def delete_backward(self, count: int = 1) -> None:
        self.interrupt(InterruptKind.DELETION)
        start = max(0, self.cursor - count)
        self.text = self.text[:start] + self.text[self.cursor:]
        self.cursor = start
        self._last_run = None

    def blur(self) -> None:
        self.interrupt(InterruptKind.FOCUS_LOSS)

    def paste(self, text: str) -> None:
        self.interrupt(InterruptKind.PASTE)
        self.insert_at_cursor(text)
        self._last_run = None

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
