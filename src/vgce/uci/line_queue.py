"""Thread-safe FIFO of raw engine output lines."""

import threading
from collections import deque


class LineQueue:
    """FIFO queue with a condition-variable backed timed pop.

    Every operation holds the same lock, so readers never see the underlying
    deque mid-modification. ``push`` never blocks on capacity.
    """

    def __init__(self) -> None:
        self._items: deque[str] = deque()
        self._cond = threading.Condition(threading.Lock())

    def push(self, line: str) -> None:
        with self._cond:
            self._items.append(line)
            self._cond.notify()

    def try_pop(self) -> str | None:
        """Pop the oldest line without waiting; None if the queue is empty."""
        with self._cond:
            if not self._items:
                return None
            return self._items.popleft()

    def wait_pop(self, timeout: float) -> str | None:
        """Pop the oldest line, waiting up to ``timeout`` seconds for one.

        Args:
            timeout: Maximum time to wait, in seconds.

        Returns:
            The line, or None if the timeout elapsed with the queue empty.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: bool(self._items), timeout=timeout):
                return None
            return self._items.popleft()

    def is_empty(self) -> bool:
        with self._cond:
            return not self._items

    def size(self) -> int:
        with self._cond:
            return len(self._items)

    def clear(self) -> None:
        with self._cond:
            self._items.clear()

    def __len__(self) -> int:
        return self.size()
