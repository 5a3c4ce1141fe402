"""Most-recently-used ordering of compositor windows"""

import logging
from collections import deque
from typing import Iterable, Iterator, List

logger = logging.getLogger(__name__)


class CacheInvariantError(AssertionError):
    """Raised when the cache is used in a way that breaks its invariants"""


class WindowOrderCache:
    """Recency-ordered, duplicate-free view of window IDs

    Keeps two views over the same IDs: a set for membership tests and a
    deque holding the order, front = most recently used. The set of IDs
    follows whatever the compositor last reported, while windows that
    survive a refresh keep their place in the order.
    """

    def __init__(self):
        self._window_ids = set()
        self._order = deque()

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, window_id: int) -> bool:
        return window_id in self._window_ids

    def __iter__(self) -> Iterator[int]:
        return iter(self._order)

    def reconcile(self, current: Iterable[int]):
        """Update the cache to match the live window set

        Unknown windows are appended to the back in ascending ID order,
        windows that disappeared are dropped from wherever they sit.
        Calling this twice with the same set changes nothing.

        Args:
            current: Window IDs currently reported by the compositor
        """
        current = set(current)

        stale = self._window_ids - current
        if stale:
            self._order = deque(wid for wid in self._order if wid not in stale)

        new = sorted(current - self._window_ids)
        self._order.extend(new)

        self._window_ids = current

        if new or stale:
            logger.debug(f"Cache reconciled: +{len(new)} -{len(stale)} ({len(self._order)} total)")

        self._check_consistency()

    def move_to_front(self, window_id: int):
        """Mark window as most recently used

        Args:
            window_id: ID of a window already in the cache

        Raises:
            CacheInvariantError: If the ID is not cached
        """
        if window_id not in self._window_ids:
            raise CacheInvariantError(f"Window {window_id} is not in the cache")

        self._order.remove(window_id)
        self._order.appendleft(window_id)
        self._check_consistency()

    def snapshot_order(self) -> List[int]:
        """Get the current order, most recent first

        Returns:
            Copy of the ordered window IDs
        """
        return list(self._order)

    def _check_consistency(self):
        # Both views must hold exactly the same IDs
        if len(self._order) != len(self._window_ids) or set(self._order) != self._window_ids:
            raise CacheInvariantError(
                f"Cache views diverged: {len(self._order)} ordered, {len(self._window_ids)} known")
