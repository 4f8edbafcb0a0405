"""Progressive reveal of the regular listings."""

from __future__ import annotations

import logging
import math
from typing import Callable, Sequence

from vitrine.models import Listing

logger = logging.getLogger(__name__)

CHUNK_SIZE = 12

RevealObserver = Callable[[int], None]


class ProgressiveReveal:
    """Windows the regular subset into an expanding prefix.

    `visible_count` only grows, except when `update` receives a subset with a
    different identity (a new filter/search result), which resets it.
    """

    def __init__(self, chunk_size: int = CHUNK_SIZE):
        self.chunk_size = max(1, chunk_size)
        self.visible_count = self.chunk_size
        self._listings: list[Listing] = []
        self._identity: tuple[str, ...] = ()
        self._observers: list[RevealObserver] = []

    def subscribe(self, observer: RevealObserver) -> Callable[[], None]:
        """Register a callback for `visible_count` changes. Returns an unsubscribe."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _set_count(self, count: int) -> None:
        if count == self.visible_count:
            return
        self.visible_count = count
        for observer in list(self._observers):
            observer(count)

    def update(self, listings: Sequence[Listing]) -> bool:
        """Swap in a freshly filtered regular subset.

        Returns True when the subset identity changed and the window was reset.
        """
        identity = tuple(listing.id for listing in listings)
        self._listings = list(listings)
        if identity == self._identity:
            return False
        self._identity = identity
        self._set_count(self.chunk_size)
        return True

    @property
    def listings(self) -> list[Listing]:
        return list(self._listings)

    @property
    def visible(self) -> list[Listing]:
        return self._listings[: self.visible_count]

    @property
    def has_more(self) -> bool:
        return len(self._listings) > self.visible_count

    @property
    def remaining(self) -> int:
        return max(0, len(self._listings) - self.visible_count)

    def expand(self) -> int:
        """Reveal one more chunk. No-op when nothing remains."""
        if self.has_more:
            self._set_count(self.visible_count + self.chunk_size)
            logger.debug("Expanded reveal window to %d", self.visible_count)
        return self.visible_count

    def ensure_visible(self, listing_id: str) -> int:
        """Grow the window to the chunk boundary that includes `listing_id`."""
        index = next(
            (i for i, listing in enumerate(self._listings) if listing.id == listing_id), -1
        )
        if index >= self.visible_count:
            target = math.ceil((index + 1) / self.chunk_size) * self.chunk_size
            logger.debug("Expanding reveal window to %d for listing %s", target, listing_id)
            self._set_count(target)
        return self.visible_count
