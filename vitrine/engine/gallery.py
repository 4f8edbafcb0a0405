"""Image gallery state machine for the listing detail view.

Transitions are pure functions from one `GalleryState` to the next. Visual
side effects (scrolling a thumbnail into view, paging the thumbnail strip) are
returned alongside the new state as `GalleryEffect` values; the `Gallery`
controller runs them only after the new state has been committed.

The main index is the single source of truth. The thumbnail page is derived
from it and never drives it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, NamedTuple

from pydantic import BaseModel, ConfigDict

from vitrine.models import LayoutVariant

logger = logging.getLogger(__name__)

THUMBNAIL_PAGE_SIZE = 6


class EffectKind(str, Enum):
    SHOW_THUMBNAIL_PAGE = "show_thumbnail_page"
    SCROLL_THUMBNAIL_INTO_VIEW = "scroll_thumbnail_into_view"


class GalleryEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: EffectKind
    value: int


class GalleryState(BaseModel):
    """Browsing(index) when the viewer is closed, Viewing(viewer_index) when open."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    index: int = 0
    thumb_page: int = 0
    viewer_open: bool = False
    viewer_index: int = 0
    layout: LayoutVariant = LayoutVariant.WIDE
    page_size: int = THUMBNAIL_PAGE_SIZE

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    @property
    def derived_thumb_page(self) -> int:
        return self.index // self.page_size

    @property
    def thumb_page_count(self) -> int:
        if self.count == 0:
            return 0
        return (self.count + self.page_size - 1) // self.page_size

    @property
    def thumbnail_range(self) -> range:
        start = self.thumb_page * self.page_size
        return range(start, min(start + self.page_size, self.count))

    @property
    def active_index(self) -> int:
        """Index of the image currently on screen."""
        return self.viewer_index if self.viewer_open else self.index


class Transition(NamedTuple):
    state: GalleryState
    effects: tuple[GalleryEffect, ...] = ()


def initial_state(
    count: int,
    layout: LayoutVariant = LayoutVariant.WIDE,
    page_size: int = THUMBNAIL_PAGE_SIZE,
) -> GalleryState:
    return GalleryState(count=max(0, count), layout=layout, page_size=max(1, page_size))


def _browse_to(state: GalleryState, index: int) -> Transition:
    """Move the main index and keep the thumbnail strip on the derived page."""
    new = state.model_copy(update={"index": index})
    page = new.derived_thumb_page
    effects: list[GalleryEffect] = []
    if page != new.thumb_page:
        new = new.model_copy(update={"thumb_page": page})
        if new.layout == LayoutVariant.COMPACT:
            effects.append(GalleryEffect(kind=EffectKind.SHOW_THUMBNAIL_PAGE, value=page))
    if new.layout == LayoutVariant.WIDE and index != state.index:
        effects.append(GalleryEffect(kind=EffectKind.SCROLL_THUMBNAIL_INTO_VIEW, value=index))
    return Transition(new, tuple(effects))


def select(state: GalleryState, i: int) -> Transition:
    if state.count == 0:
        return Transition(state)
    target = i % state.count
    if state.viewer_open:
        return Transition(state.model_copy(update={"viewer_index": target}))
    return _browse_to(state, target)


def _step(state: GalleryState, delta: int) -> Transition:
    if state.count <= 1:
        return Transition(state)
    if state.viewer_open:
        target = (state.viewer_index + delta + state.count) % state.count
        return Transition(state.model_copy(update={"viewer_index": target}))
    target = (state.index + delta + state.count) % state.count
    return _browse_to(state, target)


def next_image(state: GalleryState) -> Transition:
    return _step(state, 1)


def prev_image(state: GalleryState) -> Transition:
    return _step(state, -1)


def open_viewer(state: GalleryState) -> Transition:
    if state.count == 0 or state.viewer_open:
        return Transition(state)
    return Transition(state.model_copy(update={"viewer_open": True, "viewer_index": state.index}))


def close_viewer(state: GalleryState) -> Transition:
    """Leave the viewer, syncing the main index to the last viewed image."""
    if not state.viewer_open:
        return Transition(state)
    closed = state.model_copy(update={"viewer_open": False})
    return _browse_to(closed, state.viewer_index)


def show_thumb_page(state: GalleryState, page: int) -> Transition:
    """Scroll the thumbnail strip without touching the main index."""
    if state.count == 0:
        return Transition(state)
    page = min(max(0, page), state.thumb_page_count - 1)
    if page == state.thumb_page:
        return Transition(state)
    return Transition(state.model_copy(update={"thumb_page": page}))


EffectHandler = Callable[[GalleryEffect], None]


class Gallery:
    """Holds one listing's gallery state and runs effects after each commit."""

    def __init__(
        self,
        images: list[str],
        layout: LayoutVariant = LayoutVariant.WIDE,
        page_size: int = THUMBNAIL_PAGE_SIZE,
        on_effect: EffectHandler | None = None,
    ):
        self.images = list(images)
        self.state = initial_state(len(self.images), layout, page_size)
        self._on_effect = on_effect
        self.history: list[GalleryEffect] = []

    def _commit(self, transition: Transition) -> GalleryState:
        self.state = transition.state
        for effect in transition.effects:
            self.history.append(effect)
            if self._on_effect is not None:
                try:
                    self._on_effect(effect)
                except Exception as e:
                    # A failing effect never undoes the transition.
                    logger.warning("Gallery effect %s failed: %s", effect.kind.value, e)
        return self.state

    @property
    def is_placeholder(self) -> bool:
        return self.state.is_empty

    @property
    def current_image(self) -> str | None:
        if self.state.is_empty:
            return None
        return self.images[self.state.active_index]

    @property
    def thumbnails(self) -> list[tuple[int, str]]:
        return [(i, self.images[i]) for i in self.state.thumbnail_range]

    def select(self, i: int) -> GalleryState:
        return self._commit(select(self.state, i))

    def next(self) -> GalleryState:
        return self._commit(next_image(self.state))

    def prev(self) -> GalleryState:
        return self._commit(prev_image(self.state))

    def open_viewer(self) -> GalleryState:
        return self._commit(open_viewer(self.state))

    def close_viewer(self) -> GalleryState:
        return self._commit(close_viewer(self.state))

    def show_thumb_page(self, page: int) -> GalleryState:
        return self._commit(show_thumb_page(self.state, page))
