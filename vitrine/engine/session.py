"""Page-level controllers for one storefront session.

`StorefrontSession` owns the listing page pipeline (resolve → load → filter →
reveal). `DetailPage` owns one listing detail view (gallery, view count,
contact). Results of a navigation that has since been superseded are dropped.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from pydantic import BaseModel, Field

from vitrine.config import AppConfig
from vitrine.engine import filters
from vitrine.engine.catalog import CatalogLoader
from vitrine.engine.contact import ContactFlow, Opener, share_url
from vitrine.engine.favorites import FavoritesStore
from vitrine.engine.gallery import EffectHandler, Gallery
from vitrine.engine.resolver import TenantResolver
from vitrine.engine.reveal import ProgressiveReveal
from vitrine.errors import TransientFetchError
from vitrine.models import (
    FilterResult,
    LayoutVariant,
    Listing,
    Notice,
    NoticeLevel,
    QueryState,
    SocialLink,
    Tenant,
)
from vitrine.store.base import BaseStore

logger = logging.getLogger(__name__)


class StorefrontView(BaseModel):
    """What the listing page renders."""

    slug: str = ""
    not_found: bool = False
    tenant: Optional[Tenant] = None
    featured: list[Listing] = Field(default_factory=list)
    visible: list[Listing] = Field(default_factory=list)
    visible_count: int = 0
    remaining: int = 0
    total: int = 0
    has_active_filters: bool = False
    social_links: list[SocialLink] = Field(default_factory=list)
    notices: list[Notice] = Field(default_factory=list)


def _fetch_failed(title: str, error: Exception) -> Notice:
    return Notice(title=title, description=str(error), level=NoticeLevel.ERROR)


class StorefrontSession:
    def __init__(
        self,
        store: BaseStore,
        config: AppConfig | None = None,
        favorites: FavoritesStore | None = None,
    ):
        self.config = config or AppConfig()
        self.store = store
        self.resolver = TenantResolver(store)
        self.catalog = CatalogLoader(store, self.config.catalog.similar_limit)
        self.reveal = ProgressiveReveal(self.config.catalog.reveal_chunk_size)
        self.favorites = favorites if favorites is not None else FavoritesStore(None)

        self.slug = ""
        self.tenant: Tenant | None = None
        self.not_found = False
        self.query = QueryState()
        self.result = FilterResult()
        self.social_links: list[SocialLink] = []
        self.notices: list[Notice] = []
        self.contact: ContactFlow | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def navigate(self, slug: str) -> StorefrontView:
        """Open the storefront for `slug`.

        If another navigation starts before this one finishes, this one's
        results are discarded and nothing it fetched is kept.
        """
        self._generation += 1
        generation = self._generation
        if slug != self.slug:
            self._clear()
        self.slug = slug

        if self.resolver.remembers(slug):
            tenant = self.resolver.tenant
        else:
            try:
                tenant = await self.resolver.fetch(slug)
            except TransientFetchError as e:
                if generation == self._generation:
                    self.notices.append(_fetch_failed("Could not load storefront", e))
                return self.view()
            if generation != self._generation:
                logger.debug("Discarding stale tenant result for %r", slug)
                return self.view()
            self.resolver.remember(slug, tenant)

        self.tenant = tenant
        self.not_found = tenant is None
        if tenant is None:
            self.result = FilterResult()
            self.reveal.update([])
            return self.view()

        if self.catalog.is_loaded(tenant):
            listings = self.catalog.listings
        else:
            try:
                listings = await self.catalog.fetch(tenant)
            except TransientFetchError as e:
                if generation == self._generation:
                    self.notices.append(_fetch_failed("Could not load listings", e))
                listings = None
            if generation != self._generation:
                logger.debug("Discarding stale catalog for %r", slug)
                return self.view()
            if listings is not None:
                self.catalog.commit(tenant, listings)

        try:
            social_links = await self.store.list_social_links(tenant.id)
        except TransientFetchError as e:
            logger.warning("Social links unavailable for %s: %s", slug, e)
            social_links = []
        if generation != self._generation:
            return self.view()
        self.social_links = social_links

        if self.contact is None:
            self.contact = ContactFlow(self.store, self.resolver, tenant, self.config.contact)
        self._evaluate(listings or [])
        return self.view()

    def _clear(self) -> None:
        """Forget everything that belongs to the previous storefront."""
        self.tenant = None
        self.not_found = False
        self.query = QueryState()
        self.catalog.reset()
        self.result = FilterResult()
        self.reveal.update([])
        self.social_links = []
        self.contact = None

    def _evaluate(self, listings: list[Listing]) -> None:
        self.result = filters.apply(listings, self.query, self.config.catalog.search_max_length)
        self.reveal.update(self.result.regular)

    def set_query(self, query: QueryState) -> StorefrontView:
        """Apply a new query to the loaded catalog."""
        self.query = query
        self._evaluate(self.catalog.listings)
        return self.view()

    def search(self, term: str) -> StorefrontView:
        return self.set_query(self.query.model_copy(update={"term": term}))

    def clear_filters(self) -> StorefrontView:
        return self.set_query(QueryState())

    def expand(self) -> StorefrontView:
        self.reveal.expand()
        return self.view()

    def ensure_visible(self, listing_id: str) -> int:
        return self.reveal.ensure_visible(listing_id)

    def toggle_favorite(self, listing_id: str) -> Notice:
        added = self.favorites.toggle(listing_id)
        if added:
            return Notice(title="Added to favorites")
        return Notice(title="Removed from favorites")

    def dismiss_notices(self) -> None:
        self.notices.clear()

    def view(self) -> StorefrontView:
        return StorefrontView(
            slug=self.slug,
            not_found=self.not_found,
            tenant=self.tenant,
            featured=self.result.featured,
            visible=self.reveal.visible,
            visible_count=self.reveal.visible_count,
            remaining=self.reveal.remaining,
            total=len(self.catalog.listings),
            has_active_filters=filters.has_active_filters(
                self.query, self.config.catalog.search_max_length
            ),
            social_links=self.social_links,
            notices=list(self.notices),
        )

    async def open_detail(
        self,
        slug: str,
        key: str,
        layout: LayoutVariant | None = None,
        on_effect: EffectHandler | None = None,
    ) -> DetailPage:
        """Load the detail page for listing `key`, navigating first if needed."""
        if slug != self.slug or self.tenant is None:
            await self.navigate(slug)
        listing = self.catalog.find(key) if self.tenant else None
        page = DetailPage(
            self,
            listing,
            layout or LayoutVariant(self.config.gallery.default_layout),
            on_effect=on_effect,
            on_close=self.ensure_visible,
        )
        await page.load()
        return page


class DetailPage:
    """One load of a listing detail view."""

    def __init__(
        self,
        session: StorefrontSession,
        listing: Listing | None,
        layout: LayoutVariant = LayoutVariant.WIDE,
        on_effect: EffectHandler | None = None,
        on_close: Callable[[str], object] | None = None,
    ):
        self.session = session
        self.listing = listing
        self.gallery = Gallery(
            listing.gallery_images if listing else [],
            layout=layout,
            page_size=session.config.gallery.thumbnail_page_size,
            on_effect=on_effect,
        )
        self.views_count = listing.views_count if listing else 0
        self.notices: list[Notice] = []
        self._on_close = on_close
        self._view_recorded = False

    @property
    def not_found(self) -> bool:
        return self.listing is None

    @property
    def similar(self) -> list[Listing]:
        if self.listing is None:
            return []
        return self.session.catalog.similar(self.listing)

    async def load(self) -> None:
        """Count this page load. Safe to call again on re-render."""
        if self.listing is None or self._view_recorded:
            return
        self._view_recorded = True
        contact = self.session.contact
        if contact is not None:
            self.views_count = await contact.record_view(self.listing)

    def share_url(self) -> str:
        if self.listing is None:
            return ""
        return share_url(self.session.config.api.base_url, self.session.slug, self.listing)

    async def contact_lead(self) -> Notice | None:
        if self.listing is None or self.session.contact is None:
            return None
        notice = await self.session.contact.submit_lead(self.listing)
        self.notices.append(notice)
        return notice

    async def open_whatsapp(self, opener: Opener, user_agent: str | None = None) -> list[Notice]:
        if self.listing is None or self.session.contact is None:
            return []
        notices = await self.session.contact.open_whatsapp(
            self.listing, self.share_url(), opener, user_agent
        )
        self.notices.extend(notices)
        return notices

    def toggle_favorite(self) -> Notice | None:
        if self.listing is None:
            return None
        return self.session.toggle_favorite(self.listing.id)

    @property
    def is_favorited(self) -> bool:
        return self.listing is not None and self.session.favorites.is_favorited(self.listing.id)

    def close(self) -> None:
        """Leave the page; the listing page restores the card into view."""
        if self.listing is not None and self._on_close is not None:
            self._on_close(self.listing.id)
