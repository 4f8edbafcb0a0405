"""Loads a tenant's publishable listings into memory."""

from __future__ import annotations

import logging

from vitrine.models import Listing, Tenant
from vitrine.store.base import BaseStore

logger = logging.getLogger(__name__)


def order_catalog(listings: list[Listing]) -> list[Listing]:
    """Featured first, then newest first. Ties keep source order."""
    ordered = sorted(listings, key=lambda x: x.created_at, reverse=True)
    ordered.sort(key=lambda x: x.is_featured, reverse=True)
    return ordered


class CatalogLoader:
    """Fetches the catalog once per tenant session.

    Filtering always runs on the loaded list; nothing here re-fetches on a
    query change.
    """

    def __init__(self, store: BaseStore, similar_limit: int = 6):
        self.store = store
        self.similar_limit = similar_limit
        self.tenant_id: str | None = None
        self.listings: list[Listing] = []

    async def fetch(self, tenant: Tenant) -> list[Listing]:
        """Fetch and order a tenant's eligible listings without keeping them."""
        rows = await self.store.list_listings(tenant.id)
        eligible = [x for x in rows if x.is_publishable and x.tenant_id == tenant.id]
        dropped = len(rows) - len(eligible)
        if dropped:
            logger.warning("Dropped %d unpublishable listings for tenant %s", dropped, tenant.id)
        return order_catalog(eligible)

    def commit(self, tenant: Tenant, listings: list[Listing]) -> None:
        self.tenant_id = tenant.id
        self.listings = listings
        logger.info("Loaded %d listings for %s", len(listings), tenant.slug)

    def is_loaded(self, tenant: Tenant) -> bool:
        return tenant.id == self.tenant_id

    async def load(self, tenant: Tenant) -> list[Listing]:
        if self.is_loaded(tenant):
            return self.listings
        self.commit(tenant, await self.fetch(tenant))
        return self.listings

    def reset(self) -> None:
        self.tenant_id = None
        self.listings = []

    def find(self, key: str) -> Listing | None:
        """Look up a loaded listing by slug, falling back to id."""
        for listing in self.listings:
            if listing.slug and listing.slug == key:
                return listing
        for listing in self.listings:
            if listing.id == key:
                return listing
        return None

    def similar(self, listing: Listing, limit: int | None = None) -> list[Listing]:
        """Same type and transaction kind, excluding the listing itself."""
        limit = self.similar_limit if limit is None else limit
        matches = [
            other
            for other in self.listings
            if other.id != listing.id
            and other.property_type == listing.property_type
            and other.transaction_type == listing.transaction_type
        ]
        return matches[: max(0, limit)]
