"""Tenant resolution by storefront slug."""

from __future__ import annotations

import logging

from vitrine.models import Tenant, TenantContact
from vitrine.store.base import BaseStore

logger = logging.getLogger(__name__)


class TenantResolver:
    """Resolves a slug to tenant branding, once per navigation.

    Only the most recent slug is remembered; navigating to a different slug
    always performs a fresh lookup.
    """

    def __init__(self, store: BaseStore):
        self.store = store
        self._slug: str | None = None
        self._tenant: Tenant | None = None
        self.lookups = 0

    def remembers(self, slug: str) -> bool:
        return bool(slug) and slug == self._slug

    @property
    def tenant(self) -> Tenant | None:
        return self._tenant

    async def fetch(self, slug: str) -> Tenant | None:
        """Look `slug` up without remembering the answer.

        Raises TransientFetchError if the store is unreachable.
        """
        if not slug or not slug.strip():
            return None
        self.lookups += 1
        tenant = await self.store.resolve_tenant(slug)
        if tenant is None:
            logger.info("No tenant found for slug %r", slug)
        return tenant

    def remember(self, slug: str, tenant: Tenant | None) -> None:
        self._slug, self._tenant = slug, tenant

    async def resolve(self, slug: str) -> Tenant | None:
        """Return the tenant for `slug`, or None if there is none.

        Raises TransientFetchError if the store is unreachable.
        """
        if self.remembers(slug):
            return self._tenant
        tenant = await self.fetch(slug)
        self.remember(slug, tenant)
        return tenant

    def forget(self) -> None:
        """Drop the remembered slug so the next resolve hits the store."""
        self._slug, self._tenant = None, None

    async def resolve_contact(self, slug: str) -> TenantContact | None:
        """Contact sub-resource; served by a separate upstream policy."""
        if not slug:
            return None
        contact = await self.store.resolve_contact(slug)
        if contact is not None and contact.is_empty:
            return None
        return contact
