"""Base data store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from vitrine.config import StoreConfig
from vitrine.models import Lead, LeadRequest, Listing, SocialLink, Tenant, TenantContact


class BaseStore(ABC):
    """Abstract read/insert/update-counter interface to the hosted data store.

    Implementations wrap their own transport errors in TransientFetchError.
    """

    BACKEND_NAME: str = "unknown"

    def __init__(self, config: StoreConfig):
        self.config = config

    @abstractmethod
    async def resolve_tenant(self, slug: str) -> Tenant | None:
        """Public branding for a slug, or None if no active tenant has it."""
        ...

    @abstractmethod
    async def resolve_contact(self, slug: str) -> TenantContact | None:
        """Contact details for a slug, or None."""
        ...

    @abstractmethod
    async def list_listings(self, tenant_id: str) -> list[Listing]:
        """Active, published listings for a tenant."""
        ...

    @abstractmethod
    async def list_social_links(self, tenant_id: str) -> list[SocialLink]: ...

    @abstractmethod
    async def create_lead(self, lead: LeadRequest) -> Lead: ...

    @abstractmethod
    async def bump_views(self, listing_id: str, new_count: int) -> None: ...

    async def close(self) -> None:
        pass
