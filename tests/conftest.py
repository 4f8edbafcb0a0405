"""Shared fixtures: an in-memory store and a listing factory."""

from datetime import datetime, timedelta

import pytest

from vitrine.config import StoreConfig
from vitrine.errors import TransientFetchError
from vitrine.models import Lead, LeadRequest, Listing, SocialLink, Tenant, TenantContact
from vitrine.store.base import BaseStore

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def build_listing(**overrides) -> Listing:
    defaults = {
        "id": "p1",
        "tenant_id": "t1",
        "title": "Apartamento Centro",
        "price": 300_000,
        "property_type": "apartment",
        "transaction_type": "sale",
        "address": "Rua Augusta, 100",
        "neighborhood": "Centro",
        "city": "São Paulo",
        "state": "SP",
        "bedrooms": 2,
        "bathrooms": 1,
        "created_at": BASE_TIME,
    }
    defaults.update(overrides)
    return Listing(**defaults)


class FakeStore(BaseStore):
    """Records calls; each operation can be made to fail."""

    BACKEND_NAME = "fake"

    def __init__(self):
        super().__init__(StoreConfig())
        self.tenants: dict[str, Tenant] = {}
        self.contacts: dict[str, TenantContact] = {}
        self.listings: dict[str, list[Listing]] = {}
        self.social_links: dict[str, list[SocialLink]] = {}
        self.leads: list[LeadRequest] = []
        self.views: list[tuple[str, int]] = []
        self.calls: list[tuple[str, str]] = []
        self.failing: set[str] = set()

    def _maybe_fail(self, op: str, arg: str) -> None:
        self.calls.append((op, arg))
        if op in self.failing:
            raise TransientFetchError(f"{op} unavailable")

    def add_tenant(self, slug: str, tenant_id: str = "t1", **fields) -> Tenant:
        tenant = Tenant(id=tenant_id, slug=slug, business_name=fields.pop("business_name", "Imobiliária Teste"), **fields)
        self.tenants[slug] = tenant
        self.listings.setdefault(tenant_id, [])
        return tenant

    async def resolve_tenant(self, slug):
        self._maybe_fail("resolve_tenant", slug)
        return self.tenants.get(slug)

    async def resolve_contact(self, slug):
        self._maybe_fail("resolve_contact", slug)
        return self.contacts.get(slug)

    async def list_listings(self, tenant_id):
        self._maybe_fail("list_listings", tenant_id)
        return list(self.listings.get(tenant_id, []))

    async def list_social_links(self, tenant_id):
        self._maybe_fail("list_social_links", tenant_id)
        return list(self.social_links.get(tenant_id, []))

    async def create_lead(self, lead):
        self._maybe_fail("create_lead", lead.listing_id)
        self.leads.append(lead)
        return Lead(id=f"lead-{len(self.leads)}", **lead.model_dump())

    async def bump_views(self, listing_id, new_count):
        self._maybe_fail("bump_views", listing_id)
        self.views.append((listing_id, new_count))

    def count(self, op: str) -> int:
        return sum(1 for name, _ in self.calls if name == op)


@pytest.fixture
def make_listing():
    return build_listing


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def populated_store(store):
    """Tenant "acme" with 3 featured and 20 regular listings, newest first."""
    store.add_tenant("acme", hero_title="Acme Imóveis")
    store.contacts["acme"] = TenantContact(phone="+55 (11) 99999-0000", email="a@acme.com", license_id="123-J")
    listings = []
    for i in range(3):
        listings.append(
            build_listing(
                id=f"f{i}",
                title=f"Destaque {i}",
                is_featured=True,
                created_at=BASE_TIME - timedelta(days=i),
            )
        )
    for i in range(20):
        listings.append(
            build_listing(
                id=f"r{i}",
                slug=f"imovel-{i}",
                title=f"Casa {i}",
                property_type="house" if i % 2 else "apartment",
                price=100_000 + i * 10_000,
                bedrooms=1 + i % 4,
                images=[f"img-{i}-{n}.jpg" for n in range(i % 8)],
                created_at=BASE_TIME - timedelta(days=i),
            )
        )
    store.listings["t1"] = listings
    return store
