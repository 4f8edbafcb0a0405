"""Tests for the SQL store."""

import asyncio
import os
import tempfile
from datetime import timedelta

import pytest

from vitrine.config import StoreConfig
from vitrine.errors import TransientFetchError
from vitrine.models import LeadRequest
from vitrine.store import get_store
from vitrine.store.sql import SqlStore
from vitrine.store.tables import Base

from conftest import BASE_TIME, build_listing


@pytest.fixture
def sql_store():
    """Create a temporary database for testing."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    s = SqlStore(StoreConfig(database_url=f"sqlite:///{path}"))
    s.add_tenant(
        "acme",
        "Acme Imóveis",
        tenant_id="t1",
        whatsapp_number="5511999990000",
        contact_email="contato@acme.com",
        creci="12345-J",
    )
    yield s
    os.unlink(path)


def test_get_store_by_backend():
    assert get_store(StoreConfig(backend="rest", rest_url="https://x.example")).BACKEND_NAME == "rest"
    with pytest.raises(ValueError):
        get_store(StoreConfig(backend="mongo"))


def test_resolve_tenant(sql_store):
    tenant = asyncio.run(sql_store.resolve_tenant("acme"))
    assert tenant.id == "t1"
    assert tenant.name == "Acme Imóveis"
    assert asyncio.run(sql_store.resolve_tenant("unknown-broker")) is None


def test_inactive_tenant_is_not_resolved(sql_store):
    sql_store.add_tenant("closed", "Fechada", tenant_id="t2", is_active=False)
    assert asyncio.run(sql_store.resolve_tenant("closed")) is None


def test_resolve_contact(sql_store):
    contact = asyncio.run(sql_store.resolve_contact("acme"))
    assert contact.phone == "5511999990000"
    assert contact.license_id == "12345-J"

    sql_store.add_tenant("bare", "Sem Contato", tenant_id="t3")
    assert asyncio.run(sql_store.resolve_contact("bare")) is None


def test_list_listings_orders_and_filters(sql_store):
    sql_store.add_listing(build_listing(id="old", created_at=BASE_TIME - timedelta(days=3)))
    sql_store.add_listing(build_listing(id="new", created_at=BASE_TIME))
    sql_store.add_listing(build_listing(id="star", is_featured=True, created_at=BASE_TIME - timedelta(days=9)))
    sql_store.add_listing(build_listing(id="sold", status="sold"))
    sql_store.add_listing(build_listing(id="hidden", is_active=False))
    sql_store.add_tenant("other", "Outra", tenant_id="t2")
    sql_store.add_listing(build_listing(id="foreign", tenant_id="t2"))

    listings = asyncio.run(sql_store.list_listings("t1"))
    assert [x.id for x in listings] == ["star", "new", "old"]
    assert listings[1].state == "SP"
    assert listings[1].city == "São Paulo"


def test_listing_fields_round_trip(sql_store):
    sql_store.add_listing(
        build_listing(
            id="p1",
            slug="apto-centro",
            images=["a.jpg", "b.jpg"],
            features=["piscina"],
            property_code="AP-01",
            transaction_type="rental",
        )
    )
    listing = asyncio.run(sql_store.list_listings("t1"))[0]
    assert listing.slug == "apto-centro"
    assert listing.images == ["a.jpg", "b.jpg"]
    assert listing.features == ["piscina"]
    assert listing.display_code == "AP-01"
    assert listing.transaction_type.value == "rental"


def test_social_links_in_display_order(sql_store):
    sql_store.add_social_link("t1", "facebook", "https://facebook.com/acme", display_order=2)
    sql_store.add_social_link("t1", "instagram", "https://instagram.com/acme", display_order=1)
    links = asyncio.run(sql_store.list_social_links("t1"))
    assert [x.platform for x in links] == ["instagram", "facebook"]


def test_create_lead(sql_store):
    lead = asyncio.run(
        sql_store.create_lead(
            LeadRequest(tenant_id="t1", listing_id="p1", name="Ana", email="ana@x.com")
        )
    )
    assert lead.id
    assert lead.source == "site_publico"
    assert sql_store.count_leads("t1") == 1


def test_bump_views(sql_store):
    sql_store.add_listing(build_listing(id="p1", views_count=4))
    asyncio.run(sql_store.bump_views("p1", 5))
    assert asyncio.run(sql_store.list_listings("t1"))[0].views_count == 5

    # Unknown listing is ignored.
    asyncio.run(sql_store.bump_views("missing", 1))


def test_database_errors_are_transient(sql_store):
    engine = sql_store._session_factory.kw["bind"]
    Base.metadata.drop_all(engine)
    with pytest.raises(TransientFetchError):
        asyncio.run(sql_store.list_listings("t1"))
