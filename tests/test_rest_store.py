"""Tests for the PostgREST store, against a mocked transport."""

import asyncio
import json

import httpx
import pytest

from vitrine.config import StoreConfig
from vitrine.engine.session import StorefrontSession
from vitrine.errors import TransientFetchError
from vitrine.models import LeadRequest, NoticeLevel
from vitrine.store.rest import RestStore

BRANDING = {
    "id": "b7c1",
    "website_slug": "acme",
    "business_name": "Acme Imóveis",
    "display_name": "Acme",
    "primary_color": "#003366",
}

PROPERTY = {
    "id": "p1",
    "broker_id": "b7c1",
    "title": "Apartamento Centro",
    "slug": "apto-centro",
    "price": 450000,
    "property_type": "apartment",
    "transaction_type": "sale",
    "neighborhood": "Centro",
    "city": "Santos",
    "uf": "SP",
    "bedrooms": 2,
    "images": ["a.jpg"],
    "property_code": None,
    "is_featured": True,
    "created_at": "2024-01-01T12:00:00+00:00",
}


class TestRestStore:
    def setup_method(self):
        self.requests = []
        self.routes = {}

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        status, body = route
        return httpx.Response(status, json=body)

    def _store(self):
        config = StoreConfig(backend="rest", rest_url="https://db.example.com/rest/v1", api_key="anon-key")
        return RestStore(config, transport=httpx.MockTransport(self._handler))

    def test_resolve_tenant(self):
        self.routes[("POST", "/rest/v1/rpc/get_public_broker_branding")] = (200, [BRANDING])
        tenant = asyncio.run(self._store().resolve_tenant("acme"))

        assert tenant.id == "b7c1"
        assert tenant.name == "Acme"
        request = self.requests[0]
        assert json.loads(request.content) == {"broker_website_slug": "acme"}
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["authorization"] == "Bearer anon-key"

    def test_unknown_tenant(self):
        self.routes[("POST", "/rest/v1/rpc/get_public_broker_branding")] = (200, [])
        assert asyncio.run(self._store().resolve_tenant("unknown-broker")) is None

    def test_resolve_contact(self):
        self.routes[("POST", "/rest/v1/rpc/get_public_broker_contact")] = (
            200,
            {"whatsapp_number": "5511999990000", "contact_email": None, "creci": "123"},
        )
        contact = asyncio.run(self._store().resolve_contact("acme"))
        assert contact.phone == "5511999990000"
        assert contact.license_id == "123"

    def test_empty_contact_is_none(self):
        self.routes[("POST", "/rest/v1/rpc/get_public_broker_contact")] = (
            200,
            [{"whatsapp_number": None, "contact_email": None, "creci": None}],
        )
        assert asyncio.run(self._store().resolve_contact("acme")) is None

    def test_list_listings(self):
        self.routes[("GET", "/rest/v1/properties")] = (200, [PROPERTY])
        listings = asyncio.run(self._store().list_listings("b7c1"))

        assert len(listings) == 1
        listing = listings[0]
        assert listing.tenant_id == "b7c1"
        assert listing.state == "SP"
        assert listing.display_code == "p1"
        params = self.requests[0].url.params
        assert params["broker_id"] == "eq.b7c1"
        assert params["status"] == "eq.active"
        assert params["order"] == "is_featured.desc,created_at.desc"

    def test_social_links(self):
        self.routes[("GET", "/rest/v1/social_links")] = (
            200,
            [{"id": 1, "broker_id": "b7c1", "platform": "instagram", "url": "https://instagram.com/acme"}],
        )
        links = asyncio.run(self._store().list_social_links("b7c1"))
        assert [x.platform for x in links] == ["instagram"]

    def test_create_lead(self):
        self.routes[("POST", "/rest/v1/leads")] = (201, [{"id": "lead-1"}])
        lead = asyncio.run(
            self._store().create_lead(
                LeadRequest(tenant_id="b7c1", listing_id="p1", name="Ana", email="ana@x.com")
            )
        )
        assert lead.id == "lead-1"
        body = json.loads(self.requests[0].content)
        assert body["broker_id"] == "b7c1"
        assert body["property_id"] == "p1"
        assert body["source"] == "site_publico"
        assert self.requests[0].headers["prefer"] == "return=representation"

    def test_bump_views(self):
        self.routes[("PATCH", "/rest/v1/properties")] = (200, [])
        asyncio.run(self._store().bump_views("p1", 8))

        request = self.requests[0]
        assert request.url.params["id"] == "eq.p1"
        assert json.loads(request.content) == {"views_count": 8}

    def test_http_error_is_transient(self):
        self.routes[("GET", "/rest/v1/properties")] = (500, {"message": "boom"})
        with pytest.raises(TransientFetchError):
            asyncio.run(self._store().list_listings("b7c1"))

    def test_network_error_is_transient(self):
        self.routes[("POST", "/rest/v1/rpc/get_public_broker_branding")] = httpx.ConnectError("offline")
        with pytest.raises(TransientFetchError):
            asyncio.run(self._store().resolve_tenant("acme"))

    def test_close(self):
        store = self._store()
        self.routes[("POST", "/rest/v1/rpc/get_public_broker_branding")] = (200, [BRANDING])

        async def scenario():
            await store.resolve_tenant("acme")
            await store.close()
            return store._client.is_closed

        assert asyncio.run(scenario()) is True

    def test_malformed_listing_row_is_skipped(self):
        bad = dict(PROPERTY, id="p2", slug="bad", price=450000.5)
        self.routes[("GET", "/rest/v1/properties")] = (200, [bad, PROPERTY, "oops"])
        listings = asyncio.run(self._store().list_listings("b7c1"))
        assert [x.id for x in listings] == ["p1"]

    def test_malformed_social_link_is_skipped(self):
        self.routes[("GET", "/rest/v1/social_links")] = (
            200,
            [{"platform": "instagram"}, {"platform": "facebook", "url": "https://facebook.com/acme"}],
        )
        links = asyncio.run(self._store().list_social_links("b7c1"))
        assert [x.platform for x in links] == ["facebook"]

    def test_malformed_tenant_row_is_transient(self):
        row = {k: v for k, v in BRANDING.items() if k != "id"}
        self.routes[("POST", "/rest/v1/rpc/get_public_broker_branding")] = (200, [row])
        with pytest.raises(TransientFetchError):
            asyncio.run(self._store().resolve_tenant("acme"))

    def test_non_json_body_is_transient(self):
        self.routes[("GET", "/rest/v1/properties")] = httpx.Response(
            200, content=b"<html>maintenance</html>", headers={"content-type": "text/html"}
        )
        with pytest.raises(TransientFetchError):
            asyncio.run(self._store().list_listings("b7c1"))

    def test_storefront_survives_bad_rows(self):
        self.routes[("POST", "/rest/v1/rpc/get_public_broker_branding")] = (200, [BRANDING])
        self.routes[("GET", "/rest/v1/properties")] = (200, [dict(PROPERTY, price=450000.5)])
        self.routes[("GET", "/rest/v1/social_links")] = (200, [])
        view = asyncio.run(StorefrontSession(self._store()).navigate("acme"))

        assert view.tenant.id == "b7c1"
        assert view.total == 0
        assert view.notices == []

    def test_storefront_non_json_tenant_becomes_notice(self):
        self.routes[("POST", "/rest/v1/rpc/get_public_broker_branding")] = httpx.Response(
            200, content=b"not json"
        )
        view = asyncio.run(StorefrontSession(self._store()).navigate("acme"))

        assert view.tenant is None
        assert not view.not_found
        assert [n.level for n in view.notices] == [NoticeLevel.ERROR]
