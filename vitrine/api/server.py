"""FastAPI storefront API for Vitrine."""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from vitrine.config import AppConfig
from vitrine.engine.contact import is_mobile_user_agent, share_url
from vitrine.engine.session import DetailPage, StorefrontSession
from vitrine.errors import NotFoundError
from vitrine.models import LayoutVariant, Listing, QueryState, TransactionType
from vitrine.store import get_store
from vitrine.store.base import BaseStore


class LeadForm(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None


def _listing_card(listing: Listing) -> dict:
    return {
        "id": listing.id,
        "key": listing.link_key,
        "title": listing.title,
        "price": listing.price,
        "property_type": listing.property_type,
        "transaction_type": listing.transaction_type.value,
        "location": listing.location,
        "bedrooms": listing.bedrooms,
        "bathrooms": listing.bathrooms,
        "area_m2": listing.area_m2,
        "parking_spaces": listing.parking_spaces,
        "is_featured": listing.is_featured,
        "image": (listing.gallery_images or [None])[0],
    }


def _check_storefront(session: StorefrontSession, slug: str, need_catalog: bool = True) -> None:
    """Map a failed navigation to 404 (no such storefront) or 503 (store unavailable)."""
    if session.not_found:
        raise NotFoundError(f"Storefront {slug!r} not found")
    tenant = session.tenant
    if tenant is None or (need_catalog and not session.catalog.is_loaded(tenant)):
        detail = session.notices[-1].title if session.notices else "Storefront unavailable"
        raise HTTPException(status_code=503, detail=detail)


def create_app(cfg: AppConfig, store: BaseStore | None = None) -> FastAPI:
    app = FastAPI(title="Vitrine", version="0.1.0")
    store = store or get_store(cfg.store)

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    async def _detail(slug: str, key: str) -> DetailPage:
        session = StorefrontSession(store, cfg)
        page = await session.open_detail(slug, key, LayoutVariant(cfg.gallery.default_layout))
        _check_storefront(session, slug)
        if page.not_found:
            raise NotFoundError(f"Listing {key!r} not found")
        return page

    @app.get("/api/config")
    async def get_config():
        """Return current configuration."""
        return cfg.model_dump(exclude={"store": {"api_key"}})

    @app.get("/api/{slug}")
    async def storefront(
        slug: str,
        q: str = Query("", description="Free-text search"),
        property_type: str = Query(None, alias="type"),
        transaction: TransactionType = Query(None),
        min_price: int = Query(None),
        max_price: int = Query(None),
        min_bedrooms: int = Query(None),
        min_bathrooms: int = Query(None),
        min_parking: int = Query(None),
        neighborhood: str = Query(None),
        city: str = Query(None),
        pages: int = Query(1, ge=1, description="Reveal chunks to show"),
        reveal: str = Query(None, description="Listing id that must be visible"),
    ):
        """Storefront page: tenant branding plus filtered, windowed listings."""
        session = StorefrontSession(store, cfg)
        await session.navigate(slug)
        _check_storefront(session, slug, need_catalog=False)

        session.set_query(
            QueryState(
                term=q,
                property_type=property_type,
                transaction_type=transaction,
                min_price=min_price,
                max_price=max_price,
                min_bedrooms=min_bedrooms,
                min_bathrooms=min_bathrooms,
                min_parking_spaces=min_parking,
                neighborhood=neighborhood,
                city=city,
            )
        )
        for _ in range(pages - 1):
            session.expand()
        if reveal:
            session.ensure_visible(reveal)

        view = session.view()
        return {
            "tenant": view.tenant.model_dump(mode="json") if view.tenant else None,
            "featured": [_listing_card(x) for x in view.featured],
            "listings": [_listing_card(x) for x in view.visible],
            "visible_count": view.visible_count,
            "remaining": view.remaining,
            "total": view.total,
            "has_active_filters": view.has_active_filters,
            "social_links": [s.model_dump() for s in view.social_links],
            "notices": [n.model_dump(mode="json") for n in view.notices],
        }

    @app.get("/api/{slug}/listings/{key}")
    async def listing_detail(slug: str, key: str):
        """Listing detail; counts one view per request."""
        page = await _detail(slug, key)
        listing = page.listing
        return {
            "listing": listing.model_dump(mode="json"),
            "images": page.gallery.images,
            "display_code": listing.display_code,
            "views_count": page.views_count,
            "share_url": page.share_url(),
            "similar": [_listing_card(x) for x in page.similar],
        }

    @app.post("/api/{slug}/listings/{key}/leads")
    async def create_lead(slug: str, key: str, form: Optional[LeadForm] = None):
        """Register interest in a listing."""
        session = StorefrontSession(store, cfg)
        await session.navigate(slug)
        _check_storefront(session, slug)
        listing = session.catalog.find(key)
        if listing is None or session.contact is None:
            raise NotFoundError(f"Listing {key!r} not found")
        form = form or LeadForm()
        notice = await session.contact.submit_lead(listing, form.name, form.email, form.message)
        return notice.model_dump(mode="json")

    @app.get("/api/{slug}/listings/{key}/contact-link")
    async def contact_link(
        slug: str,
        key: str,
        user_agent: str = Header(None),
    ):
        """WhatsApp URIs to try, in order, for the visitor's platform."""
        session = StorefrontSession(store, cfg)
        await session.navigate(slug)
        _check_storefront(session, slug)
        listing = session.catalog.find(key)
        if listing is None or session.contact is None:
            raise NotFoundError(f"Listing {key!r} not found")
        contact = await session.contact.contact()
        if contact is None or not contact.phone:
            raise HTTPException(status_code=503, detail="Contact information unavailable")
        page_url = share_url(cfg.api.base_url, slug, listing)
        mobile = is_mobile_user_agent(user_agent)
        return {
            "mobile": mobile,
            "links": session.contact.whatsapp_links(contact.phone, listing, page_url, mobile),
        }

    return app
