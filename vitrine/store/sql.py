"""SQLAlchemy-backed store for storefront data."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vitrine.config import StoreConfig
from vitrine.errors import TransientFetchError
from vitrine.models import Lead, LeadRequest, Listing, SocialLink, Tenant, TenantContact
from vitrine.store.base import BaseStore
from vitrine.store.tables import LeadRow, ListingRow, SocialLinkRow, TenantRow, init_db

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _tenant_from_row(row: TenantRow) -> Tenant:
    return Tenant(
        id=row.id,
        slug=row.website_slug,
        business_name=row.business_name,
        display_name=row.display_name,
        about_text=row.about_text,
        logo_url=row.logo_url,
        primary_color=row.primary_color,
        secondary_color=row.secondary_color,
        hero_title=row.hero_title,
        hero_subtitle=row.hero_subtitle,
        footer_text=row.footer_text,
        whatsapp_button_text=row.whatsapp_button_text,
        whatsapp_button_color=row.whatsapp_button_color,
        is_active=bool(row.is_active),
    )


def _listing_from_row(row: ListingRow) -> Listing:
    return Listing(
        id=row.id,
        tenant_id=row.broker_id,
        slug=row.slug,
        title=row.title,
        description=row.description or "",
        price=row.price or 0,
        property_type=row.property_type or "apartment",
        transaction_type=row.transaction_type or "sale",
        address=row.address or "",
        neighborhood=row.neighborhood or "",
        city=row.city or "",
        state=row.uf or "",
        bedrooms=row.bedrooms or 0,
        bathrooms=row.bathrooms or 0,
        area_m2=row.area_m2 or 0.0,
        parking_spaces=row.parking_spaces or 0,
        is_featured=bool(row.is_featured),
        views_count=row.views_count or 0,
        main_image_url=row.main_image_url,
        images=row.images or [],
        features=row.features or [],
        property_code=row.property_code,
        is_active=bool(row.is_active),
        status=row.status or "active",
        created_at=row.created_at,
    )


class SqlStore(BaseStore):
    """Reads and writes storefront data through SQLAlchemy.

    Blocking sessions run in a worker thread so callers never block the
    event loop.
    """

    BACKEND_NAME = "sql"

    def __init__(self, config: StoreConfig):
        super().__init__(config)
        self._session_factory = init_db(config.database_url)

    def _session(self) -> Session:
        return self._session_factory()

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except (SQLAlchemyError, ValueError) as e:
            logger.error("Store call %s failed: %s", fn.__name__, e)
            raise TransientFetchError(str(e)) from e

    # -- collaborator interface -------------------------------------------

    async def resolve_tenant(self, slug: str) -> Tenant | None:
        return await self._run(self._resolve_tenant, slug)

    async def resolve_contact(self, slug: str) -> TenantContact | None:
        return await self._run(self._resolve_contact, slug)

    async def list_listings(self, tenant_id: str) -> list[Listing]:
        return await self._run(self._list_listings, tenant_id)

    async def list_social_links(self, tenant_id: str) -> list[SocialLink]:
        return await self._run(self._list_social_links, tenant_id)

    async def create_lead(self, lead: LeadRequest) -> Lead:
        return await self._run(self._create_lead, lead)

    async def bump_views(self, listing_id: str, new_count: int) -> None:
        await self._run(self._bump_views, listing_id, new_count)

    # -- blocking implementations -----------------------------------------

    def _resolve_tenant(self, slug: str) -> Tenant | None:
        with self._session() as session:
            row = (
                session.query(TenantRow)
                .filter_by(website_slug=slug, is_active=True)
                .first()
            )
            return _tenant_from_row(row) if row else None

    def _resolve_contact(self, slug: str) -> TenantContact | None:
        with self._session() as session:
            row = (
                session.query(TenantRow)
                .filter_by(website_slug=slug, is_active=True)
                .first()
            )
            if row is None:
                return None
            contact = TenantContact(
                phone=row.whatsapp_number,
                email=row.contact_email,
                license_id=row.creci,
            )
            return None if contact.is_empty else contact

    def _list_listings(self, tenant_id: str) -> list[Listing]:
        with self._session() as session:
            rows = (
                session.query(ListingRow)
                .filter_by(broker_id=tenant_id, is_active=True, status="active")
                .order_by(ListingRow.is_featured.desc(), ListingRow.created_at.desc())
                .all()
            )
            return [_listing_from_row(r) for r in rows]

    def _list_social_links(self, tenant_id: str) -> list[SocialLink]:
        with self._session() as session:
            rows = (
                session.query(SocialLinkRow)
                .filter_by(broker_id=tenant_id, is_active=True)
                .order_by(SocialLinkRow.display_order)
                .all()
            )
            return [
                SocialLink(
                    platform=r.platform,
                    url=r.url,
                    display_order=r.display_order or 0,
                    is_active=bool(r.is_active),
                )
                for r in rows
            ]

    def _create_lead(self, lead: LeadRequest) -> Lead:
        with self._session() as session:
            row = LeadRow(
                id=str(uuid.uuid4()),
                broker_id=lead.tenant_id,
                property_id=lead.listing_id,
                name=lead.name,
                email=lead.email,
                message=lead.message,
                source=lead.source,
            )
            session.add(row)
            session.commit()
            return Lead(id=row.id, created_at=row.created_at, **lead.model_dump())

    def _bump_views(self, listing_id: str, new_count: int) -> None:
        with self._session() as session:
            row = session.get(ListingRow, listing_id)
            if row:
                row.views_count = new_count
                session.commit()

    # -- management helpers (seeding, tests) ------------------------------

    def add_tenant(
        self,
        slug: str,
        business_name: str,
        tenant_id: str | None = None,
        **fields: Any,
    ) -> str:
        """Insert a tenant. Returns its id."""
        with self._session() as session:
            row = TenantRow(
                id=tenant_id or str(uuid.uuid4()),
                website_slug=slug,
                business_name=business_name,
                **fields,
            )
            session.add(row)
            session.commit()
            return row.id

    def add_listing(self, listing: Listing) -> str:
        """Insert a listing. Returns its id."""
        with self._session() as session:
            row = ListingRow(
                id=listing.id,
                broker_id=listing.tenant_id,
                slug=listing.slug,
                title=listing.title,
                description=listing.description,
                price=listing.price,
                property_type=listing.property_type,
                transaction_type=listing.transaction_type.value,
                address=listing.address,
                neighborhood=listing.neighborhood,
                city=listing.city,
                uf=listing.state,
                bedrooms=listing.bedrooms,
                bathrooms=listing.bathrooms,
                area_m2=listing.area_m2,
                parking_spaces=listing.parking_spaces,
                is_featured=listing.is_featured,
                views_count=listing.views_count,
                main_image_url=listing.main_image_url,
                images=listing.images,
                features=listing.features,
                property_code=listing.property_code,
                is_active=listing.is_active,
                status=listing.status.value,
                created_at=listing.created_at,
            )
            session.add(row)
            session.commit()
            return row.id

    def add_social_link(self, tenant_id: str, platform: str, url: str, display_order: int = 0) -> None:
        with self._session() as session:
            session.add(
                SocialLinkRow(
                    broker_id=tenant_id,
                    platform=platform,
                    url=url,
                    display_order=display_order,
                )
            )
            session.commit()

    def count_leads(self, tenant_id: str) -> int:
        with self._session() as session:
            return session.query(LeadRow).filter_by(broker_id=tenant_id).count()
