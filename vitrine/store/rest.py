"""REST store speaking PostgREST conventions (hosted Postgres)."""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import httpx

from vitrine.config import StoreConfig
from vitrine.errors import TransientFetchError
from vitrine.models import Lead, LeadRequest, Listing, SocialLink, Tenant, TenantContact
from vitrine.store.base import BaseStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _first(data: Any) -> dict | None:
    """RPCs return either a row or a list of rows."""
    if isinstance(data, list):
        data = data[0] if data else None
    if isinstance(data, dict):
        return data
    return None


def _parse_one(parse: Callable[[dict], T], row: dict, what: str) -> T:
    """Map a single row; a row that does not validate is a failed fetch."""
    try:
        return parse(row)
    except (ValueError, TypeError, KeyError) as e:
        logger.error("Malformed %s row: %s", what, e)
        raise TransientFetchError(f"Malformed {what} row") from e


def _parse_rows(parse: Callable[[dict], T], data: Any, what: str) -> list[T]:
    """Map a list of rows, skipping the ones that do not validate."""
    items: list[T] = []
    for row in data if isinstance(data, list) else []:
        if not isinstance(row, dict):
            logger.warning("Skipping %s row that is not an object: %r", what, row)
            continue
        try:
            items.append(parse(row))
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("Skipping malformed %s row %s: %s", what, row.get("id"), e)
    return items


def _tenant_from_json(row: dict) -> Tenant:
    return Tenant(
        id=str(row["id"]),
        slug=row.get("website_slug") or "",
        business_name=row.get("business_name") or "",
        display_name=row.get("display_name"),
        about_text=row.get("about_text"),
        logo_url=row.get("logo_url"),
        primary_color=row.get("primary_color"),
        secondary_color=row.get("secondary_color"),
        hero_title=row.get("hero_title"),
        hero_subtitle=row.get("hero_subtitle"),
        footer_text=row.get("footer_text"),
        whatsapp_button_text=row.get("whatsapp_button_text"),
        whatsapp_button_color=row.get("whatsapp_button_color"),
        is_active=row.get("is_active", True),
    )


def _contact_from_json(row: dict) -> TenantContact:
    return TenantContact(
        phone=row.get("whatsapp_number"),
        email=row.get("contact_email"),
        license_id=row.get("creci"),
    )


def _listing_from_json(row: dict) -> Listing:
    data = {k: v for k, v in row.items() if v is not None}
    data["id"] = str(row["id"])
    data["tenant_id"] = str(row.get("broker_id", ""))
    data["state"] = row.get("uf") or ""
    data.setdefault("title", "")
    return Listing(**data)


class RestStore(BaseStore):
    """Talks to a PostgREST endpoint with an anonymous API key."""

    BACKEND_NAME = "rest"

    def __init__(self, config: StoreConfig, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.rest_url.rstrip("/") + "/",
                headers={
                    "apikey": self.config.api_key,
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Accept": "application/json",
                },
                timeout=self.config.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        client = await self._get_client()
        try:
            resp = await client.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise TransientFetchError(str(e)) from e
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            logger.error("%s %s returned a body that is not JSON: %s", method, path, e)
            raise TransientFetchError(f"Malformed response from {path}") from e

    async def resolve_tenant(self, slug: str) -> Tenant | None:
        data = await self._request(
            "POST", "rpc/get_public_broker_branding", json={"broker_website_slug": slug}
        )
        row = _first(data)
        return _parse_one(_tenant_from_json, row, "tenant") if row else None

    async def resolve_contact(self, slug: str) -> TenantContact | None:
        data = await self._request(
            "POST", "rpc/get_public_broker_contact", json={"broker_website_slug": slug}
        )
        row = _first(data)
        if not row:
            return None
        contact = _parse_one(_contact_from_json, row, "contact")
        return None if contact.is_empty else contact

    async def list_listings(self, tenant_id: str) -> list[Listing]:
        data = await self._request(
            "GET",
            "properties",
            params={
                "select": "*",
                "broker_id": f"eq.{tenant_id}",
                "is_active": "eq.true",
                "status": "eq.active",
                "order": "is_featured.desc,created_at.desc",
            },
        )
        return _parse_rows(_listing_from_json, data, "listing")

    async def list_social_links(self, tenant_id: str) -> list[SocialLink]:
        data = await self._request(
            "GET",
            "social_links",
            params={
                "select": "*",
                "broker_id": f"eq.{tenant_id}",
                "is_active": "eq.true",
                "order": "display_order",
            },
        )
        return _parse_rows(lambda row: SocialLink(**row), data, "social link")

    async def create_lead(self, lead: LeadRequest) -> Lead:
        payload = {
            "broker_id": lead.tenant_id,
            "property_id": lead.listing_id,
            "name": lead.name,
            "email": lead.email,
            "message": lead.message,
            "source": lead.source,
        }
        data = await self._request(
            "POST", "leads", json=payload, headers={"Prefer": "return=representation"}
        )
        row = _first(data) or {}
        return Lead(
            id=str(row.get("id", "")),
            **lead.model_dump(),
        )

    async def bump_views(self, listing_id: str, new_count: int) -> None:
        await self._request(
            "PATCH",
            "properties",
            params={"id": f"eq.{listing_id}"},
            json={"views_count": new_count},
        )

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
