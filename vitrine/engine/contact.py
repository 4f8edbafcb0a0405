"""Contact details, lead capture, view counting and WhatsApp deep links."""

from __future__ import annotations

import logging
import re
from typing import Callable
from urllib.parse import quote

from vitrine.config import ContactConfig
from vitrine.errors import TransientFetchError
from vitrine.engine.resolver import TenantResolver
from vitrine.models import LeadRequest, Listing, Notice, NoticeLevel, Tenant, TenantContact
from vitrine.store.base import BaseStore

logger = logging.getLogger(__name__)

_MOBILE_RE = re.compile(
    r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE
)

Opener = Callable[[str], None]


def is_mobile_user_agent(user_agent: str | None) -> bool:
    return bool(user_agent and _MOBILE_RE.search(user_agent))


def format_price(price: int, symbol: str = "R$") -> str:
    """Format an integer price the pt-BR way, e.g. R$ 450.000."""
    return f"{symbol} {price:,}".replace(",", ".")


def share_url(base_url: str, tenant_slug: str, listing: Listing) -> str:
    return f"{base_url.rstrip('/')}/{tenant_slug}/{listing.link_key}"


def _digits(phone: str) -> str:
    return re.sub(r"\D", "", phone)


class ContactFlow:
    """Funnels a visitor on one tenant's storefront into a contact action.

    Contact details are fetched lazily and cached once found. Lead and view
    failures are reported as notices, never raised.
    """

    def __init__(
        self,
        store: BaseStore,
        resolver: TenantResolver,
        tenant: Tenant,
        config: ContactConfig | None = None,
    ):
        self.store = store
        self.resolver = resolver
        self.tenant = tenant
        self.config = config or ContactConfig()
        self._contact: TenantContact | None = None

    async def contact(self) -> TenantContact | None:
        if self._contact is not None:
            return self._contact
        try:
            contact = await self.resolver.resolve_contact(self.tenant.slug)
        except TransientFetchError as e:
            logger.error("Error fetching contact info for %s: %s", self.tenant.slug, e)
            return None
        if contact is not None:
            self._contact = contact
        return contact

    async def submit_lead(
        self,
        listing: Listing,
        name: str | None = None,
        email: str | None = None,
        message: str | None = None,
    ) -> Notice:
        lead = LeadRequest(
            tenant_id=self.tenant.id,
            listing_id=listing.id,
            name=name or self.config.visitor_name,
            email=email or self.config.visitor_email,
            message=message or self.config.visitor_message,
            source=self.config.lead_source,
        )
        try:
            created = await self.store.create_lead(lead)
        except TransientFetchError as e:
            logger.error("Error creating lead for listing %s: %s", listing.id, e)
            return Notice(
                title="Could not register your interest",
                description=f"Please try again. ({e})",
                level=NoticeLevel.ERROR,
            )
        logger.info("Lead %s created for listing %s", created.id, listing.id)
        return Notice(
            title="Interest registered",
            description="The broker will contact you shortly.",
        )

    async def record_view(self, listing: Listing) -> int:
        """Read-then-write increment of the view counter; last write wins.

        Returns the count to display. On failure the unchanged count is kept.
        """
        new_count = listing.views_count + 1
        try:
            await self.store.bump_views(listing.id, new_count)
        except TransientFetchError as e:
            logger.warning("Could not update views for %s: %s", listing.id, e)
            return listing.views_count
        return new_count

    def whatsapp_message(self, listing: Listing, page_url: str) -> str:
        return self.config.whatsapp_message.format(
            title=listing.title,
            code=listing.display_code,
            price=format_price(listing.price, self.config.currency_symbol),
            url=page_url,
        )

    def whatsapp_links(self, phone: str, listing: Listing, page_url: str, mobile: bool) -> list[str]:
        """URIs to try in order: the app scheme on mobile, then the web fallback."""
        phone = _digits(phone)
        text = quote(self.whatsapp_message(listing, page_url), safe="")
        web = self.config.whatsapp_web_url.format(phone=phone, text=text)
        if mobile:
            return [self.config.whatsapp_app_url.format(phone=phone, text=text), web]
        return [web]

    async def open_whatsapp(
        self,
        listing: Listing,
        page_url: str,
        opener: Opener,
        user_agent: str | None = None,
    ) -> list[Notice]:
        """Open a WhatsApp conversation about `listing` and register the lead."""
        contact = await self.contact()
        if contact is None or not contact.phone:
            return [
                Notice(
                    title="Contact information unavailable",
                    description="Please try again in a moment.",
                    level=NoticeLevel.ERROR,
                )
            ]

        links = self.whatsapp_links(
            contact.phone, listing, page_url, is_mobile_user_agent(user_agent)
        )
        for link in links:
            try:
                opener(link)
                break
            except Exception as e:
                logger.warning("Could not open %s: %s", link.split(":", 1)[0], e)
        else:
            return [
                Notice(
                    title="Could not open WhatsApp",
                    description=links[-1],
                    level=NoticeLevel.ERROR,
                )
            ]

        return [await self.submit_lead(listing)]
