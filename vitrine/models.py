"""Data models for Vitrine."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    SALE = "sale"
    RENTAL = "rental"


class ListingStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SOLD = "sold"
    RENTED = "rented"


class LayoutVariant(str, Enum):
    COMPACT = "compact"
    WIDE = "wide"


class NoticeLevel(str, Enum):
    INFO = "info"
    ERROR = "error"


class Tenant(BaseModel):
    """Public branding for a broker storefront."""

    id: str
    slug: str
    business_name: str
    display_name: Optional[str] = None
    about_text: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    hero_title: Optional[str] = None
    hero_subtitle: Optional[str] = None
    footer_text: Optional[str] = None
    whatsapp_button_text: Optional[str] = None
    whatsapp_button_color: Optional[str] = None
    is_active: bool = True

    @property
    def name(self) -> str:
        return self.display_name or self.business_name


class TenantContact(BaseModel):
    """Contact details, served separately from branding."""

    phone: Optional[str] = None
    email: Optional[str] = None
    license_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.phone or self.email or self.license_id)


class SocialLink(BaseModel):
    platform: str
    url: str
    display_order: int = 0
    is_active: bool = True


class Listing(BaseModel):
    """A property published by one tenant."""

    id: str
    tenant_id: str
    title: str
    slug: Optional[str] = None
    description: str = ""
    price: int = 0
    property_type: str = "apartment"
    transaction_type: TransactionType = TransactionType.SALE
    address: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    bedrooms: int = 0
    bathrooms: int = 0
    area_m2: float = 0.0
    parking_spaces: int = 0
    is_featured: bool = False
    views_count: int = 0
    main_image_url: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    property_code: Optional[str] = None
    is_active: bool = True
    status: ListingStatus = ListingStatus.ACTIVE
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_publishable(self) -> bool:
        return self.is_active and self.status == ListingStatus.ACTIVE

    @property
    def gallery_images(self) -> list[str]:
        if self.images:
            return list(self.images)
        if self.main_image_url:
            return [self.main_image_url]
        return []

    @property
    def link_key(self) -> str:
        return self.slug or self.id

    @property
    def display_code(self) -> str:
        return self.property_code or self.id[-8:]

    @property
    def location(self) -> str:
        return ", ".join(p for p in (self.neighborhood, self.city, self.state) if p)


class QueryState(BaseModel):
    """Search term and facets for one browsing session."""

    term: str = ""
    property_type: Optional[str] = None
    transaction_type: Optional[TransactionType] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    min_bedrooms: Optional[int] = None
    min_bathrooms: Optional[int] = None
    min_parking_spaces: Optional[int] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None

    def facets(self) -> dict:
        """Return only the facets that are set."""
        return {
            k: v
            for k, v in self.model_dump(exclude={"term"}).items()
            if v is not None and v != ""
        }


class FilterResult(BaseModel):
    featured: list[Listing] = Field(default_factory=list)
    regular: list[Listing] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.featured) + len(self.regular)


class LeadRequest(BaseModel):
    """A lead to be recorded for a tenant."""

    tenant_id: str
    listing_id: str
    name: str
    email: str
    message: str = ""
    source: str = "site_publico"


class Lead(LeadRequest):
    id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Notice(BaseModel):
    """A dismissible, non-fatal message for the visitor."""

    title: str
    description: str = ""
    level: NoticeLevel = NoticeLevel.INFO
