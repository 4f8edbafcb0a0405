"""SQLAlchemy table definitions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Boolean,
    JSON,
    create_engine,
)
from sqlalchemy.orm import DeclarativeBase, sessionmaker


class Base(DeclarativeBase):
    pass


class TenantRow(Base):
    __tablename__ = "brokers"

    id = Column(String(36), primary_key=True)
    website_slug = Column(String(100), nullable=False, unique=True, index=True)
    business_name = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=True)
    about_text = Column(Text, nullable=True)
    logo_url = Column(Text, nullable=True)
    primary_color = Column(String(20), nullable=True)
    secondary_color = Column(String(20), nullable=True)
    hero_title = Column(String(255), nullable=True)
    hero_subtitle = Column(String(255), nullable=True)
    footer_text = Column(Text, nullable=True)
    whatsapp_button_text = Column(String(100), nullable=True)
    whatsapp_button_color = Column(String(20), nullable=True)
    whatsapp_number = Column(String(30), nullable=True)
    contact_email = Column(String(255), nullable=True)
    creci = Column(String(30), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class ListingRow(Base):
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True)
    broker_id = Column(String(36), ForeignKey("brokers.id"), nullable=False, index=True)
    slug = Column(String(255), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, default="")
    price = Column(Integer, default=0)
    property_type = Column(String(50), default="apartment")
    transaction_type = Column(String(20), default="sale")
    address = Column(String(255), default="")
    neighborhood = Column(String(100), default="")
    city = Column(String(100), default="")
    uf = Column(String(2), default="")
    bedrooms = Column(Integer, default=0)
    bathrooms = Column(Integer, default=0)
    area_m2 = Column(Float, default=0.0)
    parking_spaces = Column(Integer, default=0)
    is_featured = Column(Boolean, default=False, index=True)
    views_count = Column(Integer, default=0)
    main_image_url = Column(Text, nullable=True)
    images = Column(JSON, default=list)
    features = Column(JSON, default=list)
    property_code = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True)
    status = Column(String(20), default="active", index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class SocialLinkRow(Base):
    __tablename__ = "social_links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    broker_id = Column(String(36), ForeignKey("brokers.id"), nullable=False, index=True)
    platform = Column(String(50), nullable=False)
    url = Column(Text, nullable=False)
    display_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)


class LeadRow(Base):
    __tablename__ = "leads"

    id = Column(String(36), primary_key=True)
    broker_id = Column(String(36), ForeignKey("brokers.id"), nullable=False, index=True)
    property_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    message = Column(Text, default="")
    source = Column(String(50), default="site_publico")
    created_at = Column(DateTime, default=datetime.utcnow)


def init_db(db_url: str = "sqlite:///vitrine.db") -> sessionmaker:
    """Initialize the database and return a session factory."""
    # Sessions are opened from worker threads.
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    engine = create_engine(db_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
