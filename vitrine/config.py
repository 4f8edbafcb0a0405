"""Configuration management for Vitrine."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel

CONFIG_DIR = Path(__file__).parent.parent / "config"


class CatalogConfig(BaseModel):
    reveal_chunk_size: int = 12
    search_max_length: int = 100
    similar_limit: int = 6


class GalleryConfig(BaseModel):
    thumbnail_page_size: int = 6
    default_layout: str = "wide"  # compact or wide


class FavoritesConfig(BaseModel):
    path: str = "~/.vitrine/favorites.json"
    key: str = "favorites"


class ContactConfig(BaseModel):
    lead_source: str = "site_publico"
    visitor_name: str = "Visitante do Site"
    visitor_email: str = "visitante@exemplo.com"
    visitor_message: str = "Interesse no imóvel via site"
    whatsapp_app_url: str = "whatsapp://send?phone={phone}&text={text}"
    whatsapp_web_url: str = "https://wa.me/{phone}?text={text}"
    whatsapp_message: str = (
        "Olá! Tenho interesse no imóvel \"{title}\" - Código: {code}. "
        "Valor: {price}. Gostaria de mais informações. Link: {url}"
    )
    currency_symbol: str = "R$"


class StoreConfig(BaseModel):
    backend: str = "sql"  # sql or rest
    database_url: str = "sqlite:///vitrine.db"
    rest_url: str = ""
    api_key: str = ""
    timeout: float = 15.0


class ApiConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    base_url: str = "http://localhost:8000"


class AppConfig(BaseModel):
    catalog: CatalogConfig = CatalogConfig()
    gallery: GalleryConfig = GalleryConfig()
    favorites: FavoritesConfig = FavoritesConfig()
    contact: ContactConfig = ContactConfig()
    store: StoreConfig = StoreConfig()
    api: ApiConfig = ApiConfig()


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML files.

    Loads default.toml first, then merges local.toml or a custom path on top.
    """
    default_path = CONFIG_DIR / "default.toml"
    data: dict[str, Any] = {}

    if default_path.exists():
        with open(default_path, "rb") as f:
            data = tomllib.load(f)

    local_path = config_path or CONFIG_DIR / "local.toml"
    if local_path.exists():
        with open(local_path, "rb") as f:
            overrides = tomllib.load(f)
        data = _deep_merge(data, overrides)

    return AppConfig(**data)
