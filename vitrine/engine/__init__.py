"""Property discovery engine: tenant, catalog, filters, reveal, gallery, favorites, contact."""

from vitrine.engine.catalog import CatalogLoader
from vitrine.engine.contact import ContactFlow
from vitrine.engine.favorites import FavoritesStore
from vitrine.engine.gallery import Gallery, GalleryState
from vitrine.engine.resolver import TenantResolver
from vitrine.engine.reveal import ProgressiveReveal
from vitrine.engine.session import DetailPage, StorefrontSession, StorefrontView
