"""Faceted filtering and free-text search over a loaded catalog.

Everything here is pure: the same catalog and query always produce the same
featured/regular split, in catalog order.
"""

from __future__ import annotations

import re
from typing import Callable, Sequence

from vitrine.models import FilterResult, Listing, QueryState

SEARCH_MAX_LENGTH = 100

_TAG_RE = re.compile(r"<[^>]*>")
_UNSAFE_RE = re.compile(r"[<>\x00-\x1f\x7f]")

Predicate = Callable[[Listing], bool]


def sanitize_term(term: str | None, max_length: int = SEARCH_MAX_LENGTH) -> str:
    """Cap a raw search term and reduce it to plain text."""
    if not term:
        return ""
    capped = term[:max_length]
    text = _TAG_RE.sub("", capped)
    text = _UNSAFE_RE.sub("", text)
    return text.strip()


def _matches_text(listing: Listing, needle: str) -> bool:
    haystacks = (
        listing.title,
        listing.address,
        listing.neighborhood,
        listing.city,
        listing.property_code,
    )
    return any(h and needle in h.lower() for h in haystacks)


def _same(a: str | None, b: str) -> bool:
    return (a or "").casefold() == b.casefold()


def _facet_predicates(query: QueryState) -> list[Predicate]:
    preds: list[Predicate] = []
    if query.property_type:
        preds.append(lambda x, v=query.property_type: _same(x.property_type, v))
    if query.transaction_type is not None:
        preds.append(lambda x, v=query.transaction_type: x.transaction_type == v)
    if query.min_price is not None:
        preds.append(lambda x, v=query.min_price: x.price >= v)
    if query.max_price is not None:
        preds.append(lambda x, v=query.max_price: x.price <= v)
    if query.min_bedrooms is not None:
        preds.append(lambda x, v=query.min_bedrooms: x.bedrooms >= v)
    if query.min_bathrooms is not None:
        preds.append(lambda x, v=query.min_bathrooms: x.bathrooms >= v)
    if query.min_parking_spaces is not None:
        preds.append(lambda x, v=query.min_parking_spaces: x.parking_spaces >= v)
    if query.neighborhood:
        preds.append(lambda x, v=query.neighborhood: _same(x.neighborhood, v))
    if query.city:
        preds.append(lambda x, v=query.city: _same(x.city, v))
    return preds


def apply(
    catalog: Sequence[Listing],
    query: QueryState,
    max_length: int = SEARCH_MAX_LENGTH,
) -> FilterResult:
    """Filter a catalog and split it into featured and regular listings."""
    needle = sanitize_term(query.term, max_length).lower()
    preds = _facet_predicates(query)

    featured: list[Listing] = []
    regular: list[Listing] = []
    for listing in catalog:
        if needle and not _matches_text(listing, needle):
            continue
        if not all(pred(listing) for pred in preds):
            continue
        (featured if listing.is_featured else regular).append(listing)

    return FilterResult(featured=featured, regular=regular)


def has_active_filters(query: QueryState, max_length: int = SEARCH_MAX_LENGTH) -> bool:
    return bool(sanitize_term(query.term, max_length)) or bool(query.facets())
