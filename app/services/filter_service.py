"""Filter predicate — the one inclusion test used by every catalog view.

Public search, the rentals page and the admin table all narrow the catalog
through matches(); they differ only in the criteria they pass.
"""
from typing import Iterable, List, Optional

from app.schemas.catalog_schema import FilterCriteria
from app.schemas.property_schema import PropertyRead


def matches_search(prop: PropertyRead, query: Optional[str]) -> bool:
    """Case-insensitive substring match on title, public address or description."""
    needle = (query or "").strip().casefold()
    if not needle:
        return True

    haystacks = [prop.title, prop.public_address]
    if prop.description:
        haystacks.append(prop.description)
    return any(needle in text.casefold() for text in haystacks)


def matches_criteria(prop: PropertyRead, criteria: FilterCriteria) -> bool:
    """Conjunction of every constraint that is set. Only None skips a constraint."""
    if criteria.min_price is not None and prop.price < criteria.min_price:
        return False
    if criteria.max_price is not None and prop.price > criteria.max_price:
        return False
    if criteria.min_bedrooms is not None and prop.bedroom_count < criteria.min_bedrooms:
        return False
    if criteria.min_bathrooms is not None and prop.bathroom_count < criteria.min_bathrooms:
        return False
    if criteria.min_area is not None and prop.area_sq_meters < criteria.min_area:
        return False
    if criteria.max_area is not None and prop.area_sq_meters > criteria.max_area:
        return False

    if criteria.listing_kind is not None and prop.listing_kind != criteria.listing_kind:
        return False
    if criteria.status is not None and prop.status != criteria.status:
        return False
    if criteria.is_public is not None and prop.is_public != criteria.is_public:
        return False
    if criteria.featured is not None and prop.featured != criteria.featured:
        return False

    return True


def matches(prop: PropertyRead, criteria: FilterCriteria, search_query: Optional[str] = "") -> bool:
    return matches_search(prop, search_query) and matches_criteria(prop, criteria)


def filter_properties(
    properties: Iterable[PropertyRead],
    criteria: Optional[FilterCriteria] = None,
    search_query: Optional[str] = "",
) -> List[PropertyRead]:
    """Return the matching properties in their original order."""
    criteria = criteria or FilterCriteria()
    return [prop for prop in properties if matches(prop, criteria, search_query)]
