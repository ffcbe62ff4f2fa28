"""
Catalog component - Storefront items of every type, with pricing and search.
"""

from .component import CatalogService, parse_item_type, price_item, validate_item_fields
from .models import (
    SORT_OPTIONS,
    CatalogError,
    CatalogItemInput,
    CatalogQuery,
    PricedItem,
    SearchResults,
)
from .ports import CatalogRepoPort, JobSearchPort, RunningSalesPort

__all__ = [
    "CatalogService",
    "parse_item_type",
    "price_item",
    "validate_item_fields",
    "SORT_OPTIONS",
    "CatalogError",
    "CatalogItemInput",
    "CatalogQuery",
    "PricedItem",
    "SearchResults",
    "CatalogRepoPort",
    "JobSearchPort",
    "RunningSalesPort",
]
