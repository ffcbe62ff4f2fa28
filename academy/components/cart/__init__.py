"""
Cart component - Server-side cart with client merge/sync.
"""

from .component import (
    CartError,
    CartMap,
    CartRepoPort,
    CartService,
    OwnedItemsPort,
    cart_size,
    empty_cart,
    merge_carts,
    normalise_cart,
)

__all__ = [
    "CartError",
    "CartMap",
    "CartRepoPort",
    "CartService",
    "OwnedItemsPort",
    "cart_size",
    "empty_cart",
    "merge_carts",
    "normalise_cart",
]
