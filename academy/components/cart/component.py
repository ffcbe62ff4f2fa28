"""
Cart - per-user set of (item type, item id) pairs.

Shoppers keep a local cart while logged out; on login the client either
merges it with the server cart (union) or pushes it wholesale (sync).
Carts are exchanged as ``{TYPE: [ids...]}`` with every cart type present.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Protocol
from uuid import UUID

from academy.components.catalog import parse_item_type
from academy.components.errors import ComponentError
from academy.core.ports.time import ClockPort
from academy.domain.entities import CartItem, Enrollment, User

logger = logging.getLogger(__name__)

CartError = ComponentError
CartMap = dict[str, list[str]]


# --- Ports ---


class CartRepoPort(Protocol):
    def list_for_user(self, user_id: UUID) -> list[CartItem]:
        """Newest first."""
        ...

    def add(self, item: CartItem) -> bool: ...

    def remove(self, user_id: UUID, item_type: str, item_id: str) -> bool: ...

    def clear(self, user_id: UUID) -> None: ...

    def replace(self, user_id: UUID, items: list[CartItem]) -> None: ...


class OwnedItemsPort(Protocol):
    def list_for_user(self, user_id: UUID, item_type: str | None = None) -> list[Enrollment]: ...


# --- Pure Functions ---


def empty_cart(item_types: list[str]) -> CartMap:
    return {t: [] for t in item_types}


def normalise_cart(raw: Mapping[str, Any] | None, item_types: list[str]) -> CartMap:
    """Keep known types and non-empty string ids; drop duplicates, keep order."""
    cart = empty_cart(item_types)
    if not raw:
        return cart
    for key, ids in raw.items():
        item_type = parse_item_type(str(key))
        if item_type not in cart or not isinstance(ids, list | tuple):
            continue
        for item_id in ids:
            if isinstance(item_id, str) and item_id.strip() and item_id.strip() not in cart[item_type]:
                cart[item_type].append(item_id.strip())
    return cart


def merge_carts(server: CartMap, local: CartMap, item_types: list[str]) -> CartMap:
    """Union per type: server ids first, then local ids not already present."""
    merged = empty_cart(item_types)
    for item_type in item_types:
        for item_id in [*server.get(item_type, []), *local.get(item_type, [])]:
            if item_id not in merged[item_type]:
                merged[item_type].append(item_id)
    return merged


def cart_size(cart: CartMap) -> int:
    return sum(len(ids) for ids in cart.values())


# --- Service ---


class CartService:
    def __init__(
        self,
        repo: CartRepoPort,
        owned: OwnedItemsPort,
        clock: ClockPort,
        item_types: list[str],
    ) -> None:
        self._repo = repo
        self._owned = owned
        self._clock = clock
        self.item_types = list(item_types)

    def _resolve_type(self, raw: str) -> str | None:
        item_type = parse_item_type(raw)
        return item_type if item_type in self.item_types else None

    def get(self, user: User) -> CartMap:
        cart = empty_cart(self.item_types)
        for item in self._repo.list_for_user(user.id):
            if item.item_type in cart:
                cart[item.item_type].append(item.item_id)
        return cart

    def add(self, user: User, item_type: str, item_id: str) -> tuple[bool, list[CartError]]:
        """Returns (created, errors); adding an item already in the cart is not an error."""
        resolved = self._resolve_type(item_type)
        if not resolved:
            return False, [CartError("invalid_item_type", "Invalid item type", "item_type")]
        if not item_id or not str(item_id).strip():
            return False, [CartError("item_id_required", "Item id is required", "item_id")]
        created = self._repo.add(
            CartItem(
                user_id=user.id,
                item_type=resolved,
                item_id=str(item_id).strip(),
                created_at=self._clock.now_utc(),
            )
        )
        return created, []

    def remove(self, user: User, item_type: str, item_id: str) -> list[CartError]:
        resolved = self._resolve_type(item_type)
        if not resolved:
            return [CartError("invalid_item_type", "Invalid item type", "item_type")]
        if not self._repo.remove(user.id, resolved, item_id):
            return [CartError("cart_item_not_found", "Item not in cart")]
        return []

    def remove_many(self, user: User, items: CartMap) -> None:
        for item_type, ids in items.items():
            for item_id in ids:
                self._repo.remove(user.id, item_type, item_id)

    def clear(self, user: User) -> None:
        self._repo.clear(user.id)

    def _store(self, user: User, cart: CartMap) -> None:
        # created_at decreases along the list so reads come back in this order
        now = self._clock.now_utc()
        items: list[CartItem] = []
        step = 0
        for item_type in self.item_types:
            for item_id in cart[item_type]:
                items.append(
                    CartItem(
                        user_id=user.id,
                        item_type=item_type,
                        item_id=item_id,
                        created_at=now - timedelta(microseconds=step),
                    )
                )
                step += 1
        self._repo.replace(user.id, items)

    def sync(self, user: User, raw: Mapping[str, Any] | None) -> CartMap:
        """Replace the server cart with the client's."""
        cart = normalise_cart(raw, self.item_types)
        self._store(user, cart)
        return cart

    def merge(self, user: User, raw_local: Mapping[str, Any] | None) -> CartMap:
        """Union of server and local carts, minus anything the user already owns."""
        local = normalise_cart(raw_local, self.item_types)
        merged = merge_carts(self.get(user), local, self.item_types)
        owned = {(e.item_type, e.item_id) for e in self._owned.list_for_user(user.id)}
        for item_type, ids in merged.items():
            merged[item_type] = [i for i in ids if (item_type, i) not in owned]
        self._store(user, merged)
        logger.info("Cart merged for user %s: %d item(s)", user.id, cart_size(merged))
        return merged
