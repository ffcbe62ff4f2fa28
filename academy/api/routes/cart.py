from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from academy.api.deps import get_cart_service, get_current_user
from academy.api.envelope import ok, raise_for_errors
from academy.api.schemas import CartItemRequest, CartSyncRequest
from academy.components.cart import CartService, cart_size
from academy.domain.entities import User

router = APIRouter()


def _cart_out(cart: dict[str, list[str]]) -> dict:
    return {"cart": cart, "count": cart_size(cart)}


@router.get("")
def get_cart(
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> JSONResponse:
    return ok(_cart_out(service.get(current_user)))


@router.post("/add")
def add_to_cart(
    req: CartItemRequest,
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> JSONResponse:
    created, errors = service.add(current_user, req.item_type, req.item_id)
    raise_for_errors(errors)
    cart = _cart_out(service.get(current_user))
    if created:
        return ok(cart, "Item added to cart", status.HTTP_201_CREATED)
    return ok(cart, "Item already in cart")


@router.post("/remove")
def remove_from_cart(
    req: CartItemRequest,
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> JSONResponse:
    raise_for_errors(service.remove(current_user, req.item_type, req.item_id))
    return ok(_cart_out(service.get(current_user)), "Item removed from cart")


@router.delete("")
def clear_cart(
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> JSONResponse:
    service.clear(current_user)
    return ok(_cart_out(service.get(current_user)), "Cart cleared")


@router.post("/sync")
def sync_cart(
    req: CartSyncRequest,
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> JSONResponse:
    """Replace the server cart with the client's local cart."""
    return ok(_cart_out(service.sync(current_user, req.cart)), "Cart synced")


@router.post("/merge")
def merge_cart(
    req: CartSyncRequest,
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> JSONResponse:
    """Union the local cart into the server cart, dropping owned items."""
    return ok(_cart_out(service.merge(current_user, req.cart)), "Cart merged")
