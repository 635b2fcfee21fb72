"""Cart router - FastAPI endpoints for the device cart"""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import create_rate_limiter
from ...shared.validators import validate_client_key
from ...storage import KeyValueStore, get_storage
from .schemas import (
    AddCartItemRequest,
    ApplyCouponRequest,
    CartResponse,
    CartTotalsResponse,
    UpdateQuantityRequest,
)
from .service import CartService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["Cart"])

coupon_rate_limit = create_rate_limiter(limit=20, window_seconds=600, key_prefix="coupon_check")

ItemType = Literal["service", "product"]


def get_device_id(x_device_id: str = Header(...)) -> str:
    """Client-generated identifier of the browser profile owning the cart"""
    try:
        return validate_client_key(x_device_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid X-Device-Id: {e}") from e


def get_cart_service(
    device_id: str = Depends(get_device_id),
    db: Session = Depends(get_db),
    storage: KeyValueStore = Depends(get_storage),
) -> CartService:
    """Dependency injection for CartService"""
    return CartService(db, storage, device_id)


@router.get("", response_model=CartResponse)
def get_cart(service: CartService = Depends(get_cart_service)):
    """Cart with prices refreshed from the catalog"""
    return service.get_cart()


@router.post("/items", response_model=CartResponse)
def add_item(data: AddCartItemRequest, service: CartService = Depends(get_cart_service)):
    """Add an item, or increase its quantity if it is already in the cart"""
    return service.add_item(data)


@router.patch("/items/{item_type}/{item_id}", response_model=CartResponse)
def update_quantity(
    item_type: ItemType,
    item_id: str,
    data: UpdateQuantityRequest,
    service: CartService = Depends(get_cart_service),
):
    """Set the quantity; 0 removes the item"""
    return service.update_quantity(item_type, item_id, data.quantity)


@router.delete("/items/{item_type}/{item_id}", response_model=CartResponse)
def remove_item(
    item_type: ItemType, item_id: str, service: CartService = Depends(get_cart_service)
):
    return service.remove_item(item_type, item_id)


@router.delete("", response_model=CartResponse)
def clear_cart(service: CartService = Depends(get_cart_service)):
    return service.clear()


@router.get("/totals", response_model=CartTotalsResponse)
def get_totals(service: CartService = Depends(get_cart_service)):
    """Subtotal, GST and total without a coupon"""
    return service.preview_totals()


@router.post("/coupon", response_model=CartTotalsResponse)
def apply_coupon(
    data: ApplyCouponRequest,
    service: CartService = Depends(get_cart_service),
    _: None = Depends(coupon_rate_limit),
):
    """Preview the totals with a coupon. Unknown codes leave the totals unchanged."""
    return service.preview_totals(data.code)
