"""Cart service - Business logic for the device cart"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import Cache
from ...retry import COLLABORATOR_ERRORS, service_unavailable
from ...storage import KeyValueStore
from ..booking.pricing import compute_totals, line_subtotal
from ..catalog.service import CatalogService
from ..coupons.service import INVALID_COUPON_MESSAGE, CouponService, order_kind
from .schemas import AddCartItemRequest, CartItem, CartResponse, CartTotalsResponse
from .store import CartStore

logger = logging.getLogger(__name__)


class CartService:
    """Service layer for cart operations"""

    def __init__(self, db: Session, storage: KeyValueStore, device_id: str):
        self.db = db
        self.catalog = CatalogService(db, Cache(storage))
        self.coupons = CouponService(db)
        try:
            self.cart = CartStore(storage, device_id)
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable("load cart", e) from e

    def _response(self) -> CartResponse:
        return CartResponse(
            items=self.cart.items,
            itemCount=self.cart.get_item_count(),
            subtotal=line_subtotal(self.cart.items),
        )

    def _mutate(self, action: str, operation) -> CartResponse:
        try:
            operation()
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable(action, e) from e
        return self._response()

    def refresh(self) -> list[CartItem]:
        """
        Re-price every line from the catalog.
        Prices captured when an item was added go stale; items that left the
        catalog are dropped.
        """
        refreshed = []
        for item in self.cart.items:
            line = self.catalog.resolve_line(item.type, item.id, item.pricingId)
            if line is None:
                logger.info(f"🛒 Dropping unavailable {item.type} {item.id} from cart")
                continue
            if line.price != item.price:
                logger.info(f"🛒 Price of {item.type} {item.id} changed {item.price} -> {line.price}")
            refreshed.append(
                item.model_copy(
                    update={
                        "name": line.name,
                        "price": line.price,
                        "image": line.image,
                        "pricingId": line.pricingId,
                    }
                )
            )

        if refreshed != self.cart.items:
            self._mutate("refresh cart", lambda: self.cart.replace_items(refreshed))
        return self.cart.items

    def get_cart(self) -> CartResponse:
        self.refresh()
        return self._response()

    def add_item(self, data: AddCartItemRequest) -> CartResponse:
        line = self.catalog.resolve_line(data.type, data.id, data.pricingId)
        if line is None:
            raise HTTPException(status_code=404, detail=f"{data.type.capitalize()} not available")

        item = CartItem(
            id=data.id,
            type=data.type,
            name=line.name,
            price=line.price,
            quantity=data.quantity,
            image=line.image,
            pricingId=line.pricingId,
            variantId=data.variantId,
        )
        logger.info(f"🛒 Adding {item.quantity} x {item.type} {item.id} to cart")
        return self._mutate("add cart item", lambda: self.cart.add_item(item))

    def update_quantity(self, item_type: str, item_id: str, quantity: int) -> CartResponse:
        return self._mutate(
            "update cart quantity", lambda: self.cart.update_quantity(item_id, item_type, quantity)
        )

    def remove_item(self, item_type: str, item_id: str) -> CartResponse:
        return self._mutate("remove cart item", lambda: self.cart.remove_item(item_id, item_type))

    def clear(self) -> CartResponse:
        return self._mutate("clear cart", self.cart.clear)

    def preview_totals(self, code: Optional[str] = None) -> CartTotalsResponse:
        """Totals for the refreshed cart, with a coupon if the code applies"""
        items = self.refresh()
        subtotal = line_subtotal(items)
        coupon = None
        if code and items:
            coupon = self.coupons.resolve(code, subtotal, order_kind({i.type for i in items}))

        totals = compute_totals(subtotal, coupon)
        return CartTotalsResponse(
            **totals.model_dump(),
            appliedCoupon=coupon.code if coupon else None,
            couponApplied=coupon is not None,
            message=INVALID_COUPON_MESSAGE if code and coupon is None else None,
        )
