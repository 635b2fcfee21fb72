"""Order service - Business logic for product orders"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Order, User
from ...retry import COLLABORATOR_ERRORS, retry_read, service_unavailable
from ..booking.pricing import line_subtotal
from .repository import OrderRepository
from .schemas import OrderCreate, OrderResponse, OrderUpdate

logger = logging.getLogger(__name__)


def order_to_response(o: Order) -> OrderResponse:
    return OrderResponse(
        id=o.id,
        customerId=o.customer_id,
        items=o.items or [],
        status=o.status,
        totalAmount=o.total_amount,
        deliveryAddress=o.delivery_address or {},
        paymentStatus=o.payment_status,
        paymentId=o.payment_id,
        trackingId=o.tracking_id,
        createdAt=o.created_at,
        updatedAt=o.updated_at,
    )


class OrderService:
    """Service layer for order operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepository()

    def list_user_orders(self, user: User) -> list[OrderResponse]:
        try:
            orders = retry_read(
                lambda: self.repo.get_user_orders(self.db, user.id), "list user orders", db=self.db
            )
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable("list user orders", e) from e
        return [order_to_response(o) for o in orders]

    def list_all(self) -> list[OrderResponse]:
        return [order_to_response(o) for o in self.repo.get_all_orders(self.db)]

    def create_order(self, data: OrderCreate) -> OrderResponse:
        order = self.repo.create_order(
            self.db,
            customer_id=data.customerId,
            items=[item.model_dump() for item in data.items],
            total_amount=line_subtotal(data.items),
            delivery_address=data.deliveryAddress,
            status=data.status,
            payment_status=data.paymentStatus,
            payment_id=data.paymentId,
            tracking_id=data.trackingId,
        )
        logger.info(f"📦 Order {order.id} created for customer {order.customer_id}")
        return order_to_response(order)

    def update_order(self, order_id: str, data: OrderUpdate) -> OrderResponse:
        order = self.repo.get_order(self.db, order_id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        order = self.repo.update_order(
            self.db,
            order,
            status=data.status,
            payment_status=data.paymentStatus,
            payment_id=data.paymentId,
            tracking_id=data.trackingId,
        )
        return order_to_response(order)
