"""Order repository - Database operations for product orders"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Order


class OrderRepository:
    """Repository for order database operations"""

    @staticmethod
    def get_user_orders(db: Session, user_id: str) -> list[Order]:
        return (
            db.query(Order)
            .filter(Order.customer_id == user_id)
            .order_by(Order.created_at.desc())
            .all()
        )

    @staticmethod
    def get_all_orders(db: Session) -> list[Order]:
        return db.query(Order).order_by(Order.created_at.desc()).all()

    @staticmethod
    def get_order(db: Session, order_id: str) -> Optional[Order]:
        return db.query(Order).filter(Order.id == order_id).first()

    @staticmethod
    def create_order(db: Session, **order_data) -> Order:
        order = Order(**order_data)
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    @staticmethod
    def update_order(db: Session, order: Order, **updates) -> Order:
        for key, value in updates.items():
            if value is not None and hasattr(order, key):
                setattr(order, key, value)
        db.commit()
        db.refresh(order)
        return order
