"""Admin repository - Database operations behind the admin dashboard"""

from typing import Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...database import Base
from ...models import Booking, ServiceBoy, User

ModelT = TypeVar("ModelT", bound=Base)


class AdminRepository:
    """Repository for admin CRUD and dashboard queries"""

    @staticmethod
    def list_all(db: Session, model: type[ModelT], *order_by) -> list[ModelT]:
        return db.query(model).order_by(*order_by).all()

    @staticmethod
    def get(db: Session, model: type[ModelT], record_id: str) -> Optional[ModelT]:
        return db.query(model).filter(model.id == record_id).first()

    @staticmethod
    def create(db: Session, model: type[ModelT], **data) -> ModelT:
        record = model(**data)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def update(db: Session, record: ModelT, **updates) -> ModelT:
        for key, value in updates.items():
            if value is not None and hasattr(record, key):
                setattr(record, key, value)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def delete(db: Session, record) -> None:
        db.delete(record)
        db.commit()

    @staticmethod
    def count_users(db: Session) -> int:
        return db.query(func.count(User.id)).scalar() or 0

    @staticmethod
    def get_users(db: Session) -> list[User]:
        return db.query(User).order_by(User.created_at.desc()).all()

    @staticmethod
    def revenue(db: Session) -> float:
        """Sum of booking totals, cancelled bookings excluded"""
        total = (
            db.query(func.coalesce(func.sum(Booking.total_amount), 0))
            .filter(Booking.status != "cancelled")
            .scalar()
        )
        return float(total or 0)

    @staticmethod
    def count_bookings(db: Session, *statuses: str) -> int:
        return db.query(func.count(Booking.id)).filter(Booking.status.in_(statuses)).scalar() or 0

    @staticmethod
    def append_task(db: Session, service_boy: ServiceBoy, task: dict) -> ServiceBoy:
        # Reassign so the JSON column is marked dirty
        service_boy.tasks = [*(service_boy.tasks or []), task]
        db.commit()
        db.refresh(service_boy)
        return service_boy
