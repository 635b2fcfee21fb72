"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        """Insert one booking. Callers must not retry this."""
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_by_idempotency_key(db: Session, key: str) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.idempotency_key == key).first()

    @staticmethod
    def get_user_bookings(db: Session, user_id: str) -> list[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.customer_id == user_id)
            .order_by(Booking.created_at.desc())
            .all()
        )

    @staticmethod
    def get_bookings(
        db: Session, status: Optional[str] = None, limit: Optional[int] = None
    ) -> list[Booking]:
        query = db.query(Booking)
        if status:
            query = query.filter(Booking.status == status)
        query = query.order_by(Booking.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def update_booking(db: Session, booking: Booking, **updates) -> Booking:
        """Last writer wins; None values are skipped"""
        for key, value in updates.items():
            if value is not None and hasattr(booking, key):
                setattr(booking, key, value)
        db.commit()
        db.refresh(booking)
        return booking
