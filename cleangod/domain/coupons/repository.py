"""Coupon repository - Database operations for coupons"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Coupon


class CouponRepository:
    """Repository for coupon database operations"""

    @staticmethod
    def get_active_coupons(db: Session) -> list[Coupon]:
        return (
            db.query(Coupon)
            .filter(Coupon.is_active.is_(True))
            .order_by(Coupon.created_at.desc())
            .all()
        )

    @staticmethod
    def get_all_coupons(db: Session) -> list[Coupon]:
        return db.query(Coupon).order_by(Coupon.created_at.desc()).all()

    @staticmethod
    def get_coupon_by_id(db: Session, coupon_id: str) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.id == coupon_id).first()

    @staticmethod
    def get_coupon_by_code(db: Session, code: str) -> Optional[Coupon]:
        """Case-insensitive lookup"""
        return db.query(Coupon).filter(func.upper(Coupon.code) == code.strip().upper()).first()

    @staticmethod
    def create_coupon(db: Session, **coupon_data) -> Coupon:
        coupon = Coupon(**coupon_data)
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon

    @staticmethod
    def update_coupon(db: Session, coupon: Coupon, **updates) -> Coupon:
        for key, value in updates.items():
            if value is not None and hasattr(coupon, key):
                setattr(coupon, key, value)
        db.commit()
        db.refresh(coupon)
        return coupon

    @staticmethod
    def delete_coupon(db: Session, coupon: Coupon) -> None:
        db.delete(coupon)
        db.commit()

    @staticmethod
    def claim_usage(db: Session, code: str) -> bool:
        """Count one redemption unless the usage limit is already reached"""
        claimed = (
            db.query(Coupon)
            .filter(
                func.upper(Coupon.code) == code.upper(),
                or_(Coupon.usage_limit.is_(None), Coupon.used_count < Coupon.usage_limit),
            )
            .update({Coupon.used_count: Coupon.used_count + 1}, synchronize_session=False)
        )
        db.commit()
        return claimed == 1

    @staticmethod
    def release_usage(db: Session, code: str) -> None:
        db.query(Coupon).filter(
            func.upper(Coupon.code) == code.upper(), Coupon.used_count > 0
        ).update({Coupon.used_count: Coupon.used_count - 1}, synchronize_session=False)
        db.commit()
