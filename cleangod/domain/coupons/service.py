"""Coupon service - the single source of truth for coupon lookup"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Coupon
from ...retry import COLLABORATOR_ERRORS, retry_read, service_unavailable
from ..booking.pricing import CouponSnapshot
from .repository import CouponRepository
from .schemas import CouponCreate, CouponResponse, CouponUpdate

logger = logging.getLogger(__name__)

# Promotional codes every fresh database starts with
DEFAULT_COUPONS = [
    {
        "code": "CLEAN10",
        "title": "10% off",
        "description": "10% off on any order",
        "discount_type": "percentage",
        "discount_value": 10,
    },
    {
        "code": "FIRST20",
        "title": "20% off for first-time users",
        "description": "20% off on your first order",
        "discount_type": "percentage",
        "discount_value": 20,
    },
    {
        "code": "SAVE50",
        "title": "₹50 off",
        "description": "Flat ₹50 off",
        "discount_type": "fixed",
        "discount_value": 50,
    },
    {
        "code": "CLEAN20",
        "title": "₹200 off",
        "description": "₹200 off on first booking",
        "discount_type": "fixed",
        "discount_value": 200,
        "applicable_for": "services",
    },
]

INVALID_COUPON_MESSAGE = "This coupon code is not valid for your order"


def _utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def order_kind(item_types: set[str]) -> str:
    """services, products or both, matching Coupon.applicable_for"""
    if item_types == {"service"}:
        return "services"
    if item_types == {"product"}:
        return "products"
    return "both"


def coupon_to_response(c: Coupon) -> CouponResponse:
    return CouponResponse(
        id=c.id,
        code=c.code,
        title=c.title,
        description=c.description,
        discountType=c.discount_type,
        discountValue=c.discount_value,
        minOrderAmount=c.min_order_amount,
        maxDiscount=c.max_discount,
        usageLimit=c.usage_limit,
        usedCount=c.used_count,
        validFrom=c.valid_from,
        validUntil=c.valid_until,
        isActive=c.is_active,
        applicableFor=c.applicable_for,
    )


def is_applicable(
    coupon: Coupon, subtotal: float, kind: str, now: Optional[datetime] = None
) -> bool:
    now = _utc_naive(now or datetime.now(timezone.utc))

    if not coupon.is_active:
        return False
    if coupon.valid_from and _utc_naive(coupon.valid_from) > now:
        return False
    if coupon.valid_until and _utc_naive(coupon.valid_until) < now:
        return False
    if coupon.min_order_amount and subtotal < coupon.min_order_amount:
        return False
    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        return False
    if coupon.applicable_for != "both" and coupon.applicable_for != kind:
        return False
    return True


class CouponService:
    """Service layer for coupon lookup and administration"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CouponRepository()

    def list_active(self) -> list[CouponResponse]:
        try:
            coupons = retry_read(
                lambda: self.repo.get_active_coupons(self.db), "list active coupons", db=self.db
            )
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable("list active coupons", e) from e
        now = datetime.now(timezone.utc)
        return [
            coupon_to_response(c)
            for c in coupons
            if not c.valid_until or _utc_naive(c.valid_until) >= _utc_naive(now)
        ]

    def resolve(
        self, code: str, subtotal: float, kind: str = "both", now: Optional[datetime] = None
    ) -> Optional[CouponSnapshot]:
        """
        Look up a code case-insensitively and check it applies to this order.
        Returns None for unknown or inapplicable codes; that is not an error.
        """
        code = (code or "").strip()
        if not code:
            return None

        try:
            coupon = retry_read(
                lambda: self.repo.get_coupon_by_code(self.db, code), "coupon lookup", db=self.db
            )
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable("coupon lookup", e) from e

        if coupon is None or not is_applicable(coupon, subtotal, kind, now):
            logger.info(f"🏷️ Coupon {code.upper()} not applied (subtotal={subtotal}, kind={kind})")
            return None

        return CouponSnapshot(
            code=coupon.code,
            discountType=coupon.discount_type,
            discountValue=coupon.discount_value,
            maxDiscount=coupon.max_discount,
            description=coupon.description,
        )

    def claim(self, code: str) -> bool:
        """
        Count one redemption. False when the usage limit was reached in the
        meantime; the caller must not apply the discount then.
        """
        try:
            claimed = self.repo.claim_usage(self.db, code)
        except COLLABORATOR_ERRORS as e:
            self.db.rollback()
            raise service_unavailable("claim coupon", e) from e
        if not claimed:
            logger.info(f"🏷️ Coupon {code} reached its usage limit")
        return claimed

    def release(self, code: str) -> None:
        """Give back a redemption whose booking was not created"""
        try:
            self.repo.release_usage(self.db, code)
        except COLLABORATOR_ERRORS as e:
            self.db.rollback()
            logger.error(f"❌ Failed to release usage of coupon {code}: {e}")

    # Admin operations

    def list_all(self) -> list[CouponResponse]:
        return [coupon_to_response(c) for c in self.repo.get_all_coupons(self.db)]

    def create_coupon(self, data: CouponCreate) -> CouponResponse:
        if self.repo.get_coupon_by_code(self.db, data.code):
            raise HTTPException(status_code=409, detail="Coupon code already exists")
        coupon = self.repo.create_coupon(
            self.db,
            code=data.code,
            title=data.title,
            description=data.description,
            discount_type=data.discountType,
            discount_value=data.discountValue,
            min_order_amount=data.minOrderAmount,
            max_discount=data.maxDiscount,
            usage_limit=data.usageLimit,
            valid_from=data.validFrom,
            valid_until=data.validUntil,
            is_active=data.isActive,
            applicable_for=data.applicableFor,
        )
        logger.info(f"🏷️ Coupon {coupon.code} created")
        return coupon_to_response(coupon)

    def update_coupon(self, coupon_id: str, data: CouponUpdate) -> CouponResponse:
        coupon = self.repo.get_coupon_by_id(self.db, coupon_id)
        if not coupon:
            raise HTTPException(status_code=404, detail="Coupon not found")
        coupon = self.repo.update_coupon(
            self.db,
            coupon,
            title=data.title,
            description=data.description,
            discount_value=data.discountValue,
            min_order_amount=data.minOrderAmount,
            max_discount=data.maxDiscount,
            usage_limit=data.usageLimit,
            valid_from=data.validFrom,
            valid_until=data.validUntil,
            is_active=data.isActive,
            applicable_for=data.applicableFor,
        )
        return coupon_to_response(coupon)

    def delete_coupon(self, coupon_id: str) -> dict:
        coupon = self.repo.get_coupon_by_id(self.db, coupon_id)
        if not coupon:
            raise HTTPException(status_code=404, detail="Coupon not found")
        self.repo.delete_coupon(self.db, coupon)
        return {"message": "Coupon deleted"}


def seed_default_coupons(db: Session) -> int:
    """Insert the default promotional codes that are missing. Returns the number inserted."""
    repo = CouponRepository()
    inserted = 0
    for data in DEFAULT_COUPONS:
        if repo.get_coupon_by_code(db, data["code"]):
            continue
        repo.create_coupon(db, **data)
        inserted += 1
    if inserted:
        logger.info(f"🌱 Seeded {inserted} default coupons")
    return inserted
