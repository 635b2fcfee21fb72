"""Coupon router - public list of offers"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import CouponResponse
from .service import CouponService

router = APIRouter(prefix="/coupons", tags=["Coupons"])


def get_coupon_service(db: Session = Depends(get_db)) -> CouponService:
    """Dependency injection for CouponService"""
    return CouponService(db)


@router.get("", response_model=list[CouponResponse])
def list_active_coupons(service: CouponService = Depends(get_coupon_service)):
    """Currently active coupons and offers"""
    return service.list_active()
