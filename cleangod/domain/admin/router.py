"""Admin router - dashboard endpoints, restricted to administrators"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...cache import Cache
from ...database import get_db
from ...storage import KeyValueStore, get_storage
from ..booking.router import get_booking_service
from ..booking.schemas import BookingResponse, BookingStatus, BookingStatusUpdate
from ..booking.service import BookingService
from ..catalog.schemas import BannerResponse, CategoryResponse, ProductResponse, ServiceResponse
from ..coupons.router import get_coupon_service
from ..coupons.schemas import CouponCreate, CouponResponse, CouponUpdate
from ..coupons.service import CouponService
from ..orders.router import get_order_service
from ..orders.schemas import OrderCreate, OrderResponse, OrderUpdate
from ..orders.service import OrderService
from .schemas import (
    BannerCreate,
    BannerUpdate,
    CategoryCreate,
    CategoryUpdate,
    DashboardStats,
    ProductCreate,
    ProductUpdate,
    ServiceBoyCreate,
    ServiceBoyResponse,
    ServiceBoyUpdate,
    ServiceCreate,
    ServiceUpdate,
    TaskAssign,
    UserResponse,
)
from .service import AdminService

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


def get_admin_service(
    db: Session = Depends(get_db), storage: KeyValueStore = Depends(get_storage)
) -> AdminService:
    """Dependency injection for AdminService"""
    return AdminService(db, Cache(storage))


@router.get("/dashboard", response_model=DashboardStats)
def get_dashboard(service: AdminService = Depends(get_admin_service)):
    """Revenue, booking counts, users and the most recent bookings"""
    return service.dashboard()


@router.get("/users", response_model=list[UserResponse])
def list_users(service: AdminService = Depends(get_admin_service)):
    return service.list_users()


# Categories


@router.get("/categories", response_model=list[CategoryResponse])
def list_categories(service: AdminService = Depends(get_admin_service)):
    """All categories including inactive ones"""
    return service.list_categories()


@router.post("/categories", response_model=CategoryResponse, status_code=201)
def create_category(data: CategoryCreate, service: AdminService = Depends(get_admin_service)):
    return service.create_category(data)


@router.put("/categories/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str, data: CategoryUpdate, service: AdminService = Depends(get_admin_service)
):
    return service.update_category(category_id, data)


@router.delete("/categories/{category_id}")
def delete_category(category_id: str, service: AdminService = Depends(get_admin_service)):
    return service.delete_category(category_id)


# Services


@router.get("/services", response_model=list[ServiceResponse])
def list_services(service: AdminService = Depends(get_admin_service)):
    return service.list_services()


@router.post("/services", response_model=ServiceResponse, status_code=201)
def create_service(data: ServiceCreate, service: AdminService = Depends(get_admin_service)):
    return service.create_service(data)


@router.put("/services/{service_id}", response_model=ServiceResponse)
def update_service(
    service_id: str, data: ServiceUpdate, service: AdminService = Depends(get_admin_service)
):
    return service.update_service(service_id, data)


@router.delete("/services/{service_id}")
def delete_service(service_id: str, service: AdminService = Depends(get_admin_service)):
    return service.delete_service(service_id)


# Products


@router.get("/products", response_model=list[ProductResponse])
def list_products(service: AdminService = Depends(get_admin_service)):
    return service.list_products()


@router.post("/products", response_model=ProductResponse, status_code=201)
def create_product(data: ProductCreate, service: AdminService = Depends(get_admin_service)):
    return service.create_product(data)


@router.put("/products/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: str, data: ProductUpdate, service: AdminService = Depends(get_admin_service)
):
    return service.update_product(product_id, data)


@router.delete("/products/{product_id}")
def delete_product(product_id: str, service: AdminService = Depends(get_admin_service)):
    return service.delete_product(product_id)


# Banners


@router.get("/banners", response_model=list[BannerResponse])
def list_banners(service: AdminService = Depends(get_admin_service)):
    return service.list_banners()


@router.post("/banners", response_model=BannerResponse, status_code=201)
def create_banner(data: BannerCreate, service: AdminService = Depends(get_admin_service)):
    return service.create_banner(data)


@router.put("/banners/{banner_id}", response_model=BannerResponse)
def update_banner(
    banner_id: str, data: BannerUpdate, service: AdminService = Depends(get_admin_service)
):
    return service.update_banner(banner_id, data)


@router.delete("/banners/{banner_id}")
def delete_banner(banner_id: str, service: AdminService = Depends(get_admin_service)):
    return service.delete_banner(banner_id)


# Coupons


@router.get("/coupons", response_model=list[CouponResponse])
def list_coupons(service: CouponService = Depends(get_coupon_service)):
    return service.list_all()


@router.post("/coupons", response_model=CouponResponse, status_code=201)
def create_coupon(data: CouponCreate, service: CouponService = Depends(get_coupon_service)):
    return service.create_coupon(data)


@router.put("/coupons/{coupon_id}", response_model=CouponResponse)
def update_coupon(
    coupon_id: str, data: CouponUpdate, service: CouponService = Depends(get_coupon_service)
):
    return service.update_coupon(coupon_id, data)


@router.delete("/coupons/{coupon_id}")
def delete_coupon(coupon_id: str, service: CouponService = Depends(get_coupon_service)):
    return service.delete_coupon(coupon_id)


# Service boys


@router.get("/service-boys", response_model=list[ServiceBoyResponse])
def list_service_boys(service: AdminService = Depends(get_admin_service)):
    return service.list_service_boys()


@router.post("/service-boys", response_model=ServiceBoyResponse, status_code=201)
def create_service_boy(
    data: ServiceBoyCreate, service: AdminService = Depends(get_admin_service)
):
    return service.create_service_boy(data)


@router.put("/service-boys/{service_boy_id}", response_model=ServiceBoyResponse)
def update_service_boy(
    service_boy_id: str, data: ServiceBoyUpdate, service: AdminService = Depends(get_admin_service)
):
    return service.update_service_boy(service_boy_id, data)


@router.delete("/service-boys/{service_boy_id}")
def delete_service_boy(
    service_boy_id: str, service: AdminService = Depends(get_admin_service)
):
    return service.delete_service_boy(service_boy_id)


@router.post("/service-boys/{service_boy_id}/tasks", response_model=ServiceBoyResponse)
def assign_task(
    service_boy_id: str, data: TaskAssign, service: AdminService = Depends(get_admin_service)
):
    """Assign a task; with a bookingId the service boy becomes that booking's provider"""
    return service.assign_task(service_boy_id, data)


# Bookings and orders


@router.get("/bookings", response_model=list[BookingResponse])
def list_bookings(
    status: Optional[BookingStatus] = None,
    service: BookingService = Depends(get_booking_service),
):
    return service.list_bookings(status)


@router.patch("/bookings/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: str,
    data: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
):
    """Update status, payment status or provider. Completed and cancelled bookings are final."""
    return service.apply_status_patch(booking_id, data)


@router.get("/orders", response_model=list[OrderResponse])
def list_orders(service: OrderService = Depends(get_order_service)):
    return service.list_all()


@router.post("/orders", response_model=OrderResponse, status_code=201)
def create_order(data: OrderCreate, service: OrderService = Depends(get_order_service)):
    return service.create_order(data)


@router.patch("/orders/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: str, data: OrderUpdate, service: OrderService = Depends(get_order_service)
):
    return service.update_order(order_id, data)
