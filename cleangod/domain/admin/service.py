"""Admin service - catalog management, staff and dashboard statistics"""

import logging
import time
from collections import defaultdict
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import Cache, invalidate_catalog_cache
from ...models import Banner, Booking, Product, Service, ServiceBoy, ServiceCategory, User
from ..booking.repository import BookingRepository
from ..booking.service import TERMINAL_STATUSES, booking_to_response
from ..catalog.service import (
    banner_to_response,
    category_to_response,
    product_to_response,
    service_to_response,
)
from .repository import AdminRepository
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
    TopService,
    UserResponse,
)

logger = logging.getLogger(__name__)

RECENT_BOOKINGS = 5
TOP_SERVICES = 4


def service_boy_to_response(s: ServiceBoy) -> ServiceBoyResponse:
    return ServiceBoyResponse(
        id=s.id,
        name=s.name,
        phone=s.phone,
        email=s.email,
        skills=s.skills or [],
        isActive=s.is_active,
        tasks=s.tasks or [],
        createdAt=s.created_at,
    )


def user_to_response(u: User) -> UserResponse:
    return UserResponse(
        id=u.id,
        name=u.name,
        email=u.email,
        phone=u.phone,
        role=u.role,
        isVerified=u.is_verified,
        createdAt=u.created_at,
    )


def top_services(bookings: list[Booking], limit: int = TOP_SERVICES) -> list[TopService]:
    """Most booked services by line count, with the revenue of their lines"""
    counts: dict[str, int] = defaultdict(int)
    revenue: dict[str, float] = defaultdict(float)
    for booking in bookings:
        if booking.status == "cancelled":
            continue
        for line in booking.services or []:
            if line.get("type") != "service":
                continue
            name = line.get("name", "")
            counts[name] += 1
            revenue[name] += line.get("price", 0) * line.get("quantity", 1)

    ranked = sorted(counts, key=lambda name: (-counts[name], name))[:limit]
    return [TopService(name=n, bookings=counts[n], revenue=round(revenue[n], 2)) for n in ranked]


class AdminService:
    """Service layer for the admin dashboard"""

    def __init__(self, db: Session, cache: Cache):
        self.db = db
        self.cache = cache
        self.repo = AdminRepository()

    def _get_or_404(self, model, record_id: str, label: str):
        record = self.repo.get(self.db, model, record_id)
        if not record:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return record

    def _catalog_changed(self, what: str) -> None:
        removed = invalidate_catalog_cache(self.cache)
        logger.info(f"🧹 {what} changed, dropped {removed} cached catalog entries")

    # Dashboard

    def dashboard(self) -> DashboardStats:
        bookings = BookingRepository.get_bookings(self.db)
        return DashboardStats(
            totalRevenue=self.repo.revenue(self.db),
            activeBookings=self.repo.count_bookings(self.db, "confirmed", "in-progress"),
            totalUsers=self.repo.count_users(self.db),
            servicesCompleted=self.repo.count_bookings(self.db, "completed"),
            recentBookings=[booking_to_response(b) for b in bookings[:RECENT_BOOKINGS]],
            topServices=top_services(bookings),
        )

    def list_users(self) -> list[UserResponse]:
        return [user_to_response(u) for u in self.repo.get_users(self.db)]

    # Categories

    def list_categories(self):
        categories = self.repo.list_all(self.db, ServiceCategory, ServiceCategory.sort_order)
        return [category_to_response(c) for c in categories]

    def create_category(self, data: CategoryCreate):
        category = self.repo.create(
            self.db,
            ServiceCategory,
            name=data.name,
            description=data.description,
            icon=data.icon,
            image=data.image,
            is_active=data.isActive,
            sort_order=data.sortOrder,
        )
        self._catalog_changed("Category")
        return category_to_response(category)

    def update_category(self, category_id: str, data: CategoryUpdate):
        category = self._get_or_404(ServiceCategory, category_id, "Category")
        category = self.repo.update(
            self.db,
            category,
            name=data.name,
            description=data.description,
            icon=data.icon,
            image=data.image,
            is_active=data.isActive,
            sort_order=data.sortOrder,
        )
        self._catalog_changed("Category")
        return category_to_response(category)

    def delete_category(self, category_id: str) -> dict:
        category = self._get_or_404(ServiceCategory, category_id, "Category")
        if category.services:
            raise HTTPException(
                status_code=409, detail="Move or delete the services in this category first"
            )
        self.repo.delete(self.db, category)
        self._catalog_changed("Category")
        return {"message": "Category deleted"}

    # Services

    def list_services(self):
        services = self.repo.list_all(self.db, Service, Service.sort_order, Service.name)
        return [service_to_response(s) for s in services]

    def create_service(self, data: ServiceCreate):
        if data.categoryId:
            self._get_or_404(ServiceCategory, data.categoryId, "Category")
        service = self.repo.create(
            self.db,
            Service,
            category_id=data.categoryId,
            name=data.name,
            description=data.description,
            short_description=data.shortDescription,
            images=data.images,
            pricing=[tier.model_dump() for tier in data.pricing],
            duration=data.duration,
            features=data.features,
            requirements=data.requirements,
            is_active=data.isActive,
            sort_order=data.sortOrder,
        )
        logger.info(f"✅ Service {service.name} created with {len(data.pricing)} pricing tiers")
        self._catalog_changed("Service")
        return service_to_response(service)

    def update_service(self, service_id: str, data: ServiceUpdate):
        service = self._get_or_404(Service, service_id, "Service")
        if data.categoryId:
            self._get_or_404(ServiceCategory, data.categoryId, "Category")
        service = self.repo.update(
            self.db,
            service,
            category_id=data.categoryId,
            name=data.name,
            description=data.description,
            short_description=data.shortDescription,
            images=data.images,
            pricing=[tier.model_dump() for tier in data.pricing] if data.pricing else None,
            duration=data.duration,
            features=data.features,
            requirements=data.requirements,
            is_active=data.isActive,
            sort_order=data.sortOrder,
        )
        self._catalog_changed("Service")
        return service_to_response(service)

    def delete_service(self, service_id: str) -> dict:
        service = self._get_or_404(Service, service_id, "Service")
        self.repo.delete(self.db, service)
        self._catalog_changed("Service")
        return {"message": "Service deleted"}

    # Products

    def list_products(self):
        return [product_to_response(p) for p in self.repo.list_all(self.db, Product, Product.name)]

    def create_product(self, data: ProductCreate):
        product = self.repo.create(
            self.db,
            Product,
            category_id=data.categoryId,
            name=data.name,
            description=data.description,
            short_description=data.shortDescription,
            images=data.images,
            price=data.price,
            original_price=data.originalPrice,
            stock=data.stock,
            is_active=data.isActive,
        )
        self._catalog_changed("Product")
        return product_to_response(product)

    def update_product(self, product_id: str, data: ProductUpdate):
        product = self._get_or_404(Product, product_id, "Product")
        product = self.repo.update(
            self.db,
            product,
            category_id=data.categoryId,
            name=data.name,
            description=data.description,
            short_description=data.shortDescription,
            images=data.images,
            price=data.price,
            original_price=data.originalPrice,
            stock=data.stock,
            is_active=data.isActive,
        )
        self._catalog_changed("Product")
        return product_to_response(product)

    def delete_product(self, product_id: str) -> dict:
        product = self._get_or_404(Product, product_id, "Product")
        self.repo.delete(self.db, product)
        self._catalog_changed("Product")
        return {"message": "Product deleted"}

    # Banners

    def list_banners(self):
        return [banner_to_response(b) for b in self.repo.list_all(self.db, Banner, Banner.sort_order)]

    def create_banner(self, data: BannerCreate):
        banner = self.repo.create(
            self.db,
            Banner,
            title=data.title,
            subtitle=data.subtitle,
            image=data.image,
            link=data.link,
            sort_order=data.order,
            is_active=data.isActive,
        )
        self._catalog_changed("Banner")
        return banner_to_response(banner)

    def update_banner(self, banner_id: str, data: BannerUpdate):
        banner = self._get_or_404(Banner, banner_id, "Banner")
        banner = self.repo.update(
            self.db,
            banner,
            title=data.title,
            subtitle=data.subtitle,
            image=data.image,
            link=data.link,
            sort_order=data.order,
            is_active=data.isActive,
        )
        self._catalog_changed("Banner")
        return banner_to_response(banner)

    def delete_banner(self, banner_id: str) -> dict:
        banner = self._get_or_404(Banner, banner_id, "Banner")
        self.repo.delete(self.db, banner)
        self._catalog_changed("Banner")
        return {"message": "Banner deleted"}

    # Service boys

    def list_service_boys(self) -> list[ServiceBoyResponse]:
        staff = self.repo.list_all(self.db, ServiceBoy, ServiceBoy.name)
        return [service_boy_to_response(s) for s in staff]

    def create_service_boy(self, data: ServiceBoyCreate) -> ServiceBoyResponse:
        service_boy = self.repo.create(
            self.db,
            ServiceBoy,
            name=data.name,
            phone=data.phone,
            email=data.email,
            skills=data.skills,
            is_active=data.isActive,
            tasks=[],
        )
        return service_boy_to_response(service_boy)

    def update_service_boy(self, service_boy_id: str, data: ServiceBoyUpdate) -> ServiceBoyResponse:
        service_boy = self._get_or_404(ServiceBoy, service_boy_id, "Service boy")
        service_boy = self.repo.update(
            self.db,
            service_boy,
            name=data.name,
            phone=data.phone,
            email=data.email,
            skills=data.skills,
            is_active=data.isActive,
        )
        return service_boy_to_response(service_boy)

    def delete_service_boy(self, service_boy_id: str) -> dict:
        service_boy = self._get_or_404(ServiceBoy, service_boy_id, "Service boy")
        self.repo.delete(self.db, service_boy)
        return {"message": "Service boy deleted"}

    def assign_task(self, service_boy_id: str, data: TaskAssign) -> ServiceBoyResponse:
        """Append a task to the service boy's list and make them the booking's provider"""
        service_boy = self._get_or_404(ServiceBoy, service_boy_id, "Service boy")
        if not service_boy.is_active:
            raise HTTPException(status_code=409, detail="Service boy is not active")

        booking = None
        if data.bookingId:
            booking = self._get_or_404(Booking, data.bookingId, "Booking")
            if booking.status in TERMINAL_STATUSES:
                raise HTTPException(status_code=409, detail=f"Booking is already {booking.status}")

        task = {
            **data.model_dump(mode="json"),
            "id": f"task_{int(time.time() * 1000)}",
            "assignedAt": datetime.now(timezone.utc).isoformat(),
        }
        service_boy = self.repo.append_task(self.db, service_boy, task)

        if booking is not None:
            self.repo.update(
                self.db, booking, provider_id=service_boy.id, provider_name=service_boy.name
            )
        logger.info(f"🧑‍🔧 Task {task['id']} assigned to {service_boy.name}")
        return service_boy_to_response(service_boy)
