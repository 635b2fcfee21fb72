"""Catalog service - Business logic for browsing services and products"""

import logging
from typing import Optional

from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...cache import Cache, catalog_key
from ...config import CATALOG_CACHE_TTL
from ...models import Banner, Product, Service, ServiceCategory
from ...retry import COLLABORATOR_ERRORS, retry_read, service_unavailable
from .repository import CatalogRepository
from .schemas import (
    BannerResponse,
    CategoryResponse,
    PricingTier,
    ProductResponse,
    ServiceResponse,
)

logger = logging.getLogger(__name__)


class CatalogLine(BaseModel):
    """Current catalog name and price for one cart or draft line"""

    name: str
    price: float
    image: Optional[str] = None
    pricingId: Optional[str] = None
    duration: Optional[int] = None


def category_to_response(c: ServiceCategory) -> CategoryResponse:
    return CategoryResponse(
        id=c.id,
        name=c.name,
        description=c.description,
        icon=c.icon,
        image=c.image,
        isActive=c.is_active,
        sortOrder=c.sort_order,
    )


def service_to_response(s: Service) -> ServiceResponse:
    return ServiceResponse(
        id=s.id,
        categoryId=s.category_id,
        name=s.name,
        description=s.description,
        shortDescription=s.short_description,
        images=s.images or [],
        pricing=[PricingTier(**tier) for tier in (s.pricing or [])],
        duration=s.duration,
        features=s.features or [],
        requirements=s.requirements or [],
        isActive=s.is_active,
        sortOrder=s.sort_order,
        rating=s.rating,
        totalBookings=s.total_bookings,
    )


def product_to_response(p: Product) -> ProductResponse:
    return ProductResponse(
        id=p.id,
        categoryId=p.category_id,
        name=p.name,
        description=p.description,
        shortDescription=p.short_description,
        images=p.images or [],
        price=p.price,
        originalPrice=p.original_price,
        stock=p.stock,
        isActive=p.is_active,
    )


def banner_to_response(b: Banner) -> BannerResponse:
    return BannerResponse(
        id=b.id,
        title=b.title,
        subtitle=b.subtitle,
        image=b.image,
        link=b.link,
        order=b.sort_order,
        isActive=b.is_active,
    )


def select_tier(service: Service, pricing_id: Optional[str]) -> Optional[dict]:
    """The requested pricing tier, or the first tier when none was chosen"""
    tiers = service.pricing or []
    if pricing_id:
        return next((t for t in tiers if t.get("id") == pricing_id), None)
    return tiers[0] if tiers else None


class CatalogService:
    """Service layer for catalog reads"""

    def __init__(self, db: Session, cache: Cache):
        self.db = db
        self.cache = cache
        self.repo = CatalogRepository()

    def _read(self, operation, description: str):
        try:
            return retry_read(operation, description, db=self.db)
        except COLLABORATOR_ERRORS as e:
            raise service_unavailable(description, e) from e

    def list_categories(self) -> list[CategoryResponse]:
        key = catalog_key("categories")
        cached = self.cache.get(key)
        if cached is not None:
            return [CategoryResponse(**c) for c in cached]

        categories = self._read(lambda: self.repo.get_categories(self.db), "list categories")
        result = [category_to_response(c) for c in categories]
        self.cache.set(key, [c.model_dump() for c in result], CATALOG_CACHE_TTL)
        return result

    def list_services(self, category_id: Optional[str] = None) -> list[ServiceResponse]:
        key = catalog_key("services", category_id or "all")
        cached = self.cache.get(key)
        if cached is not None:
            return [ServiceResponse(**s) for s in cached]

        services = self._read(
            lambda: self.repo.get_services(self.db, category_id), "list services"
        )
        result = [service_to_response(s) for s in services]
        self.cache.set(key, [s.model_dump() for s in result], CATALOG_CACHE_TTL)
        return result

    def get_service(self, service_id: str) -> ServiceResponse:
        service = self.find_service(service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service_to_response(service)

    def find_service(self, service_id: str) -> Optional[Service]:
        """Active service or None"""
        service = self._read(lambda: self.repo.get_service(self.db, service_id), "get service")
        if service and service.is_active:
            return service
        return None

    def list_products(self) -> list[ProductResponse]:
        products = self._read(lambda: self.repo.get_products(self.db), "list products")
        return [product_to_response(p) for p in products]

    def get_product(self, product_id: str) -> ProductResponse:
        product = self.find_product(product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        return product_to_response(product)

    def find_product(self, product_id: str) -> Optional[Product]:
        """Active product or None"""
        product = self._read(lambda: self.repo.get_product(self.db, product_id), "get product")
        if product and product.is_active:
            return product
        return None

    def list_banners(self) -> list[BannerResponse]:
        key = catalog_key("banners")
        cached = self.cache.get(key)
        if cached is not None:
            return [BannerResponse(**b) for b in cached]

        banners = self._read(lambda: self.repo.get_banners(self.db), "list banners")
        result = [banner_to_response(b) for b in banners]
        self.cache.set(key, [b.model_dump() for b in result], CATALOG_CACHE_TTL)
        return result

    def resolve_line(
        self, item_type: str, item_id: str, pricing_id: Optional[str] = None
    ) -> Optional[CatalogLine]:
        """Current name and price of a service tier or product; None if unavailable"""
        if item_type == "service":
            service = self.find_service(item_id)
            if not service:
                return None
            tier = select_tier(service, pricing_id)
            if tier is None:
                logger.warning(f"⚠️ Service {item_id} has no pricing tier {pricing_id!r}")
                return None
            name = service.name if not tier.get("name") else f"{service.name} - {tier['name']}"
            return CatalogLine(
                name=name,
                price=tier["sellingPrice"],
                image=(service.images or [None])[0],
                pricingId=tier.get("id"),
                duration=service.duration,
            )

        product = self.find_product(item_id)
        if not product:
            return None
        return CatalogLine(
            name=product.name,
            price=product.price,
            image=(product.images or [None])[0],
        )
