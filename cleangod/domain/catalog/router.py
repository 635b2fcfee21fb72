"""Catalog router - public browsing endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...cache import Cache
from ...database import get_db
from ...storage import KeyValueStore, get_storage
from .schemas import BannerResponse, CategoryResponse, ProductResponse, ServiceResponse
from .service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["Catalog"])


def get_catalog_service(
    db: Session = Depends(get_db), storage: KeyValueStore = Depends(get_storage)
) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db, Cache(storage))


@router.get("/categories", response_model=list[CategoryResponse])
def list_categories(service: CatalogService = Depends(get_catalog_service)):
    """Active service categories in display order"""
    return service.list_categories()


@router.get("/services", response_model=list[ServiceResponse])
def list_services(
    categoryId: Optional[str] = Query(None),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active services, optionally filtered by category"""
    return service.list_services(categoryId)


@router.get("/services/{service_id}", response_model=ServiceResponse)
def get_service(service_id: str, service: CatalogService = Depends(get_catalog_service)):
    return service.get_service(service_id)


@router.get("/products", response_model=list[ProductResponse])
def list_products(service: CatalogService = Depends(get_catalog_service)):
    return service.list_products()


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    return service.get_product(product_id)


@router.get("/banners", response_model=list[BannerResponse])
def list_banners(service: CatalogService = Depends(get_catalog_service)):
    """Active home page banners"""
    return service.list_banners()
