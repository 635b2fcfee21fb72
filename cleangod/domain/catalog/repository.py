"""Catalog repository - Database operations for categories, services, products and banners"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Banner, Product, Service, ServiceCategory


class CatalogRepository:
    """Repository for catalog database operations"""

    @staticmethod
    def get_categories(db: Session, active_only: bool = True) -> list[ServiceCategory]:
        query = db.query(ServiceCategory)
        if active_only:
            query = query.filter(ServiceCategory.is_active.is_(True))
        return query.order_by(ServiceCategory.sort_order, ServiceCategory.name).all()

    @staticmethod
    def get_category(db: Session, category_id: str) -> Optional[ServiceCategory]:
        return db.query(ServiceCategory).filter(ServiceCategory.id == category_id).first()

    @staticmethod
    def get_services(
        db: Session, category_id: Optional[str] = None, active_only: bool = True
    ) -> list[Service]:
        query = db.query(Service)
        if category_id:
            query = query.filter(Service.category_id == category_id)
        if active_only:
            query = query.filter(Service.is_active.is_(True))
        return query.order_by(Service.sort_order, Service.name).all()

    @staticmethod
    def get_service(db: Session, service_id: str) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_products(db: Session, active_only: bool = True) -> list[Product]:
        query = db.query(Product)
        if active_only:
            query = query.filter(Product.is_active.is_(True))
        return query.order_by(Product.name).all()

    @staticmethod
    def get_product(db: Session, product_id: str) -> Optional[Product]:
        return db.query(Product).filter(Product.id == product_id).first()

    @staticmethod
    def get_banners(db: Session, active_only: bool = True) -> list[Banner]:
        query = db.query(Banner)
        if active_only:
            query = query.filter(Banner.is_active.is_(True))
        return query.order_by(Banner.sort_order).all()
