import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a document-style string identifier"""
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    phone = Column(String(20), nullable=True)
    avatar = Column(String(500), nullable=True)
    role = Column(String(20), default="customer", nullable=False)  # customer, provider, admin
    is_verified = Column(Boolean, default=False, nullable=False)
    preferences = Column(JSON, nullable=True)  # notification switches from the settings page
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    addresses = relationship(
        "Address", back_populates="user", cascade="all, delete-orphan", order_by="Address.created_at"
    )


class Address(Base):
    __tablename__ = "addresses"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=False)
    type = Column(String(10), default="home", nullable=False)  # home, work, other
    street = Column(String(255), nullable=False)
    area = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    pincode = Column(String(6), nullable=False)
    landmark = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    # At most one default per user by convention; not enforced by a constraint
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="addresses")


class ServiceCategory(Base):
    __tablename__ = "service_categories"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(255), nullable=True)
    image = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    services = relationship("Service", back_populates="category")


class Service(Base):
    __tablename__ = "services"

    id = Column(String(32), primary_key=True, default=generate_id)
    category_id = Column(String(32), ForeignKey("service_categories.id"), index=True, nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    short_description = Column(String(500), nullable=True)
    images = Column(JSON, default=list, nullable=False)
    # [{"id", "name", "originalPrice", "sellingPrice", "description"}], e.g. "1 BHK Empty"
    pricing = Column(JSON, default=list, nullable=False)
    duration = Column(Integer, default=60, nullable=False)  # minutes
    features = Column(JSON, default=list, nullable=False)
    requirements = Column(JSON, default=list, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    rating = Column(Float, default=0, nullable=False)
    total_bookings = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("ServiceCategory", back_populates="services")


class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=generate_id)
    category_id = Column(String(32), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    short_description = Column(String(500), nullable=True)
    images = Column(JSON, default=list, nullable=False)
    price = Column(Float, nullable=False)
    original_price = Column(Float, nullable=True)
    stock = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(String(32), primary_key=True, default=generate_id)
    code = Column(String(50), unique=True, index=True, nullable=False)  # stored upper-case
    title = Column(String(255), nullable=True)
    description = Column(String(500), nullable=True)
    discount_type = Column(String(20), nullable=False)  # percentage, fixed
    discount_value = Column(Float, nullable=False)
    min_order_amount = Column(Float, nullable=True)
    max_discount = Column(Float, nullable=True)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, default=0, nullable=False)
    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    applicable_for = Column(String(20), default="both", nullable=False)  # services, products, both
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True, default=generate_id)
    customer_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=False)
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(20), nullable=True)
    # Line items: [{"id", "type", "name", "price", "quantity", "pricingId"}]
    services = Column(JSON, nullable=False)
    # Full address snapshot, not a reference; later edits to the address do not affect it
    address = Column(JSON, nullable=False)
    scheduled_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    scheduled_time = Column(String(10), nullable=False)  # e.g. "11:30 AM"
    duration = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    subtotal = Column(Float, nullable=False)
    discount = Column(Float, default=0, nullable=False)
    taxes = Column(Float, default=0, nullable=False)
    total_amount = Column(Float, nullable=False)
    applied_coupon = Column(String(50), nullable=True)
    payment_method = Column(String(30), nullable=False)  # cash_on_delivery, online
    payment_status = Column(String(20), default="pending", nullable=False)
    payment_id = Column(String(255), nullable=True)
    # pending, confirmed, in-progress, completed, cancelled
    status = Column(String(20), default="pending", index=True, nullable=False)
    provider_id = Column(String(32), nullable=True)
    provider_name = Column(String(255), nullable=True)
    # Carried from the draft; a replayed submission resolves to the same booking
    idempotency_key = Column(String(64), unique=True, index=True, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=generate_id)
    customer_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=False)
    items = Column(JSON, nullable=False)  # [{"productId", "variantId", "quantity", "price"}]
    status = Column(String(20), default="pending", nullable=False)
    total_amount = Column(Float, nullable=False)
    delivery_address = Column(JSON, nullable=False)
    payment_status = Column(String(20), default="pending", nullable=False)
    payment_id = Column(String(255), nullable=True)
    tracking_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Banner(Base):
    __tablename__ = "banners"

    id = Column(String(32), primary_key=True, default=generate_id)
    title = Column(String(255), nullable=False)
    subtitle = Column(String(500), nullable=True)
    image = Column(String(500), nullable=True)
    link = Column(String(500), nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ServiceBoy(Base):
    __tablename__ = "service_boys"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    skills = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    tasks = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
